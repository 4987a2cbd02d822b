"""Wishlist aggregate: products a registered user wants to remember.

One wishlist per user, holding each product at most once. Nothing is
reserved; a wishlisted product can sell out or be deactivated.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier

from storefront.domain import storefront


@storefront.entity(part_of="Wishlist")
class WishlistItem:
    product_id = Identifier(required=True)
    added_at = DateTime()


@storefront.aggregate
class Wishlist:
    user_id = Identifier(required=True, unique=True)
    items = HasMany(WishlistItem)
    updated_at = DateTime()

    @classmethod
    def create(cls, user_id):
        return cls(user_id=user_id, updated_at=datetime.now(UTC))

    def item_for(self, product_id) -> WishlistItem | None:
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    def contains(self, product_id) -> bool:
        return self.item_for(product_id) is not None

    def add_product(self, product_id):
        """Remember ``product_id``. Adding it again changes nothing."""
        if self.contains(product_id):
            return
        self.add_items(WishlistItem(product_id=product_id, added_at=datetime.now(UTC)))
        self.updated_at = datetime.now(UTC)

    def remove_product(self, product_id):
        item = self.item_for(product_id)
        if item is None:
            raise ValidationError({"product_id": ["Product is not in the wishlist"]})
        self.remove_items(item)
        self.updated_at = datetime.now(UTC)

    def toggle(self, product_id) -> bool:
        """Flip membership of ``product_id``; returns whether it is now wishlisted."""
        if self.contains(product_id):
            self.remove_product(product_id)
            return False
        self.add_product(product_id)
        return True

    def clear(self):
        for item in list(self.items):
            self.remove_items(item)
        self.updated_at = datetime.now(UTC)


@storefront.repository(part_of=Wishlist)
class WishlistRepository:
    def for_user(self, user_id) -> Wishlist | None:
        return self._dao.query.filter(user_id=str(user_id)).all().first

    def get_or_create(self, user_id) -> Wishlist:
        wishlist = self.for_user(user_id)
        if wishlist is None:
            wishlist = Wishlist.create(user_id=user_id)
            self.add(wishlist)
        return wishlist
