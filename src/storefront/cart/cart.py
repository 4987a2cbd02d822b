"""Cart aggregate — one persisted cart per registered user.

Guests keep their cart on the client and send it at checkout. Items are
keyed by product; adding a product that is already in the cart merges the
quantities.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier

from storefront.domain import storefront


@storefront.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    quantity = Float(required=True, min_value=0.0)
    added_at = DateTime()


@storefront.aggregate
class Cart:
    user_id = Identifier(required=True, unique=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, user_id):
        now = datetime.now(UTC)
        return cls(user_id=user_id, created_at=now, updated_at=now)

    def item_for(self, product_id) -> CartItem | None:
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    def quantity_of(self, product_id) -> float:
        item = self.item_for(product_id)
        return item.quantity if item else 0.0

    def add_item(self, product_id, quantity):
        existing = self.item_for(product_id)
        if existing:
            existing.quantity = existing.quantity + quantity
        else:
            self.add_items(CartItem(product_id=product_id, quantity=quantity, added_at=datetime.now(UTC)))
        self.updated_at = datetime.now(UTC)

    def set_quantity(self, product_id, quantity):
        item = self.item_for(product_id)
        if item is None:
            raise ValidationError({"product_id": ["Item not found in cart"]})
        item.quantity = quantity
        self.updated_at = datetime.now(UTC)

    def remove_item(self, product_id):
        item = self.item_for(product_id)
        if item is None:
            raise ValidationError({"product_id": ["Item not found in cart"]})
        self.remove_items(item)
        self.updated_at = datetime.now(UTC)

    def clear(self):
        """Drop every item; the cart itself stays."""
        for item in list(self.items):
            self.remove_items(item)
        self.updated_at = datetime.now(UTC)


@storefront.repository(part_of=Cart)
class CartRepository:
    def for_user(self, user_id) -> Cart | None:
        return self._dao.query.filter(user_id=str(user_id)).all().first

    def get_or_create(self, user_id) -> Cart:
        cart = self.for_user(user_id)
        if cart is None:
            cart = Cart.create(user_id=user_id)
            self.add(cart)
        return cart
