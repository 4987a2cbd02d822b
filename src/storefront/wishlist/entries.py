"""Wishlist commands, handler and the wishlist view."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from storefront.catalogue.browsing import product_card
from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.errors import ProductUnavailable
from storefront.wishlist.wishlist import Wishlist


@storefront.command(part_of="Wishlist")
class AddToWishlist:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.command(part_of="Wishlist")
class RemoveFromWishlist:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.command(part_of="Wishlist")
class ToggleWishlist:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.command(part_of="Wishlist")
class ClearWishlist:
    user_id = Identifier(required=True)


def _require_active(product_id):
    if current_domain.repository_for(Product).find_active(product_id) is None:
        raise ProductUnavailable(product_id)


@storefront.command_handler(part_of=Wishlist)
class WishlistHandler:
    @handle(AddToWishlist)
    def add(self, command):
        _require_active(command.product_id)
        repo = current_domain.repository_for(Wishlist)
        wishlist = repo.get_or_create(command.user_id)
        wishlist.add_product(command.product_id)
        repo.add(wishlist)
        return {"product_id": str(command.product_id), "in_wishlist": True}

    @handle(RemoveFromWishlist)
    def remove(self, command):
        repo = current_domain.repository_for(Wishlist)
        wishlist = repo.get_or_create(command.user_id)
        wishlist.remove_product(command.product_id)
        repo.add(wishlist)
        return {"product_id": str(command.product_id), "in_wishlist": False}

    @handle(ToggleWishlist)
    def toggle(self, command):
        repo = current_domain.repository_for(Wishlist)
        wishlist = repo.get_or_create(command.user_id)
        if not wishlist.contains(command.product_id):
            _require_active(command.product_id)
        now_listed = wishlist.toggle(command.product_id)
        repo.add(wishlist)
        return {"product_id": str(command.product_id), "in_wishlist": now_listed}

    @handle(ClearWishlist)
    def clear(self, command):
        repo = current_domain.repository_for(Wishlist)
        wishlist = repo.for_user(command.user_id)
        if wishlist is not None and wishlist.items:
            wishlist.clear()
            repo.add(wishlist)
        return {"items": []}


def get_wishlist(user_id) -> dict:
    """Newest first. Products deactivated since being added show as unavailable."""
    wishlist = current_domain.repository_for(Wishlist).for_user(user_id)
    if wishlist is None:
        return {"items": [], "count": 0}

    products = current_domain.repository_for(Product)
    entries = []
    for item in sorted(wishlist.items, key=lambda i: i.added_at, reverse=True):
        product = products.find_any(item.product_id)
        if product is None:
            continue
        entries.append({**product_card(product), "available": product.is_active, "added_at": item.added_at})
    return {"items": entries, "count": len(entries)}


def is_wishlisted(user_id, product_id) -> bool:
    wishlist = current_domain.repository_for(Wishlist).for_user(user_id)
    return wishlist is not None and wishlist.contains(product_id)
