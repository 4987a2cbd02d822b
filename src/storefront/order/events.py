"""Domain events for orders.

They are audit facts raised by aggregates as they change; nothing outside
the storefront consumes them yet.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A checkout committed: stock was reserved and the order is awaiting confirmation."""

    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier()
    guest_id = Identifier()
    item_count = Integer(required=True)
    total_products_price = Float(required=True)
    shipping_fees = Float(required=True)
    final_total = Float(required=True)
    region = String(required=True)
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    old_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)
