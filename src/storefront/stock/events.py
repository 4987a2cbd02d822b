"""Domain events for stock movements."""

from protean.fields import DateTime, Float, Identifier, String

from storefront.domain import storefront


@storefront.event(part_of="StockTransaction")
class StockAdjusted:
    """An administrator added or removed stock outside of an order."""

    __version__ = 1

    product_id = Identifier(required=True)
    quantity_change = Float(required=True)
    reason = String(required=True)
    new_stock_quantity = Float(required=True)
    adjusted_at = DateTime(required=True)
