"""Manual stock adjustment — command and handler."""

from protean import handle
from protean.fields import Float, Identifier, String

from storefront.domain import storefront
from storefront.stock.ledger import StockLedger
from storefront.stock.transaction import StockReason, StockTransaction


@storefront.command(part_of="StockTransaction")
class AdjustStock:
    """Add or remove stock by hand (deliveries from suppliers, spoilage, recounts)."""

    product_id = Identifier(required=True)
    quantity = Float(required=True, min_value=0.0)
    reason = String(required=True, choices=StockReason)
    note = String(max_length=500)


@storefront.command_handler(part_of=StockTransaction)
class StockAdjustmentHandler:
    @handle(AdjustStock)
    def adjust_stock(self, command):
        remaining = StockLedger().adjust_stock(
            product_id=command.product_id,
            quantity=command.quantity,
            reason=command.reason,
            note=command.note,
        )
        return {"product_id": str(command.product_id), "stock_quantity": remaining}


def stock_history(product_id) -> list[dict]:
    """The product's stock movements, newest first."""
    return [
        {
            "transaction_id": str(txn.id),
            "quantity_change": txn.quantity_change,
            "reason": txn.reason,
            "related_order_id": str(txn.related_order_id) if txn.related_order_id else None,
            "note": txn.note,
            "created_at": txn.created_at,
        }
        for txn in StockLedger().history(product_id)
    ]
