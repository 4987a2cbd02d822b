"""StockTransaction aggregate — the append-only audit log of stock movements.

For every product, the signed ``quantity_change`` values sum to the
difference between its current ``stock_quantity`` and its starting stock.
Rows are never updated or deleted.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Float, Identifier, String

from storefront.domain import storefront
from storefront.stock.events import StockAdjusted


class StockReason(Enum):
    PURCHASE = "purchase"
    ADMIN_ADD = "admin_add"
    ADMIN_REMOVE = "admin_remove"
    CANCELLATION = "cancellation"


@storefront.aggregate
class StockTransaction:
    product_id = Identifier(required=True)
    quantity_change = Float(required=True)
    reason = String(required=True, choices=StockReason)
    related_order_id = Identifier()
    note = String(max_length=500)
    created_at = DateTime()

    @classmethod
    def record(cls, product_id, quantity_change, reason, related_order_id=None, note=None):
        return cls(
            product_id=product_id,
            quantity_change=quantity_change,
            reason=reason.value,
            related_order_id=related_order_id,
            note=note,
            created_at=datetime.now(UTC),
        )

    @classmethod
    def adjustment(cls, product_id, quantity_change, reason, new_stock_quantity, note=None):
        """An administrator's manual correction, announced as ``StockAdjusted``."""
        txn = cls.record(product_id, quantity_change, reason, note=note)
        txn.raise_(
            StockAdjusted(
                product_id=str(product_id),
                quantity_change=quantity_change,
                reason=reason.value,
                new_stock_quantity=new_stock_quantity,
                adjusted_at=txn.created_at,
            )
        )
        return txn


@storefront.repository(part_of=StockTransaction)
class StockTransactionRepository:
    def for_product(self, product_id) -> list[StockTransaction]:
        return self._dao.query.filter(product_id=str(product_id)).order_by("-created_at").all().items

    def for_order(self, order_id) -> list[StockTransaction]:
        return self._dao.query.filter(related_order_id=str(order_id)).all().items
