"""OrderStatusHistory — append-only log of every status an order passed through."""

from datetime import UTC, datetime

from protean.fields import DateTime, Identifier, String

from storefront.domain import storefront
from storefront.order.order import OrderStatus


@storefront.aggregate
class OrderStatusHistory:
    order_id = Identifier(required=True)
    old_status = String(choices=OrderStatus)  # None on the first row
    new_status = String(required=True, choices=OrderStatus)
    changed_at = DateTime()

    @classmethod
    def record(cls, order_id, old_status, new_status):
        return cls(
            order_id=order_id,
            old_status=old_status,
            new_status=new_status,
            changed_at=datetime.now(UTC),
        )


@storefront.repository(part_of=OrderStatusHistory)
class OrderStatusHistoryRepository:
    def for_order(self, order_id) -> list[OrderStatusHistory]:
        return self._dao.query.filter(order_id=str(order_id)).order_by("changed_at").all().items
