"""Payment aggregate — one cash-on-delivery payment per order."""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Float, Identifier, String

from storefront.domain import storefront


class PaymentMethod(Enum):
    CASH_ON_DELIVERY = "cash_on_delivery"


class PaymentStatus(Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


@storefront.aggregate
class Payment:
    order_id = Identifier(required=True, unique=True)
    method = String(choices=PaymentMethod, default=PaymentMethod.CASH_ON_DELIVERY.value)
    amount = Float(required=True, min_value=0.0)
    status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def cash_on_delivery(cls, order_id, amount):
        now = datetime.now(UTC)
        return cls(
            order_id=order_id,
            method=PaymentMethod.CASH_ON_DELIVERY.value,
            amount=amount,
            status=PaymentStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )

    def complete(self):
        self.status = PaymentStatus.COMPLETED.value
        self.updated_at = datetime.now(UTC)

    def cancel(self):
        self.status = PaymentStatus.CANCELLED.value
        self.updated_at = datetime.now(UTC)


@storefront.repository(part_of=Payment)
class PaymentRepository:
    def for_order(self, order_id) -> Payment | None:
        return self._dao.query.filter(order_id=str(order_id)).all().first
