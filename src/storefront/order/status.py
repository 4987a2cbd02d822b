"""Order status changes — commands and handler.

Each transition commits together with its side effects: the history row
(always), stock restored with ``cancellation`` audit rows and the payment
cancelled when an order is cancelled, the payment completed when it is
delivered.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.errors import IllegalTransition, OrderNotFound
from storefront.order.history import OrderStatusHistory
from storefront.order.order import Order, OrderStatus
from storefront.order.payment import Payment
from storefront.stock.ledger import StockLedger
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@storefront.command(part_of="Order")
class ChangeOrderStatus:
    order_id = Identifier(required=True)
    new_status = String(required=True, choices=OrderStatus)
    actor_is_admin = Boolean(default=True)


@storefront.command(part_of="Order")
class CancelOwnOrder:
    """A buyer cancelling their own order; only allowed while it is still ``Created``."""

    order_id = Identifier(required=True)
    owner_id = Identifier(required=True)  # user_id or guest_id


def load_order(order_id) -> Order:
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError as exc:
        raise OrderNotFound(order_id) from exc


@storefront.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(ChangeOrderStatus)
    def change_status(self, command):
        order = load_order(command.order_id)
        target = OrderStatus(command.new_status)

        if command.actor_is_admin is False:
            if target != OrderStatus.CANCELLED:
                raise IllegalTransition(order.status, target.value)
            old_status = order.cancel_by_customer()
        else:
            old_status = order.transition_to(target)

        return self._commit_transition(order, old_status)

    @handle(CancelOwnOrder)
    def cancel_own_order(self, command):
        order = load_order(command.order_id)
        # Someone else's order does not exist as far as the caller is concerned
        if not (order.belongs_to(user_id=command.owner_id) or order.belongs_to(guest_id=command.owner_id)):
            raise OrderNotFound(command.order_id)

        old_status = order.cancel_by_customer()
        return self._commit_transition(order, old_status)

    def _commit_transition(self, order, old_status):
        new_status = OrderStatus(order.status)
        current_domain.repository_for(Order).add(order)
        current_domain.repository_for(OrderStatusHistory).add(
            OrderStatusHistory.record(order.id, old_status, new_status.value)
        )

        payments = current_domain.repository_for(Payment)
        payment = payments.for_order(order.id)

        if new_status == OrderStatus.CANCELLED:
            ledger = StockLedger()
            for item in order.items:
                ledger.restore_stock(item.product_id, item.quantity, order.id)
            if payment is not None:
                payment.cancel()
                payments.add(payment)
        elif new_status == OrderStatus.DELIVERED and payment is not None:
            payment.complete()
            payments.add(payment)

        logger.info(
            "order_status_changed",
            order_id=str(order.id),
            old_status=old_status,
            new_status=new_status.value,
        )
        return {"order_id": str(order.id), "old_status": old_status, "new_status": new_status.value}


def change_order_status(order_id, new_status, actor_is_admin=True):
    return current_domain.process(
        ChangeOrderStatus(order_id=order_id, new_status=new_status, actor_is_admin=actor_is_admin),
        asynchronous=False,
    )


def cancel_own_order(order_id, owner_id):
    return current_domain.process(CancelOwnOrder(order_id=order_id, owner_id=owner_id), asynchronous=False)
