"""Order aggregate and its status state machine.

State machine:
    CREATED → CONFIRMED | SHIPPED | CANCELLED
    CONFIRMED → SHIPPED | CANCELLED
    SHIPPED → DELIVERED | CANCELLED
    DELIVERED, CANCELLED are terminal

Customers may only cancel an order that is still CREATED; administrators may
drive any listed transition. Items, prices and the shipping snapshot are
frozen once the order is placed.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, String, ValueObject

from storefront.domain import storefront
from storefront.errors import IllegalTransition
from storefront.order.events import OrderPlaced, OrderStatusChanged


class OrderStatus(Enum):
    CREATED = "Created"
    CONFIRMED = "Confirmed"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


_VALID_TRANSITIONS = {
    OrderStatus.CREATED: {OrderStatus.CONFIRMED, OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

_CUSTOMER_CANCELLABLE_STATES = {OrderStatus.CREATED}


def allowed_transitions(status) -> set[OrderStatus]:
    return _VALID_TRANSITIONS.get(OrderStatus(status), set())


@storefront.value_object(part_of="Order")
class ShippingDetails:
    """Where the order goes, copied at checkout and unaffected by later address edits."""

    first_name = String(required=True, max_length=100)
    last_name = String(max_length=100)
    phone_number = String(required=True, max_length=20)
    city = String(required=True, max_length=100)
    region = String(required=True, max_length=100)
    street = String(required=True, max_length=255)


@storefront.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    product_name = String(max_length=255)
    sale_type = String(max_length=10)
    quantity = Float(required=True, min_value=0.0)
    price_at_purchase = Float(required=True)
    cost_price_at_purchase = Float(required=True)


@storefront.aggregate
class Order:
    user_id = Identifier()
    guest_id = Identifier()
    status = String(choices=OrderStatus, default=OrderStatus.CREATED.value)
    items = HasMany(OrderItem)
    shipping = ValueObject(ShippingDetails)
    total_products_price = Float(default=0.0)
    shipping_fees = Float(default=0.0)
    discount_amount = Float(default=0.0)
    final_total = Float(default=0.0)
    created_at = DateTime()
    updated_at = DateTime()
    delivered_at = DateTime()

    @invariant.post
    def must_have_exactly_one_owner(self):
        if bool(self.user_id) == bool(self.guest_id):
            raise ValidationError({"owner": ["An order belongs to exactly one of a user or a guest"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, user_id, guest_id, shipping, totals, lines):
        """Create a new order in ``Created``.

        ``totals`` is an ``OrderTotals``; ``lines`` are dicts carrying the
        product snapshot (product_id, product_name, sale_type, quantity,
        price_at_purchase, cost_price_at_purchase).
        """
        now = datetime.now(UTC)
        order = cls(
            user_id=user_id,
            guest_id=guest_id,
            status=OrderStatus.CREATED.value,
            shipping=shipping,
            created_at=now,
            updated_at=now,
            **totals.as_floats(),
        )
        order.add_items([OrderItem(**line) for line in lines])
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                user_id=str(user_id) if user_id else None,
                guest_id=str(guest_id) if guest_id else None,
                item_count=len(lines),
                total_products_price=order.total_products_price,
                shipping_fees=order.shipping_fees,
                final_total=order.final_total,
                region=shipping.region,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        if target_status not in allowed_transitions(self.status):
            raise IllegalTransition(self.status, target_status.value)

    def transition_to(self, target_status):
        """Move to ``target_status``. Returns the previous status value."""
        target_status = OrderStatus(target_status)
        self._assert_can_transition(target_status)

        old_status = self.status
        now = datetime.now(UTC)
        self.status = target_status.value
        self.updated_at = now
        if target_status == OrderStatus.DELIVERED:
            self.delivered_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                old_status=old_status,
                new_status=target_status.value,
                changed_at=now,
            )
        )
        return old_status

    def cancel_by_customer(self):
        if OrderStatus(self.status) not in _CUSTOMER_CANCELLABLE_STATES:
            raise IllegalTransition(self.status, OrderStatus.CANCELLED.value)
        return self.transition_to(OrderStatus.CANCELLED)

    def claim_for(self, user_id):
        """Move a guest order onto the user account that verified the guest's phone."""
        if not self.guest_id:
            raise ValidationError({"owner": ["Only guest orders can be claimed"]})
        with atomic_change(self):
            self.user_id = str(user_id)
            self.guest_id = None
            self.updated_at = datetime.now(UTC)

    def contains_product(self, product_id) -> bool:
        return any(str(item.product_id) == str(product_id) for item in self.items)

    def belongs_to(self, user_id=None, guest_id=None) -> bool:
        if user_id:
            return str(self.user_id) == str(user_id)
        if guest_id:
            return str(self.guest_id) == str(guest_id)
        return False


@storefront.repository(part_of=Order)
class OrderRepository:
    def for_user(self, user_id, offset=0, limit=10):
        return self._dao.query.filter(user_id=str(user_id)).order_by("-created_at").offset(offset).limit(limit).all()

    def for_guest(self, guest_id, offset=0, limit=10):
        return self._dao.query.filter(guest_id=str(guest_id)).order_by("-created_at").offset(offset).limit(limit).all()

    def listing(self, status=None, offset=0, limit=10):
        query = self._dao.query
        if status:
            query = query.filter(status=status)
        return query.order_by("-created_at").offset(offset).limit(limit).all()

    def reassign_guests_to_user(self, guest_ids, user_id) -> int:
        """Re-own every order of ``guest_ids`` to ``user_id``. Returns how many moved."""
        if not guest_ids:
            return 0
        orders = self._dao.query.filter(guest_id__in=[str(g) for g in guest_ids]).limit(None).all().items
        for order in orders:
            order.claim_for(user_id)
            self.add(order)
        return len(orders)

    def has_delivered(self, user_id, product_id) -> bool:
        """Whether ``user_id`` has received ``product_id`` in any delivered order."""
        delivered = self._dao.query.filter(user_id=str(user_id), status=OrderStatus.DELIVERED.value)
        return any(order.contains_product(product_id) for order in delivered.limit(None).all().items)
