"""Order placement — the all-or-nothing checkout transaction.

``PlaceOrderHandler`` runs inside the unit of work Protean opens around
every handler: the identity updates, stock reservations and audit rows,
order, payment, first history row and the cart clear-out either all commit
together or none of them do. ``place_order`` is the entry point for callers;
it lets business errors through unchanged and turns anything else into
``OrderPlacementFailed`` once the transaction has rolled back.
"""

import json
import time
from collections import OrderedDict

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.addresses.address import Address
from storefront.cart.cart import Cart
from storefront.catalogue.product import STOCK_PRECISION, Product, quantize_quantity
from storefront.config import CHECKOUT_TIMEOUT_SECONDS, DEFAULT_CITY
from storefront.domain import storefront
from storefront.errors import (
    AddressNotFound,
    CheckoutTimedOut,
    EmptyCart,
    InsufficientStock,
    OrderPlacementFailed,
    ProductUnavailable,
)
from storefront.identity.reconciler import CheckoutIdentity, IdentityReconciler
from storefront.order.history import OrderStatusHistory
from storefront.order.order import Order, OrderStatus, ShippingDetails
from storefront.order.payment import Payment
from storefront.order.pricing import price_order
from storefront.shipping.regions import validate_region
from storefront.stock.ledger import StockLedger
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@storefront.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier()
    guest_id = Identifier()
    items = Text(required=True)  # JSON: [{"product_id": ..., "quantity": ...}]
    address_id = Identifier()
    first_name = String(max_length=100)
    last_name = String(max_length=100)
    phone_number = String(max_length=20)
    region = String(max_length=100)
    street = String(max_length=255)


class Deadline:
    """Wall-clock budget for one checkout."""

    def __init__(self, seconds):
        self.seconds = seconds
        self.expires_at = time.monotonic() + seconds

    def check(self):
        if time.monotonic() > self.expires_at:
            raise CheckoutTimedOut(self.seconds)


def merge_items(items):
    """Collapse repeated products into one line, summing quantities. Keeps first-seen order.

    Quantities finer than stock precision are rejected rather than rounded, so
    the order, the stock decrement and the audit row all carry the same value.
    """
    merged = OrderedDict()
    for item in items or []:
        product_id = str(item.get("product_id") or "")
        if not product_id:
            raise ValidationError({"items": ["Every item needs a product_id"]})
        try:
            quantity = float(item.get("quantity"))
        except (TypeError, ValueError) as exc:
            raise ValidationError({"items": [f"Invalid quantity for product {product_id}"]}) from exc
        if quantity <= 0:
            raise ValidationError({"items": [f"Quantity for product {product_id} must be positive"]})
        if quantize_quantity(quantity) != quantity:
            raise ValidationError(
                {"items": [f"Quantity for product {product_id} is limited to {STOCK_PRECISION} decimal places"]}
            )
        merged[product_id] = quantize_quantity(merged.get(product_id, 0.0) + quantity)
    return [{"product_id": pid, "quantity": qty} for pid, qty in merged.items()]


def _full_name(first_name, last_name):
    return f"{first_name or ''} {last_name or ''}".strip() or None


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        deadline = Deadline(CHECKOUT_TIMEOUT_SECONDS)

        raw_items = json.loads(command.items) if isinstance(command.items, str) else command.items
        identity = CheckoutIdentity(
            user_id=command.user_id,
            guest_id=command.guest_id,
            phone_number=command.phone_number,
            full_name=_full_name(command.first_name, command.last_name),
        )
        if not raw_items:
            raise EmptyCart()
        identity.validate()

        items = merge_items(raw_items)
        buyer = IdentityReconciler().reconcile(identity)

        lines = self._snapshot_lines(items)
        shipping = self._resolve_shipping(command)
        totals = price_order(
            [(line["quantity"], line["price_at_purchase"]) for line in lines],
            region=shipping.region,
        )
        deadline.check()

        order = Order.place(
            user_id=buyer.user_id,
            guest_id=buyer.guest_id,
            shipping=shipping,
            totals=totals,
            lines=lines,
        )
        current_domain.repository_for(Order).add(order)

        ledger = StockLedger()
        for line in lines:
            ledger.reserve_stock(line["product_id"], line["quantity"], order.id)
            deadline.check()

        current_domain.repository_for(Payment).add(Payment.cash_on_delivery(order.id, order.final_total))
        current_domain.repository_for(OrderStatusHistory).add(
            OrderStatusHistory.record(order.id, None, OrderStatus.CREATED.value)
        )

        # Only a signed-in buyer checked out their persisted cart
        if identity.user_id:
            carts = current_domain.repository_for(Cart)
            cart = carts.for_user(identity.user_id)
            if cart is not None and cart.items:
                cart.clear()
                carts.add(cart)

        deadline.check()
        logger.info(
            "order_placed",
            order_id=str(order.id),
            user_id=buyer.user_id,
            guest_id=buyer.guest_id,
            items=len(lines),
            final_total=order.final_total,
        )
        return {
            "order_id": str(order.id),
            "status": order.status,
            "user_id": buyer.user_id,
            "guest_id": buyer.guest_id,
            **totals.as_floats(),
            "items_count": len(lines),
            "created_at": order.created_at,
        }

    def _snapshot_lines(self, items):
        products = current_domain.repository_for(Product)
        lines = []
        for item in items:
            product = products.find_active(item["product_id"])
            if product is None:
                raise ProductUnavailable(item["product_id"])
            product.validate_quantity(item["quantity"])
            if item["quantity"] > product.stock_quantity:
                raise InsufficientStock(
                    product.id, product.name, product.stock_quantity, item["quantity"], product.sale_type
                )
            lines.append(
                {
                    "product_id": str(product.id),
                    "product_name": product.name,
                    "sale_type": product.sale_type,
                    "quantity": item["quantity"],
                    "price_at_purchase": product.price,
                    "cost_price_at_purchase": product.cost_price,
                }
            )
        return lines

    def _resolve_shipping(self, command) -> ShippingDetails:
        if command.address_id:
            # Saved addresses belong to signed-in users only
            address = None
            if command.user_id:
                address = current_domain.repository_for(Address).find_owned(command.address_id, command.user_id)
            if address is None:
                raise AddressNotFound(command.address_id)
            return ShippingDetails(
                first_name=address.first_name,
                last_name=address.last_name,
                phone_number=address.phone_number,
                city=address.city or DEFAULT_CITY,
                region=address.region,
                street=address.street,
            )

        missing = [
            name for name in ("first_name", "phone_number", "region", "street") if not getattr(command, name)
        ]
        if missing:
            raise ValidationError({name: ["Required when no saved address is selected"] for name in missing})
        validate_region(command.region)
        return ShippingDetails(
            first_name=command.first_name,
            last_name=command.last_name or "",
            phone_number=command.phone_number,
            city=DEFAULT_CITY,
            region=command.region,
            street=command.street,
        )


def place_order(
    items,
    user_id=None,
    guest_id=None,
    address_id=None,
    first_name=None,
    last_name=None,
    phone_number=None,
    region=None,
    street=None,
):
    """Place an order and return its summary.

    Raises the named business errors (``EmptyCart``, ``InvalidCheckoutIdentity``,
    ``ProductUnavailable``, ``InsufficientStock``, ``AddressNotFound``) or a
    Protean ``ValidationError`` for bad input. Any other failure surfaces as
    ``OrderPlacementFailed``; ``CheckoutTimedOut`` means the outcome should be
    checked in the order list before retrying.
    """
    command = PlaceOrder(
        user_id=user_id,
        guest_id=guest_id,
        items=json.dumps(items),
        address_id=address_id,
        first_name=first_name,
        last_name=last_name,
        phone_number=phone_number,
        region=region,
        street=street,
    )
    try:
        return current_domain.process(command, asynchronous=False)
    except (ValidationError, ObjectNotFoundError, OrderPlacementFailed):
        raise
    except Exception as exc:
        logger.exception("order_placement_failed", user_id=user_id, guest_id=guest_id, error=str(exc))
        raise OrderPlacementFailed() from exc
