"""Order read side — listings, order detail, status history and invoices.

Reads go straight to the repositories; nothing here writes. An order the
caller may not see is reported exactly like a missing one.
"""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.config import DEFAULT_PAGE_SIZE, STORE_CITY, STORE_NAME, STORE_PHONE
from storefront.errors import OrderNotFound
from storefront.identity.buyer import Guest, User
from storefront.order.history import OrderStatusHistory
from storefront.order.order import Order
from storefront.order.payment import Payment
from storefront.order.pricing import line_subtotal
from storefront.utils.pagination import paged, paginate


def _summary(order):
    return {
        "order_id": str(order.id),
        "status": order.status,
        "total_products_price": order.total_products_price,
        "shipping_fees": order.shipping_fees,
        "discount_amount": order.discount_amount,
        "final_total": order.final_total,
        "created_at": order.created_at,
        "delivered_at": order.delivered_at,
    }


def _find(repo_cls, identifier):
    if not identifier:
        return None
    try:
        return current_domain.repository_for(repo_cls).get(identifier)
    except ObjectNotFoundError:
        return None


def _load(order_id) -> Order:
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError as exc:
        raise OrderNotFound(order_id) from exc


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------
def list_user_orders(user_id, page=1, limit=DEFAULT_PAGE_SIZE):
    page, limit, offset = paginate(page, limit)
    results = current_domain.repository_for(Order).for_user(user_id, offset=offset, limit=limit)
    return paged([_summary(o) for o in results.items], results.total, page, limit)


def list_guest_orders(guest_id, page=1, limit=DEFAULT_PAGE_SIZE):
    page, limit, offset = paginate(page, limit)
    results = current_domain.repository_for(Order).for_guest(guest_id, offset=offset, limit=limit)
    return paged([_summary(o) for o in results.items], results.total, page, limit)


def list_all_orders(status=None, page=1, limit=DEFAULT_PAGE_SIZE):
    """Admin listing, newest first, optionally filtered by status."""
    page, limit, offset = paginate(page, limit)
    results = current_domain.repository_for(Order).listing(status=status, offset=offset, limit=limit)

    items = []
    for order in results.items:
        user = _find(User, order.user_id)
        guest = _find(Guest, order.guest_id)
        items.append(
            {
                **_summary(order),
                "user_name": user.name if user else None,
                "user_phone": user.phone_number if user else None,
                "guest_name": guest.name if guest else None,
                "guest_phone": guest.phone_number if guest else None,
                "shipping_city": order.shipping.city,
                "shipping_street": order.shipping.street,
                "shipping_phone": order.shipping.phone_number,
            }
        )
    return paged(items, results.total, page, limit)


# ---------------------------------------------------------------------------
# Single order
# ---------------------------------------------------------------------------
def authorize(order, user_id=None, guest_id=None):
    """Raise ``OrderNotFound`` unless the caller may read ``order``.

    Callers passing neither id are trusted (administrative reads). A guest
    may also read an order they placed that was filed under another owner,
    recognised by the guest's phone matching the shipping phone.
    """
    if user_id:
        if str(order.user_id) != str(user_id):
            raise OrderNotFound(order.id)
    elif guest_id and str(order.guest_id) != str(guest_id):
        guest = _find(Guest, guest_id)
        if guest is None or not guest.phone_number or guest.phone_number != order.shipping.phone_number:
            raise OrderNotFound(order.id)


def _item_lines(order):
    return [
        {
            "product_id": str(item.product_id),
            "name": item.product_name or "Unknown Product",
            "sale_type": item.sale_type,
            "quantity": item.quantity,
            "unit_price": item.price_at_purchase,
            "price_at_purchase": item.price_at_purchase,
            "cost_price_at_purchase": item.cost_price_at_purchase,
            "subtotal": float(line_subtotal(item.quantity, item.price_at_purchase)),
        }
        for item in order.items
    ]


def _payment(order_id):
    payment = current_domain.repository_for(Payment).for_order(order_id)
    if payment is None:
        return None
    return {
        "payment_id": str(payment.id),
        "method": payment.method,
        "amount": payment.amount,
        "status": payment.status,
    }


def _shipping(order):
    shipping = order.shipping
    return {
        "first_name": shipping.first_name,
        "last_name": shipping.last_name,
        "city": shipping.city,
        "region": shipping.region,
        "street": shipping.street,
        "phone": shipping.phone_number,
    }


def get_order(order_id, user_id=None, guest_id=None):
    order = _load(order_id)
    authorize(order, user_id=user_id, guest_id=guest_id)
    return {
        **_summary(order),
        "user_id": str(order.user_id) if order.user_id else None,
        "guest_id": str(order.guest_id) if order.guest_id else None,
        "shipping_address": _shipping(order),
        "items": _item_lines(order),
        "payment": _payment(order.id),
    }


def get_status_history(order_id):
    """Every status the order passed through, oldest first."""
    order = _load(order_id)
    return [
        {
            "history_id": str(row.id),
            "old_status": row.old_status,
            "new_status": row.new_status,
            "changed_at": row.changed_at,
        }
        for row in current_domain.repository_for(OrderStatusHistory).for_order(order.id)
    ]


# ---------------------------------------------------------------------------
# Invoices
# ---------------------------------------------------------------------------
def invoice_number(order_id):
    return f"INV-{str(order_id).zfill(6)}"


def _invoice(order):
    user = _find(User, order.user_id)
    guest = _find(Guest, order.guest_id)
    shipping = order.shipping
    shipping_name = f"{shipping.first_name or ''} {shipping.last_name or ''}".strip()

    return {
        "store": {"name": STORE_NAME, "phone": STORE_PHONE, "city": STORE_CITY},
        "invoice_number": invoice_number(order.id),
        "order_id": str(order.id),
        "status": order.status,
        "created_at": order.created_at,
        "delivered_at": order.delivered_at,
        "customer": {
            "name": (user.name if user else None) or (guest.name if guest else None) or shipping_name,
            "phone": (user.phone_number if user else None)
            or (guest.phone_number if guest else None)
            or shipping.phone_number,
        },
        "shipping_address": _shipping(order),
        "items": [
            {k: line[k] for k in ("product_id", "name", "sale_type", "quantity", "unit_price", "subtotal")}
            for line in _item_lines(order)
        ],
        "totals": {
            "products_total": order.total_products_price,
            "shipping_fees": order.shipping_fees,
            "discount": order.discount_amount,
            "final_total": order.final_total,
        },
        "payment": _payment(order.id),
    }


def get_invoice(order_id, user_id=None, guest_id=None):
    order = _load(order_id)
    authorize(order, user_id=user_id, guest_id=guest_id)
    return _invoice(order)


def get_guest_invoice(order_id, phone_number):
    """Invoice for a buyer who only knows the order id and their phone.

    The phone match against the shipping, user or guest phone is the whole
    authorisation check. Anyone holding both values can read the invoice;
    guest checkout accepts that in exchange for not needing an account.
    """
    order = _load(order_id)
    user = _find(User, order.user_id)
    guest = _find(Guest, order.guest_id)
    phones = {
        order.shipping.phone_number,
        user.phone_number if user else None,
        guest.phone_number if guest else None,
    }
    if not phone_number or phone_number not in phones:
        raise OrderNotFound(order_id)
    return _invoice(order)
