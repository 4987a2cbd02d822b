"""Business errors raised by the storefront.

Each error builds its messages in the ``{"field": ["message"]}`` shape that
Protean's exceptions carry, so API handlers can render them uniformly.
Everything except ``OrderPlacementFailed`` means "fix your input";
``OrderPlacementFailed`` means "nothing was written, try again".
"""

from protean.exceptions import ObjectNotFoundError, ValidationError


class EmptyCart(ValidationError):
    def __init__(self):
        super().__init__({"items": ["Order must contain at least one item"]})


class InvalidCheckoutIdentity(ValidationError):
    def __init__(self):
        super().__init__({"identity": ["Either user_id or guest_id must be provided, but not both"]})


class ProductUnavailable(ValidationError):
    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__({"product_id": [f"Product {product_id} not found or unavailable"]})


class InsufficientStock(ValidationError):
    """Requested quantity exceeds what is on hand.

    Raised both by the pre-check and by the guarded decrement losing a race,
    with the same message in both cases.
    """

    def __init__(self, product_id, name, available, requested, sale_type=None):
        self.product_id = product_id
        self.name = name
        self.available = available
        self.requested = requested
        unit = f" {sale_type}" if sale_type else ""
        super().__init__({"quantity": [f"Insufficient stock for {name}. Available: {available:g}{unit}"]})


class AddressNotFound(ObjectNotFoundError):
    def __init__(self, address_id):
        self.address_id = address_id
        super().__init__({"address_id": ["Address not found or does not belong to user"]})


class OrderNotFound(ObjectNotFoundError):
    def __init__(self, order_id):
        self.order_id = order_id
        super().__init__({"order_id": ["Order not found"]})


class IllegalTransition(ValidationError):
    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__({"status": [f"Cannot change status from {current} to {target}"]})


class OrderPlacementFailed(Exception):
    """The placement transaction was rolled back for a reason the buyer cannot fix."""

    def __init__(self, message="Order placement failed, please try again"):
        self.message = message
        super().__init__(message)


class CheckoutTimedOut(OrderPlacementFailed):
    def __init__(self, seconds):
        self.seconds = seconds
        super().__init__(
            f"Checkout did not finish within {seconds:g}s; check your orders before placing it again"
        )


class CategoryNotFound(ObjectNotFoundError):
    def __init__(self, category_id):
        self.category_id = category_id
        super().__init__({"category_id": ["Category not found"]})


class ReviewNotFound(ObjectNotFoundError):
    def __init__(self, review_id):
        self.review_id = review_id
        super().__init__({"review_id": ["Review not found"]})
