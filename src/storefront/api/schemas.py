"""Pydantic request/response schemas for the storefront API.

These are external contracts — separate from the internal Protean commands.
Caller identity (user id, guest id) is supplied by the authentication
service in front of this API.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------
class AddProductRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    price: float = Field(ge=0)
    cost_price: float = Field(ge=0)
    sale_type: str = Field(default="piece", pattern="^(kg|piece)$")
    stock_quantity: float = Field(default=0, ge=0)
    image_url: str | None = None
    category_id: str | None = None


class UpdateProductRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    price: float | None = Field(default=None, ge=0)
    cost_price: float | None = Field(default=None, ge=0)
    sale_type: str | None = Field(default=None, pattern="^(kg|piece)$")
    image_url: str | None = None


class ProductAvailabilityRequest(BaseModel):
    is_active: bool


class ProductCategoryRequest(BaseModel):
    category_id: str | None = None


class CategoryRequest(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    parent_id: str | None = None


class UpdateCategoryRequest(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    parent_id: str | None = None
    move_to_root: bool = False


class CategoryIdResponse(BaseModel):
    category_id: str


class AdjustStockRequest(BaseModel):
    quantity: float = Field(gt=0)
    reason: str = Field(pattern="^(admin_add|admin_remove)$")
    note: str | None = Field(default=None, max_length=500)


class ProductIdResponse(BaseModel):
    product_id: str


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------
class CreateGuestRequest(BaseModel):
    phone_number: str | None = Field(default=None, max_length=20)
    name: str | None = Field(default=None, max_length=100)


class RegisterUserRequest(BaseModel):
    phone_number: str = Field(min_length=1, max_length=20)
    name: str | None = Field(default=None, max_length=100)


class GuestIdResponse(BaseModel):
    guest_id: str


class UserIdResponse(BaseModel):
    user_id: str


class VerifyUserResponse(BaseModel):
    user_id: str
    claimed_orders: int


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    user_id: str
    product_id: str
    quantity: float = Field(gt=0)


class UpdateCartItemRequest(BaseModel):
    user_id: str
    quantity: float


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------
class AddressRequest(BaseModel):
    user_id: str
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    phone_number: str = Field(min_length=1, max_length=20)
    region: str = Field(min_length=1, max_length=100)
    street: str = Field(min_length=1, max_length=255)
    is_default: bool = False


class UpdateAddressRequest(BaseModel):
    user_id: str
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    phone_number: str | None = Field(default=None, min_length=1, max_length=20)
    region: str | None = Field(default=None, min_length=1, max_length=100)
    street: str | None = Field(default=None, min_length=1, max_length=255)
    is_default: bool | None = None


class AddressIdResponse(BaseModel):
    address_id: str


# ---------------------------------------------------------------------------
# Wishlist and reviews
# ---------------------------------------------------------------------------
class WishlistItemRequest(BaseModel):
    user_id: str


class WriteReviewRequest(BaseModel):
    user_id: str
    rating: int = Field(ge=1, le=5)
    comment: str = Field(min_length=1, max_length=2000)


class EditReviewRequest(BaseModel):
    user_id: str
    rating: int | None = Field(default=None, ge=1, le=5)
    comment: str | None = Field(default=None, min_length=1, max_length=2000)


class ReviewIdResponse(BaseModel):
    review_id: str


class ReviewVisibilityRequest(BaseModel):
    is_hidden: bool


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderLineSchema(BaseModel):
    product_id: str
    quantity: float = Field(gt=0)


class PlaceOrderRequest(BaseModel):
    user_id: str | None = None
    guest_id: str | None = None
    items: list[OrderLineSchema]
    address_id: str | None = None
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    phone_number: str | None = Field(default=None, max_length=20)
    region: str | None = Field(default=None, max_length=100)
    street: str | None = Field(default=None, max_length=255)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "guest_id": "8a7c3e0e-2a1b-4b61-9d3e-1f0c2b9a7d11",
                    "items": [{"product_id": "5b0e3c52-7f0d-4c1e-8d8a-3c2f6a9e4b10", "quantity": 2}],
                    "first_name": "Ahmad",
                    "last_name": "Saleh",
                    "phone_number": "0599000001",
                    "region": "عتيل - عتيل",
                    "street": "Main street",
                }
            ]
        }
    }


class CancelOrderRequest(BaseModel):
    owner_id: str


class ChangeStatusRequest(BaseModel):
    new_status: str = Field(pattern="^(Confirmed|Shipped|Delivered|Cancelled)$")


class StatusChangeResponse(BaseModel):
    order_id: str
    old_status: str
    new_status: str


class StatusResponse(BaseModel):
    status: str = "ok"
