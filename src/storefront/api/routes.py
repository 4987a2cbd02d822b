"""FastAPI routes for the storefront: catalogue, categories, reviews, cart,
wishlist, addresses, identity, checkout, orders, shipping and the admin surface."""

from fastapi import APIRouter, Query
from protean.utils.globals import current_domain

from storefront.addresses.management import (
    AddAddress,
    RemoveAddress,
    SetDefaultAddress,
    UpdateAddress,
    list_addresses,
)
from storefront.api.schemas import (
    AddProductRequest,
    AddressIdResponse,
    AddressRequest,
    AddToCartRequest,
    AdjustStockRequest,
    CancelOrderRequest,
    CategoryIdResponse,
    CategoryRequest,
    ChangeStatusRequest,
    CreateGuestRequest,
    EditReviewRequest,
    GuestIdResponse,
    PlaceOrderRequest,
    ProductAvailabilityRequest,
    ProductCategoryRequest,
    ProductIdResponse,
    RegisterUserRequest,
    ReviewIdResponse,
    ReviewVisibilityRequest,
    StatusChangeResponse,
    StatusResponse,
    UpdateAddressRequest,
    UpdateCartItemRequest,
    UpdateCategoryRequest,
    UpdateProductRequest,
    UserIdResponse,
    VerifyUserResponse,
    WishlistItemRequest,
    WriteReviewRequest,
)
from storefront.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartItem, get_cart, validate_cart
from storefront.catalogue.browsing import get_product, list_products
from storefront.catalogue.category_management import (
    AddCategory,
    RemoveCategory,
    UpdateCategory,
    category_tree,
    get_category,
    list_categories,
)
from storefront.catalogue.management import AddProduct, SetProductAvailability, SetProductCategory, UpdateProductDetails
from storefront.errors import InvalidCheckoutIdentity
from storefront.identity.registration import CreateGuest, RegisterUser, VerifyUser
from storefront.order import queries
from storefront.order.placement import place_order
from storefront.order.status import cancel_own_order, change_order_status
from storefront.reviews.moderation import SetReviewVisibility, all_reviews
from storefront.reviews.writing import DeleteReview, EditReview, WriteReview, product_reviews
from storefront.shipping.regions import list_regions, quote_shipping
from storefront.stock.adjustment import AdjustStock, stock_history
from storefront.wishlist.entries import (
    AddToWishlist,
    ClearWishlist,
    RemoveFromWishlist,
    ToggleWishlist,
    get_wishlist,
    is_wishlisted,
)


def _require_one_owner(user_id, guest_id):
    if bool(user_id) == bool(guest_id):
        raise InvalidCheckoutIdentity()


def _address_json(address):
    return {
        "address_id": str(address.id),
        "first_name": address.first_name,
        "last_name": address.last_name,
        "phone_number": address.phone_number,
        "city": address.city,
        "region": address.region,
        "street": address.street,
        "is_default": address.is_default,
    }


# ---------------------------------------------------------------------------
# Catalogue Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.get("")
async def browse_products(page: int = 1, limit: int = 20, category_id: str | None = None):
    return list_products(page=page, limit=limit, category_id=category_id)


@product_router.get("/{product_id}")
async def product_detail(product_id: str):
    return get_product(product_id)


@product_router.get("/{product_id}/reviews")
async def reviews_of_product(product_id: str, page: int = 1, limit: int = 10):
    return product_reviews(product_id, page=page, limit=limit)


@product_router.post("/{product_id}/reviews", status_code=201, response_model=ReviewIdResponse)
async def write_review(product_id: str, body: WriteReviewRequest) -> ReviewIdResponse:
    command = WriteReview(product_id=product_id, **body.model_dump())
    return ReviewIdResponse(review_id=current_domain.process(command, asynchronous=False))


# ---------------------------------------------------------------------------
# Category Router
# ---------------------------------------------------------------------------
category_router = APIRouter(prefix="/categories", tags=["categories"])


@category_router.get("")
async def categories_as_tree():
    return category_tree()


@category_router.get("/list")
async def categories_as_list():
    return list_categories()


@category_router.get("/{category_id}")
async def category_detail(category_id: str):
    return get_category(category_id)


# ---------------------------------------------------------------------------
# Review Router
# ---------------------------------------------------------------------------
review_router = APIRouter(prefix="/reviews", tags=["reviews"])


@review_router.put("/{review_id}", response_model=StatusResponse)
async def edit_review(review_id: str, body: EditReviewRequest) -> StatusResponse:
    command = EditReview(review_id=review_id, **body.model_dump(exclude_none=True))
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@review_router.delete("/{review_id}", response_model=StatusResponse)
async def delete_review(review_id: str, user_id: str) -> StatusResponse:
    current_domain.process(DeleteReview(review_id=review_id, user_id=user_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Identity Router
# ---------------------------------------------------------------------------
identity_router = APIRouter(tags=["identity"])


@identity_router.post("/guests", status_code=201, response_model=GuestIdResponse)
async def create_guest(body: CreateGuestRequest) -> GuestIdResponse:
    command = CreateGuest(phone_number=body.phone_number, name=body.name)
    return GuestIdResponse(guest_id=current_domain.process(command, asynchronous=False))


@identity_router.post("/users", status_code=201, response_model=UserIdResponse)
async def register_user(body: RegisterUserRequest) -> UserIdResponse:
    command = RegisterUser(phone_number=body.phone_number, name=body.name)
    return UserIdResponse(user_id=current_domain.process(command, asynchronous=False))


@identity_router.post("/users/{user_id}/verify", response_model=VerifyUserResponse)
async def verify_user(user_id: str) -> VerifyUserResponse:
    result = current_domain.process(VerifyUser(user_id=user_id), asynchronous=False)
    return VerifyUserResponse(**result)


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("")
async def view_cart(user_id: str):
    return get_cart(user_id)


@cart_router.get("/validate")
async def check_cart(user_id: str):
    return validate_cart(user_id)


@cart_router.post("/items", status_code=201)
async def add_cart_item(body: AddToCartRequest):
    command = AddToCart(user_id=body.user_id, product_id=body.product_id, quantity=body.quantity)
    return current_domain.process(command, asynchronous=False)


@cart_router.put("/items/{product_id}")
async def update_cart_item(product_id: str, body: UpdateCartItemRequest):
    command = UpdateCartItem(user_id=body.user_id, product_id=product_id, quantity=body.quantity)
    return current_domain.process(command, asynchronous=False)


@cart_router.delete("/items/{product_id}")
async def remove_cart_item(product_id: str, user_id: str):
    return current_domain.process(RemoveFromCart(user_id=user_id, product_id=product_id), asynchronous=False)


@cart_router.delete("")
async def clear_cart(user_id: str):
    return current_domain.process(ClearCart(user_id=user_id), asynchronous=False)


# ---------------------------------------------------------------------------
# Wishlist Router
# ---------------------------------------------------------------------------
wishlist_router = APIRouter(prefix="/wishlist", tags=["wishlist"])


@wishlist_router.get("")
async def view_wishlist(user_id: str):
    return get_wishlist(user_id)


@wishlist_router.delete("")
async def clear_wishlist(user_id: str):
    return current_domain.process(ClearWishlist(user_id=user_id), asynchronous=False)


@wishlist_router.get("/{product_id}")
async def check_wishlist(product_id: str, user_id: str):
    return {"product_id": product_id, "in_wishlist": is_wishlisted(user_id, product_id)}


@wishlist_router.post("/{product_id}", status_code=201)
async def add_to_wishlist(product_id: str, body: WishlistItemRequest):
    return current_domain.process(AddToWishlist(user_id=body.user_id, product_id=product_id), asynchronous=False)


@wishlist_router.delete("/{product_id}")
async def remove_from_wishlist(product_id: str, user_id: str):
    return current_domain.process(RemoveFromWishlist(user_id=user_id, product_id=product_id), asynchronous=False)


@wishlist_router.patch("/{product_id}/toggle")
async def toggle_wishlist(product_id: str, body: WishlistItemRequest):
    return current_domain.process(ToggleWishlist(user_id=body.user_id, product_id=product_id), asynchronous=False)


# ---------------------------------------------------------------------------
# Address Router
# ---------------------------------------------------------------------------
address_router = APIRouter(prefix="/addresses", tags=["addresses"])


@address_router.get("")
async def user_addresses(user_id: str):
    return [_address_json(a) for a in list_addresses(user_id)]


@address_router.post("", status_code=201, response_model=AddressIdResponse)
async def add_address(body: AddressRequest) -> AddressIdResponse:
    command = AddAddress(**body.model_dump())
    return AddressIdResponse(address_id=current_domain.process(command, asynchronous=False))


@address_router.put("/{address_id}", response_model=StatusResponse)
async def update_address(address_id: str, body: UpdateAddressRequest) -> StatusResponse:
    command = UpdateAddress(address_id=address_id, **body.model_dump(exclude_none=True))
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@address_router.put("/{address_id}/default", response_model=StatusResponse)
async def set_default_address(address_id: str, user_id: str) -> StatusResponse:
    current_domain.process(SetDefaultAddress(address_id=address_id, user_id=user_id), asynchronous=False)
    return StatusResponse()


@address_router.delete("/{address_id}", response_model=StatusResponse)
async def remove_address(address_id: str, user_id: str) -> StatusResponse:
    current_domain.process(RemoveAddress(address_id=address_id, user_id=user_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201)
async def checkout(body: PlaceOrderRequest):
    payload = body.model_dump()
    items = [{"product_id": line["product_id"], "quantity": line["quantity"]} for line in payload.pop("items")]
    return place_order(items, **payload)


@order_router.get("")
async def my_orders(
    user_id: str | None = None,
    guest_id: str | None = None,
    page: int = 1,
    limit: int = 10,
):
    _require_one_owner(user_id, guest_id)
    if user_id:
        return queries.list_user_orders(user_id, page=page, limit=limit)
    return queries.list_guest_orders(guest_id, page=page, limit=limit)


@order_router.get("/{order_id}")
async def order_detail(order_id: str, user_id: str | None = None, guest_id: str | None = None):
    _require_one_owner(user_id, guest_id)
    return queries.get_order(order_id, user_id=user_id, guest_id=guest_id)


@order_router.get("/{order_id}/history")
async def order_history(order_id: str, user_id: str | None = None, guest_id: str | None = None):
    _require_one_owner(user_id, guest_id)
    queries.get_order(order_id, user_id=user_id, guest_id=guest_id)
    return queries.get_status_history(order_id)


@order_router.get("/{order_id}/invoice")
async def order_invoice(order_id: str, user_id: str | None = None, guest_id: str | None = None):
    _require_one_owner(user_id, guest_id)
    return queries.get_invoice(order_id, user_id=user_id, guest_id=guest_id)


@order_router.get("/{order_id}/guest-invoice")
async def guest_invoice(order_id: str, phone_number: str = Query(min_length=1)):
    return queries.get_guest_invoice(order_id, phone_number)


@order_router.post("/{order_id}/cancel", response_model=StatusChangeResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest) -> StatusChangeResponse:
    return StatusChangeResponse(**cancel_own_order(order_id, body.owner_id))


# ---------------------------------------------------------------------------
# Shipping Router
# ---------------------------------------------------------------------------
shipping_router = APIRouter(prefix="/shipping", tags=["shipping"])


@shipping_router.get("/regions")
async def regions():
    return list_regions()


@shipping_router.get("/calculate")
async def calculate(region: str, cart_total: float):
    return quote_shipping(region, cart_total)


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/admin", tags=["admin"])


@admin_router.post("/products", status_code=201, response_model=ProductIdResponse)
async def add_product(body: AddProductRequest) -> ProductIdResponse:
    command = AddProduct(**body.model_dump())
    return ProductIdResponse(product_id=current_domain.process(command, asynchronous=False))


@admin_router.put("/products/{product_id}", response_model=StatusResponse)
async def update_product(product_id: str, body: UpdateProductRequest) -> StatusResponse:
    command = UpdateProductDetails(product_id=product_id, **body.model_dump(exclude_none=True))
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@admin_router.put("/products/{product_id}/availability", response_model=StatusResponse)
async def set_product_availability(product_id: str, body: ProductAvailabilityRequest) -> StatusResponse:
    command = SetProductAvailability(product_id=product_id, is_active=body.is_active)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@admin_router.put("/products/{product_id}/category", response_model=StatusResponse)
async def set_product_category(product_id: str, body: ProductCategoryRequest) -> StatusResponse:
    command = SetProductCategory(product_id=product_id, category_id=body.category_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@admin_router.post("/products/{product_id}/stock")
async def adjust_stock(product_id: str, body: AdjustStockRequest):
    command = AdjustStock(product_id=product_id, quantity=body.quantity, reason=body.reason, note=body.note)
    return current_domain.process(command, asynchronous=False)


@admin_router.get("/products/{product_id}/stock")
async def product_stock_history(product_id: str):
    return stock_history(product_id)


@admin_router.post("/categories", status_code=201, response_model=CategoryIdResponse)
async def add_category(body: CategoryRequest) -> CategoryIdResponse:
    command = AddCategory(name=body.name, parent_id=body.parent_id)
    return CategoryIdResponse(category_id=current_domain.process(command, asynchronous=False))


@admin_router.put("/categories/{category_id}", response_model=StatusResponse)
async def update_category(category_id: str, body: UpdateCategoryRequest) -> StatusResponse:
    command = UpdateCategory(category_id=category_id, **body.model_dump(exclude_none=True))
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@admin_router.delete("/categories/{category_id}", response_model=StatusResponse)
async def remove_category(category_id: str) -> StatusResponse:
    current_domain.process(RemoveCategory(category_id=category_id), asynchronous=False)
    return StatusResponse()


@admin_router.get("/reviews")
async def every_review(product_id: str | None = None, page: int = 1, limit: int = 10):
    return all_reviews(product_id=product_id, page=page, limit=limit)


@admin_router.put("/reviews/{review_id}/hide")
async def set_review_visibility(review_id: str, body: ReviewVisibilityRequest):
    command = SetReviewVisibility(review_id=review_id, is_hidden=body.is_hidden)
    return current_domain.process(command, asynchronous=False)


@admin_router.get("/orders")
async def all_orders(status: str | None = None, page: int = 1, limit: int = 10):
    return queries.list_all_orders(status=status, page=page, limit=limit)


@admin_router.get("/orders/{order_id}")
async def admin_order_detail(order_id: str):
    return queries.get_order(order_id)


@admin_router.get("/orders/{order_id}/history")
async def admin_order_history(order_id: str):
    return queries.get_status_history(order_id)


@admin_router.put("/orders/{order_id}/status", response_model=StatusChangeResponse)
async def change_status(order_id: str, body: ChangeStatusRequest) -> StatusChangeResponse:
    return StatusChangeResponse(**change_order_status(order_id, body.new_status, actor_is_admin=True))


routers = (
    product_router,
    category_router,
    review_router,
    identity_router,
    cart_router,
    wishlist_router,
    address_router,
    order_router,
    shipping_router,
    admin_router,
)
