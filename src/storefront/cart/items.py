"""Cart item management — commands, handler and the cart view."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.catalogue.product import Product, SaleType
from storefront.domain import storefront
from storefront.errors import InsufficientStock, ProductUnavailable
from storefront.order.pricing import line_subtotal, to_money

MAX_KG_PER_LINE = 1000


@storefront.command(part_of="Cart")
class AddToCart:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Float(required=True)


@storefront.command(part_of="Cart")
class UpdateCartItem:
    """Set a line's quantity; zero or less removes the line."""

    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Float(required=True)


@storefront.command(part_of="Cart")
class RemoveFromCart:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.command(part_of="Cart")
class ClearCart:
    user_id = Identifier(required=True)


def _active_product(product_id) -> Product:
    product = current_domain.repository_for(Product).find_active(product_id)
    if product is None:
        raise ProductUnavailable(product_id)
    return product


def _check_stock(product, quantity):
    if quantity > product.stock_quantity:
        raise InsufficientStock(product.id, product.name, product.stock_quantity, quantity, product.sale_type)


@storefront.command_handler(part_of=Cart)
class CartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        product = _active_product(command.product_id)
        product.validate_quantity(command.quantity)
        if product.sale_type == SaleType.KG.value and command.quantity > MAX_KG_PER_LINE:
            raise ValidationError({"quantity": [f"Maximum quantity for weight-based products is {MAX_KG_PER_LINE} kg"]})

        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create(command.user_id)
        _check_stock(product, cart.quantity_of(product.id) + command.quantity)

        cart.add_item(product.id, command.quantity)
        repo.add(cart)
        return _line(product, cart.quantity_of(product.id))

    @handle(UpdateCartItem)
    def update_item(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create(command.user_id)

        if command.quantity <= 0:
            cart.remove_item(command.product_id)
            repo.add(cart)
            return {"product_id": str(command.product_id), "removed": True}

        product = _active_product(command.product_id)
        product.validate_quantity(command.quantity)
        _check_stock(product, command.quantity)

        cart.set_quantity(command.product_id, command.quantity)
        repo.add(cart)
        return _line(product, command.quantity)

    @handle(RemoveFromCart)
    def remove_item(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create(command.user_id)
        cart.remove_item(command.product_id)
        repo.add(cart)
        return {"product_id": str(command.product_id), "removed": True}

    @handle(ClearCart)
    def clear(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create(command.user_id)
        cart.clear()
        repo.add(cart)
        return {"cleared": True}


def _line(product, quantity):
    return {
        "product_id": str(product.id),
        "name": product.name,
        "quantity": quantity,
        "price": product.price,
        "sale_type": product.sale_type,
        "subtotal": float(line_subtotal(quantity, product.price)),
    }


def get_cart(user_id) -> dict:
    """The user's cart with live prices. Lines for deactivated products are left out."""
    cart = current_domain.repository_for(Cart).for_user(user_id)
    if cart is None:
        return {"cart_id": None, "items": [], "summary": {"total_items": 0.0, "total_price": 0.0, "items_count": 0}}

    products = current_domain.repository_for(Product)
    lines = []
    for item in cart.items:
        product = products.find_active(item.product_id)
        if product is None:
            continue
        line = _line(product, item.quantity)
        line["stock_quantity"] = product.stock_quantity
        line["image_url"] = product.image_url
        lines.append(line)

    total_price = to_money(sum((line_subtotal(line["quantity"], line["price"]) for line in lines), 0))
    return {
        "cart_id": str(cart.id),
        "items": lines,
        "summary": {
            "total_items": round(sum(line["quantity"] for line in lines), 3),
            "total_price": float(total_price),
            "items_count": len(lines),
        },
        "updated_at": cart.updated_at,
    }


def validate_cart(user_id) -> dict:
    """Lines whose quantity now exceeds the live stock."""
    cart = get_cart(user_id)
    invalid = [
        {
            "product_id": line["product_id"],
            "name": line["name"],
            "requested": line["quantity"],
            "available": line["stock_quantity"],
        }
        for line in cart["items"]
        if line["quantity"] > line["stock_quantity"]
    ]
    return {"valid": not invalid, "invalid_items": invalid}
