"""Catalogue administration: commands and handler."""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, Float, Identifier, String
from protean.utils.globals import current_domain

from storefront.catalogue.category import Category
from storefront.catalogue.product import Product, SaleType
from storefront.domain import storefront
from storefront.errors import CategoryNotFound, ProductUnavailable
from storefront.stock.ledger import StockLedger


@storefront.command(part_of="Product")
class AddProduct:
    name = String(required=True, max_length=255)
    description = String(max_length=2000)
    price = Float(required=True, min_value=0.0)
    cost_price = Float(required=True, min_value=0.0)
    sale_type = String(choices=SaleType, default=SaleType.PIECE.value)
    stock_quantity = Float(default=0.0, min_value=0.0)
    image_url = String(max_length=500)
    category_id = Identifier()


@storefront.command(part_of="Product")
class UpdateProductDetails:
    product_id = Identifier(required=True)
    name = String(max_length=255)
    description = String(max_length=2000)
    price = Float(min_value=0.0)
    cost_price = Float(min_value=0.0)
    sale_type = String(choices=SaleType)
    image_url = String(max_length=500)


@storefront.command(part_of="Product")
class SetProductCategory:
    product_id = Identifier(required=True)
    category_id = Identifier()  # None takes the product out of every category


@storefront.command(part_of="Product")
class SetProductAvailability:
    product_id = Identifier(required=True)
    is_active = Boolean(required=True)


def _load(repo, product_id) -> Product:
    try:
        return repo.get(product_id)
    except ObjectNotFoundError as exc:
        raise ProductUnavailable(product_id) from exc


def _require_category(category_id):
    if category_id and current_domain.repository_for(Category).find(category_id) is None:
        raise CategoryNotFound(category_id)


@storefront.command_handler(part_of=Product)
class CatalogueHandler:
    @handle(AddProduct)
    def add_product(self, command):
        _require_category(command.category_id)
        product = Product.add(
            name=command.name,
            description=command.description,
            price=command.price,
            cost_price=command.cost_price,
            sale_type=command.sale_type or SaleType.PIECE.value,
            stock_quantity=command.stock_quantity or 0.0,
            image_url=command.image_url,
            category_id=str(command.category_id) if command.category_id else None,
        )
        current_domain.repository_for(Product).add(product)
        StockLedger().record_opening_stock(product.id, product.stock_quantity)
        return str(product.id)

    @handle(UpdateProductDetails)
    def update_details(self, command):
        fields = {
            name: getattr(command, name)
            for name in ("name", "description", "price", "cost_price", "sale_type", "image_url")
            if getattr(command, name) is not None
        }
        if not fields:
            raise ValidationError({"product": ["Nothing to update"]})

        repo = current_domain.repository_for(Product)
        product = _load(repo, command.product_id)
        product.update_details(**fields)
        repo.add(product)

    @handle(SetProductCategory)
    def set_category(self, command):
        _require_category(command.category_id)
        repo = current_domain.repository_for(Product)
        product = _load(repo, command.product_id)
        product.move_to_category(command.category_id)
        repo.add(product)

    @handle(SetProductAvailability)
    def set_availability(self, command):
        # Deactivation hides a product from checkout; products are never deleted
        repo = current_domain.repository_for(Product)
        product = _load(repo, command.product_id)
        product.set_availability(command.is_active)
        repo.add(product)
