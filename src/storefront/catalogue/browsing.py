"""Public catalogue reads."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.catalogue.category import Category
from storefront.catalogue.product import Product
from storefront.errors import CategoryNotFound
from storefront.utils.pagination import paged, paginate


def product_card(product):
    return {
        "product_id": str(product.id),
        "name": product.name,
        "description": product.description,
        "price": product.price,
        "sale_type": product.sale_type,
        "stock_quantity": product.stock_quantity,
        "image_url": product.image_url,
        "category_id": product.category_id,
        "in_stock": product.stock_quantity > 0,
    }


def list_products(page=1, limit=20, category_id=None):
    if category_id and current_domain.repository_for(Category).find(category_id) is None:
        raise CategoryNotFound(category_id)

    page, limit, offset = paginate(page, limit)
    results = current_domain.repository_for(Product).list_active(offset=offset, limit=limit, category_id=category_id)
    return paged([product_card(p) for p in results.items], results.total, page, limit)


def get_product(product_id):
    product = current_domain.repository_for(Product).find_active(product_id)
    if product is None:
        raise ObjectNotFoundError({"product_id": ["Product not found"]})
    return product_card(product)
