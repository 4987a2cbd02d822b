"""Category administration and the category reads the storefront browses by."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from storefront.catalogue.category import Category
from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.errors import CategoryNotFound
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@storefront.command(part_of="Category")
class AddCategory:
    name = String(required=True, max_length=100)
    parent_id = Identifier()


@storefront.command(part_of="Category")
class UpdateCategory:
    category_id = Identifier(required=True)
    name = String(max_length=100)
    parent_id = Identifier()
    move_to_root = Boolean(default=False)


@storefront.command(part_of="Category")
class RemoveCategory:
    category_id = Identifier(required=True)


def _existing(repo, category_id) -> Category:
    category = repo.find(category_id)
    if category is None:
        raise CategoryNotFound(category_id)
    return category


def _ensure_unique_name(repo, name, parent_id, except_id=None):
    clash = repo.sibling_named(name, parent_id)
    if clash is not None and str(clash.id) != str(except_id):
        raise ValidationError({"name": ["Category with this name already exists at this level"]})


@storefront.command_handler(part_of=Category)
class CategoryHandler:
    @handle(AddCategory)
    def add_category(self, command):
        repo = current_domain.repository_for(Category)
        if command.parent_id and repo.find(command.parent_id) is None:
            raise ValidationError({"parent_id": ["Parent category not found"]})
        _ensure_unique_name(repo, command.name, command.parent_id)

        category = Category.create(name=command.name, parent_id=command.parent_id)
        repo.add(category)
        return str(category.id)

    @handle(UpdateCategory)
    def update_category(self, command):
        repo = current_domain.repository_for(Category)
        category = _existing(repo, command.category_id)

        parent_id = category.parent_id
        if command.move_to_root:
            parent_id = None
        elif command.parent_id:
            if repo.find(command.parent_id) is None:
                raise ValidationError({"parent_id": ["Parent category not found"]})
            if repo.is_descendant(category.id, command.parent_id):
                raise ValidationError({"parent_id": ["A category cannot be moved under its own subcategory"]})
            parent_id = command.parent_id

        name = command.name or category.name
        _ensure_unique_name(repo, name, parent_id, except_id=category.id)

        category.move_under(parent_id)
        category.rename(name)
        repo.add(category)

    @handle(RemoveCategory)
    def remove_category(self, command):
        repo = current_domain.repository_for(Category)
        category = _existing(repo, command.category_id)

        products = current_domain.repository_for(Product)
        if products.count_active_in_category(category.id):
            raise ValidationError({"category_id": ["Cannot delete category with active products"]})
        if repo.children_of(category.id):
            raise ValidationError(
                {"category_id": ["Cannot delete category with subcategories. Delete subcategories first."]}
            )

        # Inactive products fall out of the catalogue tree with it
        for product in products.in_category(category.id):
            product.move_to_category(None)
            products.add(product)

        repo.remove(category)
        logger.info("category_removed", category_id=str(category.id), name=category.name)


def category_tree() -> list[dict]:
    """Every category nested under its parent, roots and siblings by name."""
    categories = current_domain.repository_for(Category).everything()
    nodes = {
        str(c.id): {"category_id": str(c.id), "name": c.name, "parent_id": c.parent_id, "children": []}
        for c in categories
    }
    roots = []
    for category in categories:
        node = nodes[str(category.id)]
        if category.parent_id is None:
            roots.append(node)
        elif category.parent_id in nodes:
            nodes[category.parent_id]["children"].append(node)
    return roots


def list_categories() -> list[dict]:
    repo = current_domain.repository_for(Category)
    products = current_domain.repository_for(Product)
    categories = repo.everything()
    names = {str(c.id): c.name for c in categories}
    return [
        {
            "category_id": str(c.id),
            "name": c.name,
            "parent_id": c.parent_id,
            "parent_name": names.get(c.parent_id),
            "product_count": products.count_active_in_category(c.id),
        }
        for c in categories
    ]


def category_path(category_id) -> list[dict]:
    """Breadcrumb from the root down to ``category_id``."""
    repo = current_domain.repository_for(Category)
    path = []
    category = _existing(repo, category_id)
    while category is not None:
        path.append({"category_id": str(category.id), "name": category.name})
        category = repo.find(category.parent_id) if category.parent_id else None
    return list(reversed(path))


def get_category(category_id) -> dict:
    repo = current_domain.repository_for(Category)
    category = _existing(repo, category_id)
    parent = repo.find(category.parent_id) if category.parent_id else None
    return {
        "category_id": str(category.id),
        "name": category.name,
        "parent_id": category.parent_id,
        "parent_name": parent.name if parent else None,
        "path": category_path(category.id),
    }
