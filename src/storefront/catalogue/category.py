"""Category aggregate: the tree products are browsed by.

Categories nest without a fixed depth. Names are unique among siblings, a
category can never sit under one of its own descendants, and a category is
only deleted once it has no subcategories and no active products.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, String

from storefront.domain import storefront


@storefront.aggregate
class Category:
    name = String(required=True, min_length=2, max_length=100)
    parent_id = String(max_length=36)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, name, parent_id=None):
        now = datetime.now(UTC)
        return cls(
            name=name.strip(),
            parent_id=str(parent_id) if parent_id else None,
            created_at=now,
            updated_at=now,
        )

    def rename(self, name):
        self.name = name.strip()
        self.updated_at = datetime.now(UTC)

    def move_under(self, parent_id):
        if parent_id and str(parent_id) == str(self.id):
            raise ValidationError({"parent_id": ["A category cannot be its own parent"]})
        self.parent_id = str(parent_id) if parent_id else None
        self.updated_at = datetime.now(UTC)


@storefront.repository(part_of=Category)
class CategoryRepository:
    def find(self, category_id) -> Category | None:
        return self._dao.query.filter(id=str(category_id)).all().first

    def everything(self) -> list[Category]:
        return self._dao.query.order_by("name").limit(None).all().items

    def children_of(self, parent_id) -> list[Category]:
        parent_id = str(parent_id) if parent_id else None
        return [c for c in self.everything() if c.parent_id == parent_id]

    def sibling_named(self, name, parent_id) -> Category | None:
        name = name.strip().casefold()
        return next((c for c in self.children_of(parent_id) if c.name.casefold() == name), None)

    def is_descendant(self, ancestor_id, category_id) -> bool:
        """True when ``category_id`` sits anywhere below ``ancestor_id``."""
        parents = {str(c.id): c.parent_id for c in self.everything()}
        current = parents.get(str(category_id))
        seen = set()
        while current and current not in seen:
            if current == str(ancestor_id):
                return True
            seen.add(current)
            current = parents.get(current)
        return False

    def remove(self, category):
        self._dao.delete(category)
