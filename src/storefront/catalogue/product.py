"""Product aggregate and its repository.

Products are never deleted, only deactivated. ``stock_quantity`` is owned by
the stock ledger: once a product exists its stock only changes through the
conditional updates on ``ProductRepository``, never by saving the aggregate.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, String
from protean.utils.query import Q

from storefront.domain import storefront
from storefront.utils.db import SQL_PROVIDERS

# kg products sell in fractions; three places is gram precision
STOCK_PRECISION = 3

_DETAIL_FIELDS = ("name", "description", "price", "cost_price", "sale_type", "image_url")


class SaleType(Enum):
    KG = "kg"
    PIECE = "piece"


def quantize_quantity(quantity) -> float:
    """Round a quantity to the precision stock is kept in."""
    return round(float(quantity), STOCK_PRECISION)


@storefront.aggregate
class Product:
    name = String(required=True, max_length=255)
    description = String(max_length=2000)
    price = Float(required=True, min_value=0.0)
    cost_price = Float(required=True, min_value=0.0)
    sale_type = String(choices=SaleType, default=SaleType.PIECE.value)
    stock_quantity = Float(default=0.0, min_value=0.0)
    image_url = String(max_length=500)
    category_id = String(max_length=36)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def add(
        cls,
        name,
        price,
        cost_price,
        sale_type=SaleType.PIECE.value,
        stock_quantity=0.0,
        description=None,
        image_url=None,
        category_id=None,
    ):
        now = datetime.now(UTC)
        return cls(
            name=name,
            description=description,
            price=price,
            cost_price=cost_price,
            sale_type=sale_type,
            stock_quantity=quantize_quantity(stock_quantity),
            image_url=image_url,
            category_id=category_id,
            is_active=True,
            created_at=now,
            updated_at=now,
        )

    def update_details(self, **fields):
        """Change catalogue fields. Stock is not one of them."""
        for name, value in fields.items():
            if name not in _DETAIL_FIELDS:
                raise ValidationError({name: ["Not an editable product field"]})
            setattr(self, name, value)
        self.updated_at = datetime.now(UTC)

    def move_to_category(self, category_id):
        self.category_id = str(category_id) if category_id else None
        self.updated_at = datetime.now(UTC)

    def set_availability(self, is_active):
        self.is_active = bool(is_active)
        self.updated_at = datetime.now(UTC)

    def validate_quantity(self, quantity):
        """Pieces must be whole; kilograms may be fractional down to the gram."""
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        if self.sale_type == SaleType.PIECE.value and float(quantity) != int(quantity):
            raise ValidationError({"quantity": [f"{self.name} is sold by the piece"]})
        if quantize_quantity(quantity) != float(quantity):
            raise ValidationError({"quantity": [f"Quantity is limited to {STOCK_PRECISION} decimal places"]})


@storefront.repository(part_of=Product)
class ProductRepository:
    """Reads and conditional stock writes for products.

    Each stock write is one update statement whose predicate carries the
    guard, so zero rows changed is the whole answer: nothing is read first
    and nothing is retried.
    """

    def find_active(self, product_id) -> Product | None:
        return self._dao.query.filter(id=product_id, is_active=True).all().first

    def find_any(self, product_id) -> Product | None:
        return self._dao.query.filter(id=product_id).all().first

    def take_stock(self, product_id, quantity, require_active=True) -> int:
        """Decrement stock by ``quantity`` only where at least that much is on hand.

        Returns the number of rows updated: 0 when the product is missing,
        deactivated (unless ``require_active`` is off), or short of stock.
        """
        criteria = Q(id=product_id, stock_quantity__gte=quantity)
        if require_active:
            criteria &= Q(is_active=True)
        return self._shift_stock(criteria, -quantity)

    def return_stock(self, product_id, quantity) -> int:
        """Increment stock by ``quantity``. No upper bound and no activity check apply."""
        return self._shift_stock(Q(id=product_id), quantity)

    def _shift_stock(self, criteria, delta) -> int:
        now = datetime.now(UTC)
        if self._dao.provider.conn_info["provider"] in SQL_PROVIDERS:
            model = self._dao.database_model_cls
            session = self._dao._get_session()
            # "fetch" refreshes products already loaded in this session with the stored values
            return (
                session.query(model)
                .filter(self._dao._build_filters(criteria))
                .update(
                    {
                        model.stock_quantity: model.stock_quantity + delta,
                        # A stale aggregate save now fails instead of overwriting stock
                        model._version: model._version + 1,
                        model.updated_at: now,
                    },
                    synchronize_session="fetch",
                )
            )

        # The in-memory provider has no column arithmetic; its rows live in this session
        row = self._dao.query.filter(criteria).all().first
        if row is None:
            return 0
        return self._dao._update_all(
            Q(id=row.id, stock_quantity=row.stock_quantity),
            stock_quantity=round(row.stock_quantity + delta, STOCK_PRECISION),
            updated_at=now,
        )

    def list_active(self, offset=0, limit=20, category_id=None):
        query = self._dao.query.filter(is_active=True)
        if category_id:
            query = query.filter(category_id=str(category_id))
        return query.order_by("name").offset(offset).limit(limit).all()

    def in_category(self, category_id) -> list[Product]:
        return self._dao.query.filter(category_id=str(category_id)).limit(None).all().items

    def count_active_in_category(self, category_id) -> int:
        return self._dao.query.filter(category_id=str(category_id), is_active=True).all().total
