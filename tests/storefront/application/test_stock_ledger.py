import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from storefront.catalogue.product import Product, ProductRepository
from storefront.errors import InsufficientStock, ProductUnavailable
from storefront.order.order import Order
from storefront.order.placement import place_order
from storefront.order.queries import get_order
from storefront.order.status import change_order_status
from storefront.stock.adjustment import AdjustStock, stock_history
from storefront.stock.transaction import StockTransaction
from tests.storefront.builders import add_product, deactivate, shipping, start_guest


def _stock(product_id):
    return current_domain.repository_for(Product).get(product_id).stock_quantity


def _adjust(product_id, quantity, reason, note=None):
    return current_domain.process(
        AdjustStock(product_id=product_id, quantity=quantity, reason=reason, note=note),
        asynchronous=False,
    )


def _audit_total(product_id):
    return sum(t.quantity_change for t in current_domain.repository_for(StockTransaction).for_product(product_id))


@pytest.fixture
def rivals_first(monkeypatch):
    """Let rival checkouts take their units just before our next stock write."""

    def install(*quantities):
        original = ProductRepository.take_stock
        pending = list(quantities)

        def racing(self, product_id, quantity, require_active=True):
            while pending:
                assert original(self, product_id, pending.pop(0), require_active) == 1
            return original(self, product_id, quantity, require_active)

        monkeypatch.setattr(ProductRepository, "take_stock", racing)
        return pending

    return install


class TestAdministratorAdjustments:
    def test_add_and_remove(self, product_id):
        assert _adjust(product_id, 5, "admin_add", note="Supplier delivery")["stock_quantity"] == 15
        assert _adjust(product_id, 3, "admin_remove", note="Spoiled")["stock_quantity"] == 12
        assert _stock(product_id) == 12

    def test_remove_beyond_stock_is_rejected(self, product_id):
        with pytest.raises(InsufficientStock):
            _adjust(product_id, 11, "admin_remove")

        assert _stock(product_id) == 10

    def test_inactive_products_can_still_be_corrected(self, product_id):
        deactivate(product_id)

        _adjust(product_id, 4, "admin_remove")

        assert _stock(product_id) == 6

    @pytest.mark.parametrize("reason", ["purchase", "cancellation"])
    def test_system_reasons_are_not_manual(self, product_id, reason):
        with pytest.raises(ValidationError):
            _adjust(product_id, 1, reason)

    def test_quantity_must_be_positive(self, product_id):
        with pytest.raises(ValidationError):
            _adjust(product_id, 0, "admin_add")

    def test_unknown_product(self):
        with pytest.raises(ProductUnavailable):
            _adjust("missing", 1, "admin_add")

    def test_history_is_newest_first(self, product_id):
        _adjust(product_id, 5, "admin_add", note="Delivery")

        history = stock_history(product_id)

        assert [h["reason"] for h in history] == ["admin_add", "admin_add"]
        assert history[0]["note"] == "Delivery"
        assert history[1]["note"] == "Opening stock"


class TestAuditTrail:
    def test_movements_sum_to_stock_on_hand(self):
        product_id = add_product(stock_quantity=20)
        guest_id = start_guest()

        first = place_order([{"product_id": product_id, "quantity": 4}], guest_id=guest_id, **shipping())
        place_order([{"product_id": product_id, "quantity": 2}], guest_id=guest_id, **shipping())
        _adjust(product_id, 5, "admin_add")
        _adjust(product_id, 1, "admin_remove")
        change_order_status(first["order_id"], "Cancelled")

        assert _stock(product_id) == 22
        assert _audit_total(product_id) == 22

    def test_kilogram_stock_keeps_gram_precision(self):
        product_id = add_product(name="Potatoes", sale_type="kg", stock_quantity=5)

        place_order([{"product_id": product_id, "quantity": 1.25}], guest_id=start_guest(), **shipping())
        place_order([{"product_id": product_id, "quantity": 0.333}], guest_id=start_guest(), **shipping())

        assert _stock(product_id) == pytest.approx(3.417)

    def test_quantities_finer_than_grams_are_refused(self):
        product_id = add_product(name="Potatoes", sale_type="kg", stock_quantity=5)

        with pytest.raises(ValidationError) as exc:
            place_order([{"product_id": product_id, "quantity": 0.3333}], guest_id=start_guest(), **shipping())

        assert "3 decimal places" in exc.value.messages["items"][0]
        assert _stock(product_id) == 5
        assert _audit_total(product_id) == 5

    def test_adjustments_finer_than_grams_are_refused(self):
        product_id = add_product(name="Potatoes", sale_type="kg", stock_quantity=5)

        with pytest.raises(ValidationError):
            _adjust(product_id, 0.0001, "admin_remove")

        assert _stock(product_id) == 5

    def test_split_lines_record_exactly_what_was_taken(self):
        product_id = add_product(name="Potatoes", sale_type="kg", stock_quantity=5)

        order = place_order(
            [{"product_id": product_id, "quantity": 0.1}, {"product_id": product_id, "quantity": 0.2}],
            guest_id=start_guest(),
            **shipping(),
        )

        line = get_order(order["order_id"], guest_id=order["guest_id"])["items"][0]
        purchase = [t for t in stock_history(product_id) if t["reason"] == "purchase"][0]
        assert line["quantity"] == 0.3
        assert purchase["quantity_change"] == -0.3
        assert _stock(product_id) == 4.7
        assert _audit_total(product_id) == pytest.approx(_stock(product_id), abs=1e-9)


class TestCompetingCheckouts:
    def test_losing_the_last_unit_fails_cleanly(self, rivals_first):
        product_id = add_product(stock_quantity=1)
        rivals_first(1)

        with pytest.raises(InsufficientStock) as exc:
            place_order([{"product_id": product_id, "quantity": 1}], guest_id=start_guest(), **shipping())

        assert exc.value.available == 0
        assert current_domain.repository_for(Order)._dao.query.all().items == []

    def test_many_rivals_ahead_still_leave_enough(self, rivals_first):
        product_id = add_product(stock_quantity=10)
        pending = rivals_first(1, 1, 1, 1, 1)

        order = place_order([{"product_id": product_id, "quantity": 1}], guest_id=start_guest(), **shipping())

        assert order["status"] == "Created"
        assert pending == []
        assert _stock(product_id) == 4

    def test_rival_leaving_exactly_enough(self, rivals_first):
        product_id = add_product(stock_quantity=5)
        rivals_first(2)

        place_order([{"product_id": product_id, "quantity": 3}], guest_id=start_guest(), **shipping())

        assert _stock(product_id) == 0

    def test_stock_never_goes_negative(self, rivals_first):
        product_id = add_product(stock_quantity=5)
        rivals_first(3)

        with pytest.raises(InsufficientStock) as exc:
            place_order([{"product_id": product_id, "quantity": 3}], guest_id=start_guest(), **shipping())

        assert exc.value.available == 2
        assert _stock(product_id) == 2

    def test_every_buyer_served_while_stock_lasts(self):
        product_id = add_product(stock_quantity=10)

        outcomes = []
        for _ in range(5):
            try:
                place_order([{"product_id": product_id, "quantity": 3}], guest_id=start_guest(), **shipping())
                outcomes.append("placed")
            except InsufficientStock:
                outcomes.append("out_of_stock")

        assert outcomes == ["placed", "placed", "placed", "out_of_stock", "out_of_stock"]
        assert _stock(product_id) == 1
        assert _audit_total(product_id) == 1


class TestRestores:
    def test_restore_does_not_depend_on_current_stock(self):
        product_id = add_product(stock_quantity=6)
        guest_id = start_guest()
        order = place_order([{"product_id": product_id, "quantity": 4}], guest_id=guest_id, **shipping())
        _adjust(product_id, 2, "admin_remove")

        change_order_status(order["order_id"], "Cancelled")

        assert _stock(product_id) == 4
        assert _audit_total(product_id) == 4

