import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from storefront.catalogue.product import Product
from storefront.errors import IllegalTransition, OrderNotFound
from storefront.order.order import Order
from storefront.order.payment import Payment
from storefront.order.placement import place_order
from storefront.order.queries import get_status_history
from storefront.order.status import cancel_own_order, change_order_status
from storefront.stock.transaction import StockTransaction
from tests.storefront.builders import add_product, deactivate, register_user, shipping, start_guest


@pytest.fixture
def stocked_product():
    return add_product(stock_quantity=10)


@pytest.fixture
def guest_order(stocked_product):
    guest_id = start_guest()
    summary = place_order([{"product_id": stocked_product, "quantity": 3}], guest_id=guest_id, **shipping())
    return summary["order_id"], summary["guest_id"]


def _stock(product_id):
    return current_domain.repository_for(Product).get(product_id).stock_quantity


def _payment_status(order_id):
    return current_domain.repository_for(Payment).for_order(order_id).status


class TestAdminTransitions:
    def test_forward_path_writes_history(self, guest_order):
        order_id, _ = guest_order

        change_order_status(order_id, "Confirmed")
        change_order_status(order_id, "Shipped")
        result = change_order_status(order_id, "Delivered")

        assert result == {"order_id": order_id, "old_status": "Shipped", "new_status": "Delivered"}
        history = get_status_history(order_id)
        assert [(h["old_status"], h["new_status"]) for h in history] == [
            (None, "Created"),
            ("Created", "Confirmed"),
            ("Confirmed", "Shipped"),
            ("Shipped", "Delivered"),
        ]

    def test_delivery_completes_payment_and_stamps_delivery(self, guest_order):
        order_id, _ = guest_order

        change_order_status(order_id, "Shipped")
        change_order_status(order_id, "Delivered")

        assert _payment_status(order_id) == "Completed"
        assert current_domain.repository_for(Order).get(order_id).delivered_at is not None

    def test_cancellation_restores_stock_and_cancels_payment(self, guest_order, stocked_product):
        order_id, _ = guest_order
        assert _stock(stocked_product) == 7

        change_order_status(order_id, "Confirmed")
        change_order_status(order_id, "Cancelled")

        assert _stock(stocked_product) == 10
        assert _payment_status(order_id) == "Cancelled"
        txns = current_domain.repository_for(StockTransaction).for_order(order_id)
        assert sorted((t.reason, t.quantity_change) for t in txns) == [("cancellation", 3.0), ("purchase", -3.0)]

    def test_cancelling_a_shipped_order_restores_stock(self, guest_order, stocked_product):
        order_id, _ = guest_order

        change_order_status(order_id, "Shipped")
        change_order_status(order_id, "Cancelled")

        assert _stock(stocked_product) == 10

    def test_cancelled_product_is_restored_even_when_inactive(self, guest_order, stocked_product):
        order_id, _ = guest_order
        deactivate(stocked_product)
        change_order_status(order_id, "Cancelled")

        assert _stock(stocked_product) == 10

    @pytest.mark.parametrize("path", [["Delivered"], ["Shipped", "Confirmed"], ["Cancelled", "Created"]])
    def test_illegal_transitions_change_nothing(self, guest_order, path):
        order_id, _ = guest_order
        *allowed, illegal = path
        for status in allowed:
            change_order_status(order_id, status)
        before = current_domain.repository_for(Order).get(order_id).status

        with pytest.raises(ValidationError):
            change_order_status(order_id, illegal)

        assert current_domain.repository_for(Order).get(order_id).status == before
        assert len(get_status_history(order_id)) == len(allowed) + 1

    def test_terminal_states_are_final(self, guest_order):
        order_id, _ = guest_order
        change_order_status(order_id, "Cancelled")

        with pytest.raises(IllegalTransition):
            change_order_status(order_id, "Cancelled")

    def test_unknown_order(self):
        with pytest.raises(OrderNotFound):
            change_order_status("no-such-order", "Confirmed")


class TestCustomerCancellation:
    def test_guest_cancels_a_fresh_order(self, guest_order, stocked_product):
        order_id, guest_id = guest_order

        result = cancel_own_order(order_id, guest_id)

        assert result["new_status"] == "Cancelled"
        assert _stock(stocked_product) == 10

    def test_user_cancels_their_order(self, stocked_product):
        user_id = register_user()
        summary = place_order([{"product_id": stocked_product, "quantity": 1}], user_id=user_id, **shipping())

        cancel_own_order(summary["order_id"], user_id)

        assert current_domain.repository_for(Order).get(summary["order_id"]).status == "Cancelled"

    def test_confirmed_order_cannot_be_cancelled_by_customer(self, guest_order, stocked_product):
        order_id, guest_id = guest_order
        change_order_status(order_id, "Confirmed")

        with pytest.raises(IllegalTransition):
            cancel_own_order(order_id, guest_id)

        assert _stock(stocked_product) == 7

    def test_someone_elses_order_is_not_found(self, guest_order):
        order_id, _ = guest_order

        with pytest.raises(OrderNotFound):
            cancel_own_order(order_id, start_guest())

    def test_non_admin_may_only_cancel(self, guest_order):
        order_id, _ = guest_order

        with pytest.raises(IllegalTransition):
            change_order_status(order_id, "Confirmed", actor_is_admin=False)
