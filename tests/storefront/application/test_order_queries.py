import pytest

from storefront.errors import OrderNotFound
from storefront.order.placement import place_order
from storefront.order.queries import (
    get_guest_invoice,
    get_invoice,
    get_order,
    invoice_number,
    list_all_orders,
    list_guest_orders,
    list_user_orders,
)
from storefront.order.status import change_order_status
from tests.storefront.builders import add_product, register_user, shipping, start_guest

PHONE = "0599222333"


@pytest.fixture
def guest_order():
    product_id = add_product(name="Olive oil", price=35.0)
    summary = place_order(
        [{"product_id": product_id, "quantity": 2}],
        guest_id=start_guest(),
        **shipping(phone_number=PHONE, first_name="Mona", last_name="Odeh"),
    )
    return summary


class TestListings:
    def test_user_orders_newest_first(self):
        user_id = register_user()
        product_id = add_product()
        first = place_order([{"product_id": product_id, "quantity": 1}], user_id=user_id, **shipping())
        second = place_order([{"product_id": product_id, "quantity": 1}], user_id=user_id, **shipping())

        listing = list_user_orders(user_id)

        assert [o["order_id"] for o in listing["items"]] == [second["order_id"], first["order_id"]]
        assert listing["pagination"]["total_items"] == 2

    def test_guest_orders(self, guest_order):
        listing = list_guest_orders(guest_order["guest_id"])

        assert [o["order_id"] for o in listing["items"]] == [guest_order["order_id"]]

    def test_admin_listing_filters_by_status(self, guest_order):
        product_id = add_product()
        other = place_order([{"product_id": product_id, "quantity": 1}], guest_id=start_guest(), **shipping())
        change_order_status(other["order_id"], "Confirmed")

        confirmed = list_all_orders(status="Confirmed")

        assert [o["order_id"] for o in confirmed["items"]] == [other["order_id"]]
        assert list_all_orders()["pagination"]["total_items"] == 2

    def test_admin_listing_shows_buyer_contact(self, guest_order):
        [row] = list_all_orders()["items"]

        assert row["guest_phone"] == PHONE
        assert row["guest_name"] == "Mona Odeh"
        assert row["shipping_phone"] == PHONE


class TestOrderDetail:
    def test_owner_sees_items_payment_and_address(self, guest_order):
        order = get_order(guest_order["order_id"], guest_id=guest_order["guest_id"])

        assert order["items"][0]["name"] == "Olive oil"
        assert order["items"][0]["subtotal"] == 70.0
        assert order["payment"]["status"] == "Pending"
        assert order["shipping_address"]["phone"] == PHONE

    def test_other_user_gets_not_found(self, guest_order):
        with pytest.raises(OrderNotFound):
            get_order(guest_order["order_id"], user_id=register_user())

    def test_unrelated_guest_gets_not_found(self, guest_order):
        with pytest.raises(OrderNotFound):
            get_order(guest_order["order_id"], guest_id=start_guest(phone_number="0599444555"))

    def test_guest_whose_order_was_filed_elsewhere_can_read_it(self):
        user_id = register_user(phone_number=PHONE)
        product_id = add_product()
        guest_id = start_guest()
        summary = place_order(
            [{"product_id": product_id, "quantity": 1}], guest_id=guest_id, **shipping(phone_number=PHONE)
        )
        assert summary["user_id"] == user_id

        order = get_order(summary["order_id"], guest_id=guest_id)

        assert order["order_id"] == summary["order_id"]

    def test_missing_order(self):
        with pytest.raises(OrderNotFound):
            get_order("no-such-order")


class TestInvoices:
    def test_invoice(self, guest_order):
        invoice = get_invoice(guest_order["order_id"], guest_id=guest_order["guest_id"])

        assert invoice["invoice_number"] == invoice_number(guest_order["order_id"])
        assert invoice["customer"] == {"name": "Mona Odeh", "phone": PHONE}
        assert invoice["totals"] == {
            "products_total": 70.0,
            "shipping_fees": 0.0,
            "discount": 0.0,
            "final_total": 70.0,
        }
        assert invoice["store"]["name"]

    def test_guest_invoice_by_phone(self, guest_order):
        invoice = get_guest_invoice(guest_order["order_id"], PHONE)

        assert invoice["order_id"] == guest_order["order_id"]

    def test_guest_invoice_wrong_phone(self, guest_order):
        with pytest.raises(OrderNotFound):
            get_guest_invoice(guest_order["order_id"], "0599000000")


def test_invoice_number_is_zero_padded():
    assert invoice_number(42) == "INV-000042"
