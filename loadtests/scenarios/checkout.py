"""Checkout load test scenarios.

Two stateful SequentialTaskSet journeys: a guest who browses and checks out
with explicit shipping fields, and a registered buyer who fills a persisted
cart, saves an address, checks out and cancels.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import address_data, local_phone, order_lines, product_data, shipping_fields
from loadtests.helpers.response import error_detail
from loadtests.helpers.state import BuyerState


def seed_products(client, count=5, stock_quantity=1000):
    """Create a handful of well-stocked products through the admin API."""
    product_ids = []
    for _ in range(count):
        resp = client.post(
            "/admin/products",
            json=product_data(stock_quantity=stock_quantity),
            name="POST /admin/products",
        )
        if resp.status_code == 201:
            product_ids.append(resp.json()["product_id"])
    return product_ids


class GuestCheckoutJourney(SequentialTaskSet):
    """Start Guest Session -> Browse -> Quote Shipping -> Place Order -> Read Invoice."""

    def on_start(self):
        self.state = BuyerState(phone_number=local_phone())
        self.product_ids = seed_products(self.client)

    @task
    def start_session(self):
        with self.client.post("/guests", json={}, catch_response=True, name="POST /guests") as resp:
            if resp.status_code == 201:
                self.state.guest_id = resp.json()["guest_id"]
            else:
                resp.failure(f"Create guest failed: {resp.status_code} — {error_detail(resp)}")
                self.interrupt()

    @task
    def browse(self):
        self.client.get("/products?limit=20", name="GET /products")

    @task
    def quote_shipping(self):
        self.client.get(
            "/shipping/calculate",
            params={"region": shipping_fields()["region"], "cart_total": random.randint(10, 120)},
            name="GET /shipping/calculate",
        )

    @task
    def place_order(self):
        payload = {
            **self.state.owner(),
            "items": order_lines(self.product_ids),
            **shipping_fields(self.state.phone_number),
        }
        with self.client.post("/orders", json=payload, catch_response=True, name="POST /orders") as resp:
            if resp.status_code == 201:
                self.state.order_ids.append(resp.json()["order_id"])
                # The phone may have matched a registered user
                self.state.user_id = resp.json().get("user_id")
                self.state.guest_id = resp.json().get("guest_id")
            else:
                resp.failure(f"Place order failed: {resp.status_code} — {error_detail(resp)}")
                self.interrupt()

    @task
    def guest_invoice(self):
        order_id = self.state.order_ids[-1]
        self.client.get(
            f"/orders/{order_id}/guest-invoice",
            params={"phone_number": self.state.phone_number},
            name="GET /orders/{id}/guest-invoice",
        )

    @task
    def done(self):
        self.interrupt()


class RegisteredCheckoutJourney(SequentialTaskSet):
    """Register -> Verify -> Save Address -> Fill Cart -> Checkout -> Cancel."""

    def on_start(self):
        self.state = BuyerState(phone_number=local_phone())
        self.product_ids = seed_products(self.client)

    @task
    def register(self):
        with self.client.post(
            "/users",
            json={"phone_number": self.state.phone_number, "name": "Load Test"},
            catch_response=True,
            name="POST /users",
        ) as resp:
            if resp.status_code == 201:
                self.state.user_id = resp.json()["user_id"]
            else:
                resp.failure(f"Register failed: {resp.status_code} — {error_detail(resp)}")
                self.interrupt()

    @task
    def verify(self):
        self.client.post(f"/users/{self.state.user_id}/verify", name="POST /users/{id}/verify")

    @task
    def save_address(self):
        with self.client.post(
            "/addresses",
            json=address_data(self.state.user_id),
            catch_response=True,
            name="POST /addresses",
        ) as resp:
            if resp.status_code == 201:
                self.state.address_id = resp.json()["address_id"]
            else:
                resp.failure(f"Save address failed: {resp.status_code} — {error_detail(resp)}")

    @task
    def fill_cart(self):
        for line in order_lines(self.product_ids):
            self.client.post(
                "/cart/items",
                json={"user_id": self.state.user_id, **line},
                name="POST /cart/items",
            )
        self.client.get(f"/cart?user_id={self.state.user_id}", name="GET /cart")

    @task
    def checkout(self):
        cart = self.client.get(f"/cart?user_id={self.state.user_id}", name="GET /cart").json()
        items = [{"product_id": i["product_id"], "quantity": i["quantity"]} for i in cart.get("items", [])]
        payload = {"user_id": self.state.user_id, "items": items, "address_id": self.state.address_id}
        with self.client.post("/orders", json=payload, catch_response=True, name="POST /orders") as resp:
            if resp.status_code == 201:
                self.state.order_ids.append(resp.json()["order_id"])
            else:
                resp.failure(f"Checkout failed: {resp.status_code} — {error_detail(resp)}")
                self.interrupt()

    @task
    def cancel(self):
        order_id = self.state.order_ids[-1]
        with self.client.post(
            f"/orders/{order_id}/cancel",
            json={"owner_id": self.state.user_id},
            catch_response=True,
            name="POST /orders/{id}/cancel",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Cancel failed: {resp.status_code} — {error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class GuestBuyer(HttpUser):
    tasks = [GuestCheckoutJourney]
    wait_time = between(0.5, 2)


class RegisteredBuyer(HttpUser):
    tasks = [RegisteredCheckoutJourney]
    wait_time = between(0.5, 2)
