"""Stress scenario: many buyers racing for the last units of one product.

The first user to start seeds a product with ``RACE_STOCK`` pieces. Every
user then keeps trying to buy one piece as a guest. Successful checkouts
must never exceed the seeded stock, and the product's stock must never go
below zero; compare ``placed`` in the stop summary with ``RACE_STOCK``.
"""

import threading

from locust import HttpUser, constant, events, task

from loadtests.data_generators import local_phone, product_data, shipping_fields
from loadtests.helpers.response import CheckoutOutcome, checkout_outcome
from loadtests.helpers.state import RaceStats

RACE_STOCK = 25

_lock = threading.Lock()
_product = {"id": None}
_stats = RaceStats()


class LastUnitRaceUser(HttpUser):
    wait_time = constant(0)

    def on_start(self):
        with _lock:
            if _product["id"] is None:
                resp = self.client.post(
                    "/admin/products",
                    json=product_data(stock_quantity=RACE_STOCK),
                    name="[RACE] POST /admin/products",
                )
                _product["id"] = resp.json()["product_id"]
        resp = self.client.post("/guests", json={}, name="[RACE] POST /guests")
        self.guest_id = resp.json()["guest_id"]

    @task
    def buy_last_units(self):
        payload = {
            "guest_id": self.guest_id,
            "items": [{"product_id": _product["id"], "quantity": 1}],
            **shipping_fields(local_phone()),
        }
        with self.client.post("/orders", json=payload, catch_response=True, name="[RACE] POST /orders") as resp:
            outcome = checkout_outcome(resp)
            with _lock:
                setattr(_stats, outcome.value, getattr(_stats, outcome.value) + 1)
            # 409 is a correct answer in this race
            if outcome == CheckoutOutcome.OUT_OF_STOCK:
                resp.success()


@events.test_stop.add_listener
def report_race(environment, **_kwargs):
    if _product["id"] is None:
        return
    print(
        f"\n[RACE] seeded={RACE_STOCK} placed={_stats.placed} out_of_stock={_stats.out_of_stock}"
        f" unknown={_stats.unknown} failed={_stats.failed}"
    )
    if _stats.placed > RACE_STOCK:
        print("[RACE] OVERSOLD: more orders placed than units in stock")
