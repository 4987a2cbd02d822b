"""Read-only traffic: catalogue pages, shipping regions and quotes."""

import random

from locust import HttpUser, between, task

from loadtests.data_generators import REGIONS


class BrowsingUser(HttpUser):
    wait_time = between(0.2, 1)

    @task(5)
    def list_products(self):
        self.client.get(f"/products?page={random.randint(1, 3)}&limit=20", name="GET /products")

    @task(2)
    def regions(self):
        self.client.get("/shipping/regions", name="GET /shipping/regions")

    @task(2)
    def quote(self):
        self.client.get(
            "/shipping/calculate",
            params={"region": random.choice(REGIONS), "cart_total": round(random.uniform(5, 150), 2)},
            name="GET /shipping/calculate",
        )

    @task(1)
    def health(self):
        self.client.get("/health", name="GET /health")
