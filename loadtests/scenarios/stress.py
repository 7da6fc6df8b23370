"""Stress scenarios for stock locking and pricing throughput.

BackorderRushUser sends every user after the same product so checkouts
queue on one stock lock; seed with ``--stock 0`` to watch stock go
negative. PriceLookupFloodUser hammers the read path.
"""

import random

from locust import HttpUser, constant_pacing, task

from loadtests.data_generators import guest_checkout_data, idempotency_key
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import load_catalog


class BackorderRushUser(HttpUser):
    """Stress test: concurrent checkouts of one hot product.

    Expect 201s and, once the lock wait times out, 409s. Any other status
    is a failure.
    """

    wait_time = constant_pacing(0.2)

    def on_start(self):
        self.catalog = load_catalog()

    @task
    def rush_checkout(self):
        cart = [{"product_id": self.catalog.hot_product(), "quantity": 1}]
        with self.client.post(
            "/checkout",
            json=guest_checkout_data(self.catalog, cart),
            headers={"Idempotency-Key": idempotency_key()},
            catch_response=True,
            name="[STRESS] POST /checkout hot product",
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()
            else:
                resp.failure(f"Rush checkout failed: {resp.status_code}: {extract_error_detail(resp)}")


class PriceLookupFloodUser(HttpUser):
    """Stress test: price resolution with VAT and tiers, no writes."""

    wait_time = constant_pacing(0.05)

    def on_start(self):
        self.catalog = load_catalog()

    @task(4)
    def price(self):
        self.client.get(
            f"/prices/{self.catalog.random_product()}",
            params={"quantity": random.randint(1, 10)},
            name="[STRESS] GET /prices/{id}",
        )

    @task(1)
    def tiers(self):
        self.client.get(f"/prices/{self.catalog.random_product()}/tiers", name="[STRESS] GET /prices/{id}/tiers")
