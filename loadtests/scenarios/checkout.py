"""Shopper journeys: browse prices, fill a cart and check out.

Three SequentialTaskSet journeys against the seeded catalog: a guest who
checks out with courier delivery and replays the request with the same
Idempotency-Key, a guest who picks a locker, and the demo customer who
builds a persistent cart before checking out.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import (
    cart_line,
    customer_checkout_data,
    guest_cart,
    guest_checkout_data,
    idempotency_key,
)
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import ShopperState, load_catalog


class _ShopperJourney(SequentialTaskSet):
    def on_start(self):
        self.catalog = load_catalog()
        self.state = ShopperState()

    def browse(self, product_id):
        with self.client.get(
            f"/prices/{product_id}",
            params={"quantity": random.randint(1, 6), "currency": random.choice(self.catalog.currencies)},
            catch_response=True,
            name="GET /prices/{id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Price lookup failed: {resp.status_code}: {extract_error_detail(resp)}")

    def place(self, payload, name):
        self.state.idempotency_key = idempotency_key()
        with self.client.post(
            "/checkout",
            json=payload,
            headers={"Idempotency-Key": self.state.idempotency_key},
            catch_response=True,
            name=name,
        ) as resp:
            if resp.status_code == 201:
                body = resp.json()
                self.state.order_id = body["order_id"]
                self.state.order_number = body["number"]
            elif resp.status_code == 409:
                # Stock lock timed out; the shopper will retry later
                resp.success()
                self.interrupt()
            else:
                resp.failure(f"Checkout failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    def lookup_order(self):
        with self.client.get(
            f"/orders/{self.state.order_number}",
            catch_response=True,
            name="GET /orders/{code}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Order lookup failed: {resp.status_code}: {extract_error_detail(resp)}")


class GuestCheckoutJourney(_ShopperJourney):
    """Browse -> Tiers -> Checkout -> Replay checkout -> Look up order.

    The replay reuses the Idempotency-Key and must return the same order.
    """

    @task
    def browse_products(self):
        self.state.guest_cart = guest_cart(self.catalog)
        for line in self.state.guest_cart:
            self.browse(line["product_id"])

    @task
    def view_tiers(self):
        product_id = self.state.guest_cart[0]["product_id"]
        self.client.get(f"/prices/{product_id}/tiers", name="GET /prices/{id}/tiers")

    @task
    def checkout(self):
        payment = random.choice(["card", "cash_on_delivery"])
        self.place(guest_checkout_data(self.catalog, self.state.guest_cart, payment=payment), "POST /checkout")

    @task
    def replay_checkout(self):
        with self.client.post(
            "/checkout",
            json=guest_checkout_data(self.catalog, self.state.guest_cart),
            headers={"Idempotency-Key": self.state.idempotency_key},
            catch_response=True,
            name="POST /checkout [replay]",
        ) as resp:
            if resp.status_code != 201 or resp.json()["order_id"] != self.state.order_id:
                resp.failure(f"Replay created a different order: {resp.status_code}")

    @task
    def view_order(self):
        self.lookup_order()

    @task
    def done(self):
        self.interrupt()


class LockerCheckoutJourney(_ShopperJourney):
    """Browse -> Checkout to a pickup locker -> Look up order."""

    @task
    def browse_products(self):
        self.state.guest_cart = guest_cart(self.catalog, lines=1)
        self.browse(self.state.guest_cart[0]["product_id"])

    @task
    def checkout(self):
        self.place(guest_checkout_data(self.catalog, self.state.guest_cart, locker=True), "POST /checkout [locker]")

    @task
    def view_order(self):
        self.lookup_order()

    @task
    def done(self):
        self.interrupt()


class CustomerCartJourney(_ShopperJourney):
    """Add lines -> Update a quantity -> View cart -> Checkout.

    Runs against the single seeded customer, so carts from concurrent
    users mix; the journey only checks that every call succeeds.
    """

    @property
    def cart_url(self):
        return f"/customers/{self.catalog.customer_id}/cart"

    @task
    def add_lines(self):
        for _ in range(random.randint(1, 3)):
            with self.client.post(
                f"{self.cart_url}/lines",
                json=cart_line(self.catalog.random_product()),
                catch_response=True,
                name="POST /customers/{id}/cart/lines",
            ) as resp:
                if resp.status_code == 201:
                    self.state.cart_keys.append(resp.json()["cart_key"])
                else:
                    resp.failure(f"Add line failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def update_quantity(self):
        cart_key = random.choice(self.state.cart_keys)
        self.client.patch(
            f"{self.cart_url}/lines/{cart_key}",
            json={"quantity": random.randint(1, 8)},
            name="PATCH /customers/{id}/cart/lines/{key}",
        )

    @task
    def view_cart(self):
        self.client.get(self.cart_url, params={"currency": "EUR"}, name="GET /customers/{id}/cart")

    @task
    def checkout(self):
        self.place(customer_checkout_data(self.catalog), "POST /checkout [customer]")

    @task
    def done(self):
        self.interrupt()


class ShopperUser(HttpUser):
    wait_time = between(1.0, 3.0)
    tasks = {GuestCheckoutJourney: 3, LockerCheckoutJourney: 1, CustomerCartJourney: 1}
