"""Mixed storefront workload scenario.

Weights model a shop where most traffic browses prices and only a
fraction of sessions reach checkout. This is the recommended scenario for
load baseline testing.
"""

import random

from locust import HttpUser, between, task

from loadtests.helpers.state import load_catalog
from loadtests.scenarios.checkout import CustomerCartJourney, GuestCheckoutJourney, LockerCheckoutJourney


class MixedWorkloadUser(HttpUser):
    """Realistic mix of browsing and buying.

    Browsing (60%):
    - Single price lookups in RON and EUR
    - Tier tables for quantity breaks

    Buying (40%):
    - Guest courier checkout with idempotent replay: most common
    - Demo customer cart and checkout
    - Locker checkout: occasional

    Checkouts on overlapping products contend for the same stock locks.
    """

    wait_time = between(0.5, 3.0)
    tasks = {
        GuestCheckoutJourney: 20,
        CustomerCartJourney: 12,
        LockerCheckoutJourney: 8,
    }

    def on_start(self):
        self.catalog = load_catalog()

    @task(40)
    def price_lookup(self):
        self.client.get(
            f"/prices/{self.catalog.random_product()}",
            params={"quantity": random.randint(1, 10), "currency": random.choice(self.catalog.currencies)},
            name="GET /prices/{id}",
        )

    @task(20)
    def tier_table(self):
        self.client.get(f"/prices/{self.catalog.random_product()}/tiers", name="GET /prices/{id}/tiers")
