"""Faker-based data generators for Locust load test scenarios.

Payloads match the field names of the storefront API's Pydantic request
schemas and pass checkout validation.
"""

import random
import uuid

from faker import Faker

fake = Faker("ro_RO")


def idempotency_key() -> str:
    return f"lt-{uuid.uuid4().hex}"


def guest_email() -> str:
    local = fake.user_name()[:20]
    return f"{local}.{uuid.uuid4().hex[:4]}@{fake.free_email_domain()}"


def guest_address(country_id: str) -> dict:
    """AddressSchema payload for a Romanian delivery address."""
    return {
        "first_name": fake.first_name()[:100],
        "last_name": fake.last_name()[:100],
        "phone": fake.phone_number()[:30],
        "address_line_1": fake.street_address()[:500],
        "city": fake.city()[:255],
        "zip_code": fake.postcode()[:20],
        "country_id": country_id,
    }


def cart_line(product_id: str, max_quantity: int = 6) -> dict:
    """Quantities up to 6 so some lines cross the 5-unit tier."""
    return {"product_id": product_id, "quantity": random.randint(1, max_quantity)}


def guest_cart(catalog, lines: int | None = None) -> list[dict]:
    chosen = random.sample(catalog.product_ids, k=min(lines or random.randint(1, 4), len(catalog.product_ids)))
    return [cart_line(product_id) for product_id in chosen]


def pickup_data(catalog) -> dict:
    """Locker selection payload as sent by the courier map widget."""
    return {
        "courier_data": {
            "point_id": f"EBX-{random.randint(100, 9999)}",
            "point_name": f"easybox {fake.street_name()[:40]}",
            "provider": "sameday",
            "locker_details": {
                "address": fake.street_address()[:500],
                "city": fake.city()[:255],
                "zip_code": fake.postcode()[:20],
                "country_id": catalog.country_id,
            },
        }
    }


def guest_checkout_data(catalog, cart: list[dict], payment: str = "card", locker: bool = False) -> dict:
    """CheckoutBody payload for a guest paying by card or cash on delivery."""
    payload = {
        "guest_email": guest_email(),
        "guest_cart": cart,
        "billing_address": guest_address(catalog.country_id),
        "shipping_method_id": catalog.locker_id if locker else catalog.courier_id,
        "payment_method_id": catalog.card_id if payment == "card" else catalog.cash_on_delivery_id,
        "currency": random.choice(catalog.currencies),
    }
    if locker:
        payload["pickup"] = pickup_data(catalog)
    else:
        payload["shipping_address"] = payload["billing_address"]
    return payload


def customer_checkout_data(catalog) -> dict:
    """CheckoutBody payload for the seeded demo customer."""
    return {
        "customer_id": catalog.customer_id,
        "billing_address_id": catalog.customer_address_id,
        "shipping_address_id": catalog.customer_address_id,
        "shipping_method_id": catalog.courier_id,
        "payment_method_id": random.choice([catalog.card_id, catalog.cash_on_delivery_id]),
    }
