"""Seed a storefront database with a demo shop for load testing.

Creates Romania (19% / 9% VAT), the B2C and B2B segments, RON and EUR, a
courier and a locker shipping method, card and cash-on-delivery payment,
one demo customer and a batch of products with retail quantity tiers.
The created ids are written to a JSON catalog that the Locust scenarios
read through ``LOADTEST_CATALOG``.

The memory provider keeps data per process, so seed a shared database
(configure a SQLAlchemy provider in domain.toml and run ``setup-db``) before
pointing Locust at the server.

Usage:
    python scripts/seed_catalog.py --products 50 --output loadtests/catalog.json
    python scripts/seed_catalog.py --products 5 --stock 0   # backorder rush
"""

import argparse
import json
import sys
import time

# Add src/ to path so we can import domain modules
sys.path.insert(0, "src")


def seed_reference_data(storefront):
    from storefront.checkout.methods import PaymentMethod, ShippingMethod, ShippingMethodType
    from storefront.currency.currency import Currency
    from storefront.customer.customer import CustomerSegment
    from storefront.tax.country import Country, VatRate

    def add(obj):
        storefront.repository_for(type(obj)).add(obj)
        return obj

    romania = add(
        Country(
            iso_code_2="RO",
            name="Romania",
            vat_rates=[VatRate(name="Standard", rate=19.0), VatRate(name="Reduced", rate=9.0)],
        )
    )
    return {
        "country_id": str(romania.id),
        "b2c_segment_id": str(add(CustomerSegment(code="B2C", name="Retail")).id),
        "b2b_segment_id": str(add(CustomerSegment(code="B2B", name="Business")).id),
        "currencies": [
            add(Currency(code="RON", name="Romanian Leu", value=1.0, symbol_right=" lei")).code,
            add(Currency(code="EUR", name="Euro", value=4.97, symbol_left="€")).code,
        ],
        "courier_id": str(
            add(
                ShippingMethod(
                    name="Courier", code="courier", method_type=ShippingMethodType.COURIER.value, cost=19.99
                )
            ).id
        ),
        "locker_id": str(
            add(
                ShippingMethod(name="Easybox", code="easybox", method_type=ShippingMethodType.PICKUP.value, cost=9.99)
            ).id
        ),
        "card_id": str(add(PaymentMethod(name="Card", code="card")).id),
        "cash_on_delivery_id": str(add(PaymentMethod(name="Ramburs", code="ramburs")).id),
    }


def seed_customer(storefront, catalog):
    from storefront.customer.customer import AddressType, Customer

    customer = Customer(
        email="loadtest@example.ro",
        first_name="Load",
        last_name="Test",
        segment_id=catalog["b2c_segment_id"],
    )
    address = customer.add_address(
        address_type=AddressType.SHIPPING.value,
        is_preferred=True,
        first_name="Load",
        last_name="Test",
        address_line_1="Str. Victoriei 1",
        city="Bucuresti",
        country_id=catalog["country_id"],
    )
    storefront.repository_for(Customer).add(customer)
    return {"customer_id": str(customer.id), "customer_address_id": str(address.id)}


def seed_products(storefront, catalog, count, stock):
    from storefront.catalogue.management import DefinePriceTier, RegisterProduct

    product_ids = []
    for i in range(count):
        product_id = storefront.process(
            RegisterProduct(
                sku=f"LT-{i + 1:05d}",
                name=f"Load Test Product {i + 1}",
                price_ron=round(10 + i * 1.5, 2),
                purchase_price_ron=round(6 + i, 2),
                stock_quantity=stock,
            )
        )
        storefront.process(
            DefinePriceTier(
                product_id=product_id,
                segment_id=catalog["b2c_segment_id"],
                min_quantity=5,
                price_ron=round((10 + i * 1.5) * 0.9, 2),
            )
        )
        product_ids.append(product_id)
    return product_ids


def main():
    parser = argparse.ArgumentParser(description="Seed a demo shop for load testing")
    parser.add_argument("--products", type=int, default=50, help="Number of products to create (default: 50)")
    parser.add_argument("--stock", type=int, default=100, help="Initial stock per product (default: 100)")
    parser.add_argument(
        "--output", default="loadtests/catalog.json", help="Where to write the catalog (default: loadtests/catalog.json)"
    )
    args = parser.parse_args()

    from storefront.domain import storefront

    storefront.init()
    start = time.monotonic()

    with storefront.domain_context():
        catalog = seed_reference_data(storefront)
        catalog.update(seed_customer(storefront, catalog))
        catalog["product_ids"] = seed_products(storefront, catalog, args.products, args.stock)

    with open(args.output, "w") as fh:
        json.dump(catalog, fh, indent=2)

    print(f"\n{'='*60}")
    print("  Storefront Seed Complete")
    print(f"{'='*60}")
    print(f"  Products:     {len(catalog['product_ids']):,} (stock {args.stock} each)")
    print(f"  Customer:     {catalog['customer_id']}")
    print(f"  Catalog file: {args.output}")
    print(f"  Took:         {time.monotonic() - start:.1f}s")
    print(f"{'='*60}\n")


if __name__ == "__main__":
    main()
