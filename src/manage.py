"""Storefront management CLI.

Creates and drops the database schema, and translates order codes for
support staff.

Usage:
    python src/manage.py setup-db              # Create all tables
    python src/manage.py drop-db               # Drop all tables
    python src/manage.py order-code 42         # Serial -> code
    python src/manage.py order-serial K7P-3XM-9QD
"""

import argparse
import sys


def setup_database():
    from storefront.domain import storefront
    from storefront.utils.db import setup_db

    print("Initializing storefront domain...")
    storefront.init()
    print("Creating storefront database schema...")
    setup_db(storefront)
    print("Done.")


def drop_database():
    from storefront.domain import storefront
    from storefront.utils.db import drop_db

    print("Initializing storefront domain...")
    storefront.init()
    print("Dropping storefront database schema...")
    drop_db(storefront)
    print("Done.")


def _codec():
    from storefront.config import get_settings
    from storefront.order.code import OrderCodeCodec

    return OrderCodeCodec(get_settings().order_code_salt)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Storefront management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    code_parser = subparsers.add_parser("order-code", help="Print the order code for a serial")
    code_parser.add_argument("serial", type=int)

    serial_parser = subparsers.add_parser("order-serial", help="Print the serial behind an order code")
    serial_parser.add_argument("code")

    args = parser.parse_args(argv)

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "order-code":
        print(_codec().encode(args.serial))
    elif args.command == "order-serial":
        serial = _codec().decode(args.code)
        if serial is None:
            print(f"Invalid order code: {args.code}", file=sys.stderr)
            return 1
        print(serial)
    return 0


if __name__ == "__main__":
    sys.exit(main())
