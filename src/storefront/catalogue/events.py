"""Domain events for the Product aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Product")
class ProductRegistered:
    __version__ = 1

    product_id = Identifier(required=True)
    sku = String(required=True)
    product_type = String(required=True)
    parent_id = Identifier()


@storefront.event(part_of="Product")
class ProductSoftDeleted:
    """A product was hidden from the catalogue (children included)."""

    __version__ = 1

    product_id = Identifier(required=True)
    deleted_at = DateTime(required=True)


@storefront.event(part_of="Product")
class ProductRestored:
    __version__ = 1

    product_id = Identifier(required=True)


@storefront.event(part_of="Product")
class StockDecremented:
    """Stock was consumed by an order. ``new_stock`` may be negative."""

    __version__ = 1

    product_id = Identifier(required=True)
    order_id = Identifier()
    quantity = Integer(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    decremented_at = DateTime(required=True)
