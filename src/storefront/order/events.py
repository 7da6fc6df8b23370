"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A cart was converted into an order."""

    __version__ = 1

    order_id = Identifier(required=True)
    number = String(required=True)
    customer_id = Identifier()
    status = String(required=True)
    currency = String(required=True)
    total_ron_incl_vat = Float(required=True)
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderMarkedPaid:
    __version__ = 1

    order_id = Identifier(required=True)
    paid_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderMarkedUnpaid:
    __version__ = 1

    order_id = Identifier(required=True)
