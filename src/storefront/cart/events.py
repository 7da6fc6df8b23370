"""Domain events for the Cart aggregate."""

from protean.fields import Float, Identifier, Integer

from storefront.domain import storefront


@storefront.event(part_of="Cart")
class CartLineAdded:
    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    segment_id = Identifier()
    quantity = Integer(required=True)


@storefront.event(part_of="Cart")
class CartLineQuantityChanged:
    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    segment_id = Identifier()
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@storefront.event(part_of="Cart")
class CartLineRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    segment_id = Identifier()


@storefront.event(part_of="Cart")
class GuestCartMerged:
    """A guest session's lines were folded into a customer's cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    lines_merged = Integer(required=True)


@storefront.event(part_of="Cart")
class CartConverted:
    __version__ = 1

    cart_id = Identifier(required=True)
    order_id = Identifier(required=True)
    total_amount = Float()
