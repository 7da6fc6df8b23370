"""Product management: commands and handler.

Every handler that changes the product tree calls the matching function in
``storefront.catalogue.hierarchy`` so cascades happen at the call site.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.catalogue import hierarchy
from storefront.catalogue.events import ProductRegistered
from storefront.catalogue.product import Product, ProductStatus, ProductType
from storefront.domain import storefront


@storefront.command(part_of="Product")
class RegisterProduct:
    sku = String(required=True, max_length=100)
    name = String(required=True, max_length=255)
    price_ron = Float(required=True, min_value=0.0)
    purchase_price_ron = Float(default=0.0)
    ean = String(max_length=20)
    stock_quantity = Integer(default=0)
    product_type = String(default=ProductType.SIMPLE.value)
    parent_id = Identifier()
    family_id = Identifier()


@storefront.command(part_of="Product")
class DefinePriceTier:
    product_id = Identifier(required=True)
    segment_id = Identifier(required=True)
    min_quantity = Integer(required=True, min_value=1)
    max_quantity = Integer(min_value=1)
    price_ron = Float(required=True, min_value=0.0)


@storefront.command(part_of="Product")
class SetProductStatus:
    product_id = Identifier(required=True)
    status = String(required=True, choices=ProductStatus)


@storefront.command(part_of="Product")
class DeleteProduct:
    product_id = Identifier(required=True)
    force = Boolean(default=False)


@storefront.command(part_of="Product")
class RestoreProduct:
    product_id = Identifier(required=True)


@storefront.command_handler(part_of=Product)
class ProductManagementHandler:
    @handle(RegisterProduct)
    def register_product(self, command):
        repo = current_domain.repository_for(Product)
        if repo.find_by_sku(command.sku) is not None:
            raise ValidationError({"sku": [f"Product with SKU {command.sku} already exists"]})

        product = Product(
            sku=command.sku,
            name=command.name,
            ean=command.ean,
            price_ron=command.price_ron,
            purchase_price_ron=command.purchase_price_ron,
            stock_quantity=command.stock_quantity,
            product_type=command.product_type,
            parent_id=command.parent_id,
            family_id=command.family_id,
        )
        hierarchy.inherit_family(product)
        product.raise_(
            ProductRegistered(
                product_id=str(product.id),
                sku=product.sku,
                product_type=product.product_type,
                parent_id=str(product.parent_id) if product.parent_id else None,
            )
        )
        repo.add(product)
        return str(product.id)

    @handle(DefinePriceTier)
    def define_price_tier(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.define_tier(
            segment_id=command.segment_id,
            min_quantity=command.min_quantity,
            max_quantity=command.max_quantity,
            price_ron=command.price_ron,
        )
        repo.add(product)

    @handle(SetProductStatus)
    def set_product_status(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.status = command.status
        repo.add(product)

    @handle(DeleteProduct)
    def delete_product(self, command):
        if command.force:
            return [str(p.id) for p in hierarchy.force_delete(command.product_id)]
        return [str(p.id) for p in hierarchy.soft_delete(command.product_id)]

    @handle(RestoreProduct)
    def restore_product(self, command):
        return [str(p.id) for p in hierarchy.restore(command.product_id)]
