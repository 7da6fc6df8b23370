"""Custom finders for the Product aggregate."""

from storefront.catalogue.product import Product
from storefront.domain import storefront


@storefront.repository(part_of=Product)
class ProductRepository:
    def find_children(self, parent_id) -> list[Product]:
        """Variants whose ``parent_id`` points at the given product."""
        return self._dao.query.filter(parent_id=str(parent_id)).all().items

    def find_by_sku(self, sku: str) -> Product | None:
        items = self._dao.query.filter(sku=sku).all().items
        return items[0] if items else None
