"""Tree maintenance for configurable products and their variants.

Callers that mutate a product invoke these functions explicitly; nothing
here runs as a lifecycle hook. Each function persists every product it
touches and returns them, parent first.
"""

from datetime import UTC, datetime

import structlog
from protean.utils.globals import current_domain

from storefront.catalogue.events import ProductRestored, ProductSoftDeleted
from storefront.catalogue.product import Product, ProductType

logger = structlog.get_logger(__name__)


def inherit_family(product: Product) -> Product:
    """Copy the parent's ``family_id`` onto a variant. Does not persist."""
    if product.product_type != ProductType.VARIANT.value or not product.parent_id:
        return product

    parent = current_domain.repository_for(Product).get(product.parent_id)
    if product.family_id != parent.family_id:
        product.family_id = parent.family_id
        logger.debug(
            "Variant inherited family from parent",
            product_id=str(product.id),
            parent_id=str(parent.id),
            family_id=parent.family_id,
        )
    return product


def soft_delete(product_id) -> list[Product]:
    repo = current_domain.repository_for(Product)
    now = datetime.now(UTC)
    touched = []

    for product in [repo.get(product_id), *repo.find_children(product_id)]:
        if product.deleted_at is not None:
            continue
        product.deleted_at = now
        product.raise_(ProductSoftDeleted(product_id=str(product.id), deleted_at=now))
        repo.add(product)
        touched.append(product)

    logger.info("Soft deleted product tree", product_id=str(product_id), affected=len(touched))
    return touched


def restore(product_id) -> list[Product]:
    repo = current_domain.repository_for(Product)
    touched = []

    for product in [repo.get(product_id), *repo.find_children(product_id)]:
        if product.deleted_at is None:
            continue
        product.deleted_at = None
        product.raise_(ProductRestored(product_id=str(product.id)))
        repo.add(product)
        touched.append(product)

    logger.info("Restored product tree", product_id=str(product_id), affected=len(touched))
    return touched


def force_delete(product_id) -> list[Product]:
    """Remove the product and its variants from storage. Children go first."""
    repo = current_domain.repository_for(Product)
    parent = repo.get(product_id)
    children = repo.find_children(product_id)

    for child in children:
        repo._dao.delete(child)
    repo._dao.delete(parent)

    logger.info("Force deleted product tree", product_id=str(product_id), affected=len(children) + 1)
    return [parent, *children]
