from storefront.cart.cart import Cart, CartStatus
from storefront.domain import storefront


@storefront.repository(part_of=Cart)
class CartRepository:
    def find_active_for_customer(self, customer_id) -> Cart | None:
        items = self._dao.query.filter(customer_id=str(customer_id), status=CartStatus.ACTIVE.value).all().items
        if not items:
            return None
        return max(items, key=lambda cart: cart.created_at)
