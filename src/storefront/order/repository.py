from storefront.domain import storefront
from storefront.order.order import Order


@storefront.repository(part_of=Order)
class OrderRepository:
    def find_by_serial(self, serial: int) -> Order | None:
        items = self._dao.query.filter(serial=serial).all().items
        return items[0] if items else None

    def find_for_customer(self, customer_id) -> list[Order]:
        items = self._dao.query.filter(customer_id=str(customer_id)).all().items
        return sorted(items, key=lambda order: order.serial or 0, reverse=True)
