from storefront.currency.currency import Currency
from storefront.domain import storefront


@storefront.repository(part_of=Currency)
class CurrencyRepository:
    def find_by_code(self, code: str) -> Currency | None:
        items = self._dao.query.filter(code=code.upper()).all().items
        return items[0] if items else None
