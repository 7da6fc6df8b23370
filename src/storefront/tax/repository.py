from storefront.domain import storefront
from storefront.tax.country import Country, CountryStatus


@storefront.repository(part_of=Country)
class CountryRepository:
    def find_by_iso_code(self, iso_code_2: str) -> Country | None:
        items = self._dao.query.filter(iso_code_2=iso_code_2.upper()).all().items
        return items[0] if items else None

    def find_active(self) -> list[Country]:
        return self._dao.query.filter(status=CountryStatus.ACTIVE.value).all().items
