from storefront.customer.customer import B2C_SEGMENT_CODE, CustomerSegment
from storefront.domain import storefront


@storefront.repository(part_of=CustomerSegment)
class CustomerSegmentRepository:
    def find_by_code(self, code: str) -> CustomerSegment | None:
        items = self._dao.query.filter(code=code).all().items
        return items[0] if items else None

    def b2c(self) -> CustomerSegment | None:
        return self.find_by_code(B2C_SEGMENT_CODE)
