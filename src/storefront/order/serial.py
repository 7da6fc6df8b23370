"""Persisted order serials. Order codes are derived from these numbers.

The counter is an aggregate stored next to the orders, so serials survive
restarts and are shared by every worker. It must be advanced inside the
unit of work that persists the order; concurrent writers are kept apart by
the order-serial lock and by the aggregate's version check on commit.
"""

from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from storefront.domain import storefront

ORDER_SERIAL_COUNTER = "orders"
ORDER_SERIAL_LOCK = "order-serial"


@storefront.aggregate
class OrderSerialCounter:
    name = Identifier(identifier=True, required=True)
    last_serial = Integer(default=0, min_value=0)

    def allocate(self) -> int:
        self.last_serial = (self.last_serial or 0) + 1
        return self.last_serial


def allocate_order_serial() -> int:
    counters = current_domain.repository_for(OrderSerialCounter)
    try:
        counter = counters.get(ORDER_SERIAL_COUNTER)
    except ObjectNotFoundError:
        counter = OrderSerialCounter(name=ORDER_SERIAL_COUNTER)

    serial = counter.allocate()
    counters.add(counter)
    return serial
