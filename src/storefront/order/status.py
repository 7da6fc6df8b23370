"""Order status and payment flag changes: commands and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order, OrderStatus


@storefront.command(part_of="Order")
class ChangeOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, choices=OrderStatus)
    user_id = Identifier()


@storefront.command(part_of="Order")
class MarkOrderPaid:
    order_id = Identifier(required=True)
    user_id = Identifier()


@storefront.command(part_of="Order")
class MarkOrderUnpaid:
    order_id = Identifier(required=True)
    user_id = Identifier()


@storefront.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(ChangeOrderStatus)
    def change_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        changed = order.change_status(OrderStatus(command.status), user_id=command.user_id)
        if changed:
            repo.add(order)
        return changed

    @handle(MarkOrderPaid)
    def mark_paid(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        changed = order.mark_as_paid(user_id=command.user_id)
        if changed:
            repo.add(order)
        return changed

    @handle(MarkOrderUnpaid)
    def mark_unpaid(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        changed = order.mark_as_unpaid(user_id=command.user_id)
        if changed:
            repo.add(order)
        return changed
