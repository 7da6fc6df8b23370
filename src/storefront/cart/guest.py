"""Guest cart kept in caller-supplied session state.

The session is any mutable mapping; lines live under ``session["cart"]`` as
``{"<product_id>_<segment_id>": {"product_id", "segment_id", "quantity"}}``.
"""

from collections.abc import MutableMapping

from storefront.cart.cart import CartLine, LineKey

SESSION_CART_KEY = "cart"
SESSION_TOTAL_KEY = "cart_total"


class GuestCart:
    def __init__(self, session: MutableMapping) -> None:
        self.session = session

    @property
    def _entries(self) -> dict:
        return self.session.setdefault(SESSION_CART_KEY, {})

    def lines(self) -> dict[LineKey, CartLine]:
        return {
            LineKey.parse(raw_key): CartLine(
                product_id=entry["product_id"],
                segment_id=entry.get("segment_id"),
                quantity=entry["quantity"],
            )
            for raw_key, entry in self._entries.items()
        }

    def add(self, key: LineKey, quantity: int) -> None:
        entry = self._entries.get(str(key))
        if entry is None:
            self._entries[str(key)] = {
                "product_id": key.product_id,
                "segment_id": key.segment_id,
                "quantity": quantity,
            }
        else:
            entry["quantity"] += quantity

    def set_quantity(self, key: LineKey, quantity: int) -> None:
        if quantity <= 0:
            self.remove(key)
            return
        entry = self._entries.get(str(key))
        if entry is not None:
            entry["quantity"] = quantity

    def remove(self, key: LineKey) -> None:
        self._entries.pop(str(key), None)

    def record_total(self, amount) -> None:
        self.session[SESSION_TOTAL_KEY] = float(amount)

    def discard(self) -> None:
        self.session.pop(SESSION_CART_KEY, None)
        self.session.pop(SESSION_TOTAL_KEY, None)

    def is_empty(self) -> bool:
        return not self.session.get(SESSION_CART_KEY)
