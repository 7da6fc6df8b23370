"""Reversible order codes such as ``K7P-3XM-9QD``.

Order serials are encoded with Hashids over an alphabet without vowels or
look-alike characters (0/O, 1/I/L, 2/Z, 5/S, 8/B) and chunked in threes.
Codes are at least nine characters long; very large serials yield longer
codes rather than truncated ones, so every serial keeps a distinct code.
"""

from hashids import Hashids

ALPHABET = "34679CDFGHJKMNPQRTVWXY"
LENGTH = 9
CHUNK = 3


class OrderCodeCodec:
    def __init__(self, salt: str) -> None:
        self._hashids = Hashids(salt=salt, min_length=LENGTH, alphabet=ALPHABET)

    def encode(self, order_serial: int) -> str:
        if order_serial < 1:
            raise ValueError(f"Order serial must be positive, got {order_serial}")

        raw = self._hashids.encode(order_serial)
        return "-".join(raw[i : i + CHUNK] for i in range(0, len(raw), CHUNK))

    def decode(self, code: str) -> int | None:
        """The serial behind ``code``, or None when the code is malformed."""
        if not isinstance(code, str):
            return None
        raw = code.replace("-", "").strip().upper()
        if len(raw) < LENGTH:
            return None

        values = self._hashids.decode(raw)
        if len(values) != 1:
            return None
        return values[0]
