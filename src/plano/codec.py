"""The price codec — what the registry writes in place of a price.

Tokens look like ciphertext but are a reversible text encoding:
``FHE-`` followed by the base64 of the price's decimal text. Anyone who
can read the store can decode them. The reveal flow in plano.reveal
gates the user-facing decode, not the data.

Decoding never raises. Anything that does not parse comes back as NaN;
callers check ``is_valid_price`` and show nothing for that record.
"""

from __future__ import annotations

import base64
import binascii
import math
import re

MARKER = "FHE-"

# Leading numeric prefix, the way a lenient float parser reads "12.5abc".
_NUMERIC_PREFIX = re.compile(
    r"""^\s*
    (?P<num>
        [+-]?
        (?:
            Infinity
          | (?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?
        )
    )""",
    re.VERBOSE,
)


def _price_text(price: float) -> str:
    if float(price).is_integer():
        return str(int(price))
    return repr(float(price))


def _parse_decimal(text: str) -> float:
    match = _NUMERIC_PREFIX.match(text)
    if match is None:
        return math.nan
    num = match.group("num")
    if num.endswith("Infinity"):
        return -math.inf if num.startswith("-") else math.inf
    try:
        return float(num)
    except ValueError:
        return math.nan


def encode_price(price: float) -> str:
    """Encode a non-negative price as an opaque token. Deterministic."""
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        raise TypeError(f"price must be a number, got {type(price).__name__}")
    try:
        price = float(price)
    except OverflowError as exc:
        raise ValueError("price is too large to encode") from exc
    if not math.isfinite(price) or price < 0:
        raise ValueError(f"price must be a finite non-negative number, got {price!r}")
    payload = _price_text(price).encode("ascii")
    return MARKER + base64.b64encode(payload).decode("ascii")


def decode_price(token: str) -> float:
    """Decode a token back to a price.

    Accepts marker-less numeric strings written by older clients.
    Returns NaN for anything malformed.
    """
    if not isinstance(token, str):
        return math.nan
    if not token.startswith(MARKER):
        return _parse_decimal(token)
    try:
        raw = base64.b64decode(token[len(MARKER):], validate=True)
        text = raw.decode("ascii")
    except (binascii.Error, ValueError):
        return math.nan
    return _parse_decimal(text)


def is_valid_price(value: float | None) -> bool:
    """True when a decoded value can be shown as a price."""
    return value is not None and math.isfinite(value)


class PriceCodec:
    """Price obfuscation layer between the registry and the store."""

    marker = MARKER

    def encode(self, price: float) -> str:
        """Map a price to the token written to the store."""
        return encode_price(price)

    def decode(self, token: str) -> float:
        """Map a stored token back to a price (NaN when malformed)."""
        return decode_price(token)
