"""Exact decimal scaling of on-chain integer amounts.

Amounts never pass through float: a raw integer is shifted by the token's
decimals with ``Decimal`` and rendered without exponent or trailing zeros.
"""

from __future__ import annotations

from decimal import Decimal, localcontext

# uint256 has at most 78 decimal digits
_PRECISION = 100


def scale_amount(raw: int, decimals: int) -> str:
    """Render ``raw / 10**decimals`` as a plain decimal string.

    Example:
        >>> scale_amount(1500000000000000000, 18)
        '1.5'
        >>> scale_amount(10**18, 18)
        '1'
    """
    if raw < 0:
        raise ValueError("raw amount must be non-negative")
    if decimals < 0:
        raise ValueError("decimals must be non-negative")

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        value = Decimal(raw).scaleb(-decimals).normalize()
        return format(value, "f")


def from_wei(value: int, decimals: int = 18) -> str:
    """Convert a base-unit native amount to the display unit."""
    return scale_amount(value, decimals)
