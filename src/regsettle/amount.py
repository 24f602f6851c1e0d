"""
Exact conversions between BTC decimals and satoshis.
"""

from __future__ import annotations

from decimal import Decimal

from regsettle.constants import SATS_PER_BTC


def btc_to_sats(value: Decimal | int | str) -> int:
    """
    Convert a BTC amount (as returned by the node) to satoshis.

    Floats are refused: RPC responses are parsed with Decimal so no
    precision is lost on the way in.

    Raises:
        ValueError: If the amount is a float, not finite or has sub-satoshi precision
        decimal.InvalidOperation: If a string is not a number
    """
    if isinstance(value, float):
        raise ValueError(f"Refusing float amount {value!r}, use Decimal")

    sats = Decimal(value) * SATS_PER_BTC
    if not sats.is_finite():
        raise ValueError(f"Amount {value} BTC is not a finite number")
    if sats != sats.to_integral_value():
        raise ValueError(f"Amount {value} BTC has sub-satoshi precision")
    return int(sats)


def sats_to_btc(sats: int) -> Decimal:
    return Decimal(sats) / SATS_PER_BTC


def format_rpc_amount(sats: int) -> str:
    """Format sats as an 8-decimal BTC string accepted by Bitcoin Core RPC."""
    return f"{sats_to_btc(sats):.8f}"


def format_btc(sats: int) -> str:
    """
    Human-readable BTC amount without trailing zeros.

    Examples: 5000000000 -> "50", 2999998590 -> "29.9999859", -1410 -> "-0.0000141"
    """
    value = sats_to_btc(sats).normalize()
    return format(value, "f")
