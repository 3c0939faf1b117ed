"""
Amount conversion and call-data argument encoding.

Amounts are handled as exact integers end to end: human amounts are parsed
as Decimal and scaled with integer arithmetic, never through float.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from bip_utils import Bech32Decoder

from relayer.errors import InvalidIntent

ADDRESS_HRP = "erd"

# Ledger values are uint256, at most 78 decimal digits
MAX_AMOUNT_DIGITS = 78


def parse_amount(amount: Any) -> Decimal:
    """Parse a human amount into a finite Decimal within the ledger's range."""
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise InvalidIntent(f"Invalid amount: {amount!r}")
    if not value.is_finite():
        raise InvalidIntent(f"Invalid amount: {amount!r}")
    if value and value.adjusted() >= MAX_AMOUNT_DIGITS:
        raise InvalidIntent(f"Amount is too large: {amount!r}")
    if value.as_tuple().exponent < -MAX_AMOUNT_DIGITS:
        raise InvalidIntent(f"Amount has too many decimal places: {amount!r}")
    return value


def to_blockchain_value(amount: Any, decimals: int) -> str:
    """
    Convert a human amount to the ledger's integer denomination.

    The result is ``amount * 10**decimals`` truncated toward zero, as an
    unsigned integer string.
    """
    if decimals < 0 or decimals > MAX_AMOUNT_DIGITS:
        raise InvalidIntent(f"Invalid decimals: {decimals}")

    value = parse_amount(amount)
    if value < 0:
        raise InvalidIntent(f"Amount must not be negative: {amount!r}")
    if not value:
        return "0"
    if value.adjusted() + decimals >= MAX_AMOUNT_DIGITS:
        raise InvalidIntent(f"Amount is too large for {decimals} decimals: {amount!r}")

    _, digits, exponent = value.as_tuple()
    coefficient = int("".join(str(d) for d in digits) or "0")
    shift = exponent + decimals
    if shift >= 0:
        return str(coefficient * 10 ** shift)
    return str(coefficient // 10 ** -shift)


def to_human_amount(value: Any, decimals: int) -> str:
    """Convert an integer ledger value back to a human amount with ``decimals`` places."""
    try:
        integer = int(str(value))
    except ValueError:
        raise InvalidIntent(f"Invalid blockchain value: {value!r}")
    if integer < 0 or decimals < 0:
        raise InvalidIntent(f"Invalid blockchain value: {value!r}")

    if decimals == 0:
        return str(integer)
    whole, fraction = divmod(integer, 10 ** decimals)
    return f"{whole}.{fraction:0{decimals}d}"


def whole_units(amount: Any) -> int:
    """Human amount rounded up to a whole number of units."""
    value = parse_amount(amount)
    numerator, denominator = value.as_integer_ratio()
    return -(-numerator // denominator)


def int_to_hex(value: int) -> str:
    """Encode a non-negative integer as an even-length hex argument (zero is empty)."""
    if value < 0:
        raise InvalidIntent(f"Cannot encode negative integer {value}")
    if value == 0:
        return ""
    encoded = format(value, "x")
    return encoded if len(encoded) % 2 == 0 else "0" + encoded


def address_to_hex(address: str) -> str:
    """Decode a bech32 ``erd1...`` address to its public key hex."""
    try:
        return Bech32Decoder.Decode(ADDRESS_HRP, address).hex()
    except Exception as e:
        raise InvalidIntent(f"Invalid address {address!r}: {e}", address=address) from e


def is_address(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(ADDRESS_HRP + "1") and len(value) == 62


def encode_argument(arg: Any) -> str:
    """
    Encode one call-data argument.

    Integers become big-endian hex, ``erd1`` addresses their public key,
    bytes their hex form and any other string its UTF-8 bytes.
    """
    if isinstance(arg, bool):
        return "01" if arg else ""
    if isinstance(arg, int):
        return int_to_hex(arg)
    if isinstance(arg, (bytes, bytearray)):
        return bytes(arg).hex()
    if is_address(arg):
        return address_to_hex(arg)
    if isinstance(arg, str):
        return arg.encode("utf-8").hex()
    raise InvalidIntent(f"Unsupported argument type: {type(arg).__name__}")


def build_call_data(function: str, *args: Any) -> str:
    """Join a function name and its encoded arguments with ``@``."""
    return "@".join([function] + [encode_argument(a) for a in args])
