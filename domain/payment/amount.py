"""
Lossless conversion between minor-unit integer amounts and PSP decimal strings.

The codec has no currency table: the number of fraction digits is always
supplied by the caller (usually from the payment's planned amount). Only
integer arithmetic is used.
"""
from __future__ import annotations

from domain.common.exceptions import InvalidAmountFormat
from domain.payment.entity import Money


MAX_FRACTION_DIGITS = 4
DECIMAL_SEPARATOR = "."


def _check_fraction_digits(value: object, fraction_digits: int) -> None:
    if not isinstance(fraction_digits, int) or not 0 <= fraction_digits <= MAX_FRACTION_DIGITS:
        raise InvalidAmountFormat(
            f"Unsupported number of fraction digits: {fraction_digits}",
            amount=value,
            fraction_digits=fraction_digits,
        )


def _parse_non_negative_int(part: str, *, amount: str, fraction_digits: int) -> int:
    # isdigit() alone accepts non-ASCII digits such as superscripts
    if not part or not part.isascii() or not part.isdigit():
        raise InvalidAmountFormat(
            "Invalid amount format",
            amount=amount,
            fraction_digits=fraction_digits,
        )
    return int(part)


def decimal_to_minor_units(amount: str, fraction_digits: int) -> int:
    """Convert a PSP decimal string ("300.35") into minor units (30035).

    The fractional part must have exactly ``fraction_digits`` digits; the
    codec never pads or truncates, so "10.5" with two fraction digits is
    rejected instead of being read as 10.05.

    Raises:
        InvalidAmountFormat: if the string is not a non-negative decimal in
            the expected shape.
    """
    _check_fraction_digits(amount, fraction_digits)
    if not isinstance(amount, str):
        raise InvalidAmountFormat("Amount must be a string", amount=amount, fraction_digits=fraction_digits)

    parts = amount.split(DECIMAL_SEPARATOR)

    # There are no minor units when fraction_digits is 0, so no separator is allowed
    if fraction_digits == 0:
        if len(parts) > 1:
            raise InvalidAmountFormat(
                'Fraction digit is 0 but the given amount has a "." character in it',
                amount=amount,
                fraction_digits=fraction_digits,
            )
        return _parse_non_negative_int(amount, amount=amount, fraction_digits=fraction_digits)

    if len(parts) != 2:
        raise InvalidAmountFormat(
            "Amount must contain exactly one decimal separator",
            amount=amount,
            fraction_digits=fraction_digits,
        )

    units_str, fraction_str = parts
    units = _parse_non_negative_int(units_str, amount=amount, fraction_digits=fraction_digits)
    fraction = _parse_non_negative_int(fraction_str, amount=amount, fraction_digits=fraction_digits)
    if len(fraction_str) != fraction_digits:
        raise InvalidAmountFormat(
            f"Fractional part must have exactly {fraction_digits} digits",
            amount=amount,
            fraction_digits=fraction_digits,
        )

    return units * 10 ** fraction_digits + fraction


def minor_units_to_decimal(minor_units: int, fraction_digits: int) -> str:
    """Convert minor units (1099) into a PSP decimal string ("10.99")."""
    _check_fraction_digits(minor_units, fraction_digits)
    if isinstance(minor_units, bool) or not isinstance(minor_units, int) or minor_units < 0:
        raise InvalidAmountFormat(
            "Minor unit amount must be a non-negative integer",
            amount=minor_units,
            fraction_digits=fraction_digits,
        )

    if fraction_digits == 0:
        return str(minor_units)

    units, fraction = divmod(minor_units, 10 ** fraction_digits)
    return f"{units}{DECIMAL_SEPARATOR}{fraction:0{fraction_digits}d}"


def to_psp_amount(money: Money) -> dict[str, str]:
    """Render a Money as the PSP ``{"currency_code", "value"}`` object."""
    return {
        "currency_code": money.currency_code,
        "value": minor_units_to_decimal(money.cent_amount, money.fraction_digits),
    }


def from_psp_amount(amount: dict, fraction_digits: int) -> Money:
    """Parse a PSP amount object using the fraction digits of the target currency."""
    return Money(
        cent_amount=decimal_to_minor_units(amount.get("value"), fraction_digits),
        currency_code=str(amount.get("currency_code") or "").upper(),
        fraction_digits=fraction_digits,
    )
