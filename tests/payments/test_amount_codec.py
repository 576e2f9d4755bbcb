import pytest

from domain.common.exceptions import InvalidAmountFormat
from domain.payment.amount import (
    decimal_to_minor_units,
    from_psp_amount,
    minor_units_to_decimal,
    to_psp_amount,
)
from domain.payment.entity import Money


@pytest.mark.parametrize(
    "minor_units,fraction_digits,expected",
    [
        (1099, 2, "10.99"),
        (100, 0, "100"),
        (1, 3, "0.001"),
        (100, 3, "0.100"),
        (5, 2, "0.05"),
        (0, 2, "0.00"),
        (123456789, 4, "12345.6789"),
    ],
)
def test_minor_units_to_decimal(minor_units, fraction_digits, expected):
    assert minor_units_to_decimal(minor_units, fraction_digits) == expected


@pytest.mark.parametrize(
    "amount,fraction_digits,expected",
    [
        ("300.35", 2, 30035),
        ("300", 0, 300),
        ("0.001", 3, 1),
        ("10.05", 2, 1005),
        ("7.5", 1, 75),
    ],
)
def test_decimal_to_minor_units(amount, fraction_digits, expected):
    assert decimal_to_minor_units(amount, fraction_digits) == expected


def test_decimal_inverts_minor_units_for_every_fraction_digit_count():
    for fraction_digits in range(5):
        for m in (0, 1, 9, 10, 99, 100, 1001, 30035, 10 ** 9 + 7):
            assert decimal_to_minor_units(minor_units_to_decimal(m, fraction_digits), fraction_digits) == m


def test_separator_rejected_without_fraction_digits():
    with pytest.raises(InvalidAmountFormat) as exc:
        decimal_to_minor_units("300.11", 0)
    assert exc.value.field == "amount"
    assert exc.value.details == {"amount": "300.11", "fraction_digits": 0}


@pytest.mark.parametrize(
    "amount",
    ["10.5", "10.505", "10", "10.", ".50", "-1.00", "1.-5", "1,00", "1.0.0", "abc", "", " 1.00", "１.00", "1e2.00"],
)
def test_malformed_amounts_rejected(amount):
    with pytest.raises(InvalidAmountFormat):
        decimal_to_minor_units(amount, 2)


def test_non_string_amount_rejected():
    with pytest.raises(InvalidAmountFormat):
        decimal_to_minor_units(10.5, 2)  # type: ignore[arg-type]


@pytest.mark.parametrize("fraction_digits", [-1, 5])
def test_fraction_digits_out_of_range(fraction_digits):
    with pytest.raises(InvalidAmountFormat):
        minor_units_to_decimal(100, fraction_digits)
    with pytest.raises(InvalidAmountFormat):
        decimal_to_minor_units("1", fraction_digits)


@pytest.mark.parametrize("minor_units", [-1, True, 1.5])
def test_invalid_minor_units_rejected(minor_units):
    with pytest.raises(InvalidAmountFormat):
        minor_units_to_decimal(minor_units, 2)  # type: ignore[arg-type]


def test_psp_amount_helpers():
    money = Money(cent_amount=1500, currency_code="JPY", fraction_digits=0)
    assert to_psp_amount(money) == {"currency_code": "JPY", "value": "1500"}

    parsed = from_psp_amount({"currency_code": "eur", "value": "12.34"}, 2)
    assert parsed == Money(cent_amount=1234, currency_code="EUR", fraction_digits=2)
