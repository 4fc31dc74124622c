# Overview: Pytest coverage for number, date and category parsing helpers.

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from meatbook.decimal_utils import kg, money, rate, to_decimal, to_json_number
from meatbook.time_utils import iter_days, parse_iso_date, parse_iso_datetime, to_utc_z
from meatbook.validation import (
    InvalidDateError,
    ValidationError,
    enforce_rules_trade_line,
    enforce_rules_vendor_payment,
    normalize_category,
    parse_date_param,
)


class TestDecimals:

    @pytest.mark.parametrize("raw,expected", [
        ("12.5", Decimal("12.5")),
        (" 3 ", Decimal("3")),
        (7, Decimal("7")),
        (12.5, Decimal("12.5")),
        (0.1, Decimal("0.1")),
        (None, None),
    ])
    def test_to_decimal(self, raw, expected):
        assert to_decimal(raw) == expected

    @pytest.mark.parametrize("raw", [True, "", "abc", "NaN", "Infinity", [1]])
    def test_to_decimal_rejects(self, raw):
        with pytest.raises(ValueError):
            to_decimal(raw)

    def test_rounding_is_half_up(self):
        assert money(Decimal("2.345")) == Decimal("2.35")
        assert kg(Decimal("1.0005")) == Decimal("1.001")
        assert rate(Decimal("147.85714285")) == Decimal("147.8571")

    def test_json_numbers_are_plain_strings(self):
        assert to_json_number(money(Decimal("1200"))) == "1200.00"
        assert to_json_number(Decimal("1E+2")) == "100"
        assert to_json_number(None) is None


class TestDates:

    def test_parse_date(self):
        assert parse_iso_date("2024-05-01") == date(2024, 5, 1)
        assert parse_iso_date("") is None
        assert parse_iso_date(None) is None

    def test_datetime_input_uses_utc_day(self):
        assert parse_iso_date("2024-05-01T23:30:00-02:00") == date(2024, 5, 2)

    def test_parse_datetime_normalizes_to_naive_utc(self):
        assert parse_iso_datetime("2024-05-01T10:00:00Z") == datetime(2024, 5, 1, 10)
        assert parse_iso_datetime("2024-05-01T10:00:00+05:30") == datetime(2024, 5, 1, 4, 30)

    @pytest.mark.parametrize("raw", ["01/05/2024", "2024-02-30", "tomorrow"])
    def test_date_param_rejects(self, raw):
        with pytest.raises(InvalidDateError, match="from must be"):
            parse_date_param(raw, field="from")

    def test_invalid_date_is_a_validation_error(self):
        assert issubclass(InvalidDateError, ValidationError)

    def test_iter_days(self):
        days = list(iter_days(date(2024, 2, 28), date(2024, 3, 1)))
        assert days == [date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]
        assert list(iter_days(date(2024, 5, 2), date(2024, 5, 1))) == []

    def test_to_utc_z(self):
        assert to_utc_z(datetime(2024, 5, 1, 6, 0, 0, 123)) == "2024-05-01T06:00:00Z"
        aware = datetime(2024, 5, 1, 11, 30, tzinfo=timezone.utc)
        assert to_utc_z(aware) == "2024-05-01T11:30:00Z"
        assert to_utc_z(None) is None


class TestCategories:

    def test_defaults(self):
        assert normalize_category(None, None) == ("chicken", "whole")
        assert normalize_category(" Goat ", "Leg") == ("goat", "leg")

    @pytest.mark.parametrize("meat,cut", [("fish", "whole"), ("chicken", "neck")])
    def test_unknown(self, meat, cut):
        with pytest.raises(ValidationError):
            normalize_category(meat, cut)


class TestTradeRules:

    def test_zero_quantity_is_allowed(self):
        enforce_rules_trade_line({"quantity_kg": Decimal("0"), "rate_per_kg": Decimal("100")})

    @pytest.mark.parametrize("patch", [
        {"rate_per_kg": Decimal("1")},
        {"quantity_kg": Decimal("-1"), "rate_per_kg": Decimal("1")},
        {"quantity_kg": Decimal("1"), "rate_per_kg": Decimal("-1")},
        {"quantity_kg": Decimal("100001"), "rate_per_kg": Decimal("1")},
        {"quantity_kg": Decimal("100000"), "rate_per_kg": Decimal("100000")},
        {"quantity_kg": Decimal("0"), "rate_per_kg": Decimal("1e40")},
    ])
    def test_rejected(self, patch):
        with pytest.raises(ValidationError):
            enforce_rules_trade_line(patch)

    def test_payment_must_be_positive(self):
        enforce_rules_vendor_payment({"amount": Decimal("0.01")})
        with pytest.raises(ValidationError):
            enforce_rules_vendor_payment({"amount": Decimal("0")})
