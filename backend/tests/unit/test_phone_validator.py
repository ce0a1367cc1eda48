"""
Unit tests for phone number validation.
"""

import pytest

from utils.phone_validator import clean_phone_number, validate_phone, validate_phone_optional


class TestCleanPhoneNumber:

    def test_strips_separators(self):
        assert clean_phone_number("0470 12.34-56") == "0470123456"
        assert clean_phone_number("+32 (0)2 123 45 67") == "+32021234567"


class TestValidatePhone:

    @pytest.mark.parametrize("value,expected", [
        ("0470 12 34 56", "0470123456"),      # Belgian mobile
        ("+32 470 12 34 56", "+32470123456"),
        ("02 123 45 67", "021234567"),        # Belgian landline
        ("+32 2 123 45 67", "+3221234567"),
        ("06 12 34 56 78", "0612345678"),     # French mobile
        ("+33 7 12 34 56 78", "+33712345678"),
        ("347 123 4567", "3471234567"),       # Italian mobile
        ("+39 347 123 4567", "+393471234567"),
    ])
    def test_accepted_numbers(self, value, expected):
        assert validate_phone(value) == expected

    @pytest.mark.parametrize("value", [
        "12345",
        "0412",
        "+1 555 123 4567",
        "04701234567890",
        "0470-12-34-5a",
        "05 12 34 56 78",
    ])
    def test_rejected_numbers(self, value):
        with pytest.raises(ValueError):
            validate_phone(value)

    def test_required(self):
        with pytest.raises(ValueError):
            validate_phone("   ")


class TestValidatePhoneOptional:

    def test_empty_is_none(self):
        assert validate_phone_optional(None) is None
        assert validate_phone_optional("") is None
        assert validate_phone_optional("  ") is None

    def test_invalid_still_raises(self):
        with pytest.raises(ValueError):
            validate_phone_optional("abc")
