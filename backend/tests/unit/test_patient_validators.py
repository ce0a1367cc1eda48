"""
Unit tests for patient field validation utilities.
"""

from datetime import date, timedelta

import pytest

from utils.datetime_utils import local_today
from utils.patient_validators import (
    validate_birth_date,
    validate_email_optional,
    validate_patient_name,
    validate_patient_name_optional,
    validate_patient_status,
)


class TestValidatePatientName:

    def test_trims(self):
        assert validate_patient_name("  Lambert ") == "Lambert"

    @pytest.mark.parametrize("value", ["", "   ", "<script>", "x" * 256])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            validate_patient_name(value)

    def test_optional(self):
        assert validate_patient_name_optional(None) is None
        assert validate_patient_name_optional(" Anne ") == "Anne"


class TestValidateEmail:

    def test_lowercases(self):
        assert validate_email_optional(" Marie.Lambert@Example.COM ") == "marie.lambert@example.com"

    def test_empty_is_none(self):
        assert validate_email_optional(None) is None
        assert validate_email_optional("  ") is None

    @pytest.mark.parametrize("value", ["marie", "marie@", "marie@example", "a b@example.com"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            validate_email_optional(value)


class TestValidateBirthDate:

    def test_string_and_date(self):
        assert validate_birth_date("1980-05-17") == date(1980, 5, 17)
        assert validate_birth_date("1980/5/17") == date(1980, 5, 17)
        assert validate_birth_date(date(1980, 5, 17)) == date(1980, 5, 17)

    def test_empty_is_none(self):
        assert validate_birth_date(None) is None
        assert validate_birth_date("") is None

    def test_future_rejected(self):
        with pytest.raises(ValueError):
            validate_birth_date(local_today() + timedelta(days=1))

    def test_implausible_rejected(self):
        with pytest.raises(ValueError):
            validate_birth_date("1850-01-01")


class TestValidatePatientStatus:

    def test_valid(self):
        assert validate_patient_status(" Inactive ") == "inactive"
        assert validate_patient_status(None) is None

    def test_invalid(self):
        with pytest.raises(ValueError):
            validate_patient_status("archived")
