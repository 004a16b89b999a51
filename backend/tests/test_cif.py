"""
Tests for CIF normalization and validation.
"""

import pytest

from rideledger.utils.cif import cif_as_int, cif_digits, is_valid_cif, normalize_cif


class TestNormalize:

    @pytest.mark.parametrize("raw,expected", [
        ("RO 123 456 7", "RO1234567"),
        ("1234567", "RO1234567"),
        ("ro1234567", "RO1234567"),
        ("", ""),
        (None, ""),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_cif(raw) == expected

    def test_digits(self):
        assert cif_digits("RO 12-34") == "1234"

    def test_as_int(self):
        assert cif_as_int("RO0123") == 123
        assert cif_as_int("") is None


class TestValidate:

    @pytest.mark.parametrize("cif", ["RO1234567", "1234567", "RO 12", "1234567890"])
    def test_valid(self, cif):
        assert is_valid_cif(cif) is True

    @pytest.mark.parametrize("cif", ["", "1", "RO12345678901", "12AB34", "RO-123"])
    def test_invalid(self, cif):
        assert is_valid_cif(cif) is False
