"""
Unit tests for storage size normalization.
"""

import pytest

from shadow_drive.core.errors import InvalidStorage
from shadow_drive.utils.validation import MAX_U64, parse_storage_size, validate_u32


class TestParseStorageSize:
    """Only KB, MB and GB are accepted."""

    @pytest.mark.parametrize(
        "size,expected",
        [
            ("1KB", 1_000),
            ("10MB", 10_000_000),
            ("2GB", 2_000_000_000),
            ("1.5 MB", 1_500_000),
            ("5kb", 5_000),
            ("  3 Gb ", 3_000_000_000),
        ],
    )
    def test_supported_units(self, size, expected):
        assert parse_storage_size(size) == expected

    @pytest.mark.parametrize("size", ["1TB", "10B", "1KiB", "100", "MB", "", "-1MB", "1.2.3MB"])
    def test_rejects_other_formats(self, size):
        with pytest.raises(InvalidStorage):
            parse_storage_size(size)

    def test_rejects_fractional_bytes(self):
        """0.0001KB is a tenth of a byte."""
        with pytest.raises(InvalidStorage, match="whole number"):
            parse_storage_size("0.0001KB")

    def test_rejects_zero(self):
        with pytest.raises(InvalidStorage):
            parse_storage_size("0MB")

    def test_rejects_overflow(self):
        assert 20_000_000_000 * 1_000_000_000 > MAX_U64
        with pytest.raises(InvalidStorage, match="exceeds"):
            parse_storage_size("20000000000GB")

    def test_rejects_non_string(self):
        with pytest.raises(InvalidStorage):
            parse_storage_size(1024)

    def test_invalid_storage_is_value_error(self):
        with pytest.raises(ValueError):
            parse_storage_size("1PB")


class TestValidateU32:
    def test_bounds(self):
        assert validate_u32(0, "seed") == 0
        assert validate_u32(2**32 - 1, "seed") == 2**32 - 1
        with pytest.raises(ValueError):
            validate_u32(2**32, "seed")
        with pytest.raises(ValueError):
            validate_u32(-1, "seed")
