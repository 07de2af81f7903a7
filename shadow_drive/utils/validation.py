"""
Input Validation - Normalization of user-supplied sizes.

Storage sizes are given as human-readable strings ("250KB", "1.5 GB").
Only KB, MB and GB are accepted, using decimal multipliers. Everything
is rejected before any network call.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any

from shadow_drive.core.errors import InvalidStorage

# =============================================================================
# Constants
# =============================================================================

MAX_U64 = 2**64 - 1

STORAGE_UNITS = {
    "KB": 1_000,
    "MB": 1_000_000,
    "GB": 1_000_000_000,
}

_SIZE_PATTERN = re.compile(r"^\s*(?P<amount>\d+(?:\.\d+)?)\s*(?P<unit>[A-Za-z]+)\s*$")


# =============================================================================
# Validation Functions
# =============================================================================


def parse_storage_size(size: Any) -> int:
    """
    Convert a storage size with a unit suffix to a raw byte count.

    Args:
        size: Size string such as "10MB" or "1.5 gb"

    Returns:
        Number of bytes (fits in a u64)

    Raises:
        InvalidStorage: Malformed string, unsupported unit, fractional
            byte count, zero, or more than u64::MAX bytes
    """
    if not isinstance(size, str):
        raise InvalidStorage(size, f"size must be str, got {type(size).__name__}")

    match = _SIZE_PATTERN.match(size)
    if not match:
        raise InvalidStorage(size, "expected <number><unit>, e.g. 10MB")

    unit = match.group("unit").upper()
    if unit not in STORAGE_UNITS:
        raise InvalidStorage(size)

    try:
        amount = Decimal(match.group("amount"))
    except InvalidOperation:
        raise InvalidStorage(size, "amount is not a number")

    total = amount * STORAGE_UNITS[unit]
    if total != total.to_integral_value():
        raise InvalidStorage(size, "size must be a whole number of bytes")

    size_as_bytes = int(total)
    if size_as_bytes <= 0:
        raise InvalidStorage(size, "size must be positive")
    if size_as_bytes > MAX_U64:
        raise InvalidStorage(size, f"size exceeds maximum of {MAX_U64} bytes")

    return size_as_bytes


def validate_u32(value: Any, name: str) -> int:
    """Check that value fits an on-chain u32 seed."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{name} must be int, got {type(value).__name__}")
    if value < 0 or value > 2**32 - 1:
        raise ValueError(f"{name} must be in [0, 2^32), got {value}")
    return value


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "parse_storage_size",
    "validate_u32",
    "MAX_U64",
    "STORAGE_UNITS",
]
