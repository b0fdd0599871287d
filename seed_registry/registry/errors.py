"""
Registry Errors - Result codes and exception types.

Operational failures are never raised. They come back as a Result
carrying one of the ErrorCode values below, so callers can compare
codes exactly.

Exceptions are reserved for misuse of the package itself:
    SeedRegistryError (base)
    ├── ConfigError
    └── SnapshotError
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Stable numeric result codes returned by registry operations."""
    NOT_AUTHORIZED = 100
    INVALID_HASH = 101
    INVALID_TITLE = 102
    INVALID_DESCRIPTION = 103
    INVALID_ORIGIN = 104
    INVALID_CATEGORY = 105
    VARIETY_ALREADY_EXISTS = 106
    VARIETY_NOT_FOUND = 107
    AUTHORITY_NOT_VERIFIED = 109
    INVALID_CLIMATE = 110
    INVALID_YIELD = 111
    INVALID_UPDATE_PARAM = 113
    MAX_VARIETIES_EXCEEDED = 114
    INVALID_TRAITS = 115
    INVALID_RESISTANCE = 116
    INVALID_MATURITY = 117
    INVALID_LOCATION = 118


class TransferCode(IntEnum):
    """Failure codes reported by the value-transfer ledger."""
    INSUFFICIENT_BALANCE = 1
    SAME_SENDER_RECIPIENT = 2
    INVALID_AMOUNT = 3


class SeedRegistryError(Exception):
    """Base error for all package-raised errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigError(SeedRegistryError):
    """
    Raised for invalid registry configuration.

    Examples:
    - max_varieties of zero
    - negative registration fee
    - config file in an unsupported format
    """

    def __init__(
        self,
        message: str,
        field_name: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.field_name = field_name


class SnapshotError(SeedRegistryError):
    """
    Raised when a snapshot cannot be restored.

    A snapshot is rejected whole. Restoring never produces a registry
    whose hash index and record table disagree.
    """

    def __init__(
        self,
        message: str,
        variety_id: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(f"Invalid snapshot: {message}", details)
        self.variety_id = variety_id
