"""Structured error taxonomy for timelockwatch."""
#
# PURPOSE:
# Gives every failure in the decode/correlate pipeline an error code, a
# human-readable message and a details dictionary, so a caller can report
# which record failed and why without parsing exception strings.
#
# ERROR CODE FORMAT:
# - DECODE_XXX: Call decoding errors (per record, never fatal to a batch)
# - FETCH_XXX: Ledger history retrieval errors
# - CONFIG_XXX: Configuration errors
#
# USAGE:
#   from timelockwatch.errors import UnknownSelectorError
#
#   raise UnknownSelectorError(
#       "Selector 0xdeadbeef not in dialect gnosis_safe",
#       selector="0xdeadbeef",
#       dialect="gnosis_safe",
#   )
#
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    # Decode Errors
    DECODE_UNKNOWN_SELECTOR = "DECODE_001"
    DECODE_MALFORMED_PAYLOAD = "DECODE_002"
    DECODE_UNSUPPORTED_ACTION = "DECODE_003"

    # Fetch Errors
    FETCH_TRANSPORT_FAILED = "FETCH_001"
    FETCH_API_ERROR = "FETCH_002"
    FETCH_INVALID_RESPONSE = "FETCH_003"

    # Config Errors
    CONFIG_INVALID = "CONFIG_001"


class TimelockWatchError(Exception):
    """
    Base exception with structured error information.

    Attributes:
        code: ErrorCode enum value (e.g., "DECODE_001")
        message: Human-readable error message
        details: Dictionary with additional context
    """

    default_code: ErrorCode = ErrorCode.CONFIG_INVALID

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code or self.default_code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{self.code.value}] {message}")

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error to dictionary for JSON serialization.

        Returns:
            Dictionary with code, message and details
        """
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class DecodeError(TimelockWatchError):
    """Base class for errors raised while decoding a single record."""

    def __init__(self, message: str, record_hash: Optional[str] = None, **details: Any):
        self.record_hash = record_hash
        if record_hash is not None:
            details["record_hash"] = record_hash
        super().__init__(message, details=details)

    def for_record(self, record_hash: str) -> "DecodeError":
        """Return a copy of this error attributed to ``record_hash``."""
        details = {k: v for k, v in self.details.items() if k != "record_hash"}
        return type(self)(self.message, record_hash=record_hash, **details)


class UnknownSelectorError(DecodeError):
    """The payload's leading selector is not part of the active dialect."""

    default_code = ErrorCode.DECODE_UNKNOWN_SELECTOR


class MalformedPayloadError(DecodeError):
    """The payload bytes violate the declared parameter types."""

    default_code = ErrorCode.DECODE_MALFORMED_PAYLOAD


class UnsupportedGovernanceActionError(DecodeError):
    """Decoded fine, but is not a queue/cancel/execute call. Filtered, not reported."""

    default_code = ErrorCode.DECODE_UNSUPPORTED_ACTION


class RecordFetchError(TimelockWatchError):
    """The ledger history service could not supply a record batch."""

    default_code = ErrorCode.FETCH_API_ERROR


class ConfigError(TimelockWatchError):
    default_code = ErrorCode.CONFIG_INVALID


__all__ = [
    "ErrorCode",
    "TimelockWatchError",
    "DecodeError",
    "UnknownSelectorError",
    "MalformedPayloadError",
    "UnsupportedGovernanceActionError",
    "RecordFetchError",
    "ConfigError",
]
