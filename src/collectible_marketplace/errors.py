from __future__ import annotations

from .enums import ErrorKind


class MarketplaceError(Exception):
    """Base class for all SDK errors."""


class ConfigurationError(MarketplaceError, ValueError):
    """Raised when the node URL or marketplace address is missing or invalid."""


class MissingSignerError(MarketplaceError, RuntimeError):
    """Raised when a write is requested but no transaction signer is configured."""


class ValidationError(MarketplaceError, ValueError):
    """
    Raised when a request is rejected client-side, before anything is submitted.

    Carries the semantic `kind` the contract would have reported for the same mistake.
    """

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.UNKNOWN) -> None:
        super().__init__(message)
        self.kind = kind


class SettlementNotAllowedError(ValidationError):
    """Raised when an auction settlement is attempted by a non-winner or before resolution."""


class RejectionError(MarketplaceError, RuntimeError):
    """Raised when the contract aborts a transaction or view call with a numeric code."""

    def __init__(self, message: str, code: int) -> None:
        super().__init__(message)
        self.code = code


class NotFoundError(MarketplaceError, LookupError):
    """Raised when a query returns no matching asset."""


class MalformedResponseError(NotFoundError, ValueError):
    """Raised when a view response has the wrong arity or cannot be decoded."""


class TransportError(MarketplaceError, ConnectionError):
    """Raised when the fullnode is unreachable or a transaction is not finalized in time."""
