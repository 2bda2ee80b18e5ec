"""Exceptions raised by the token engine.

Normal absence (no token on an order, an empty fallback chain, a string with
no local record) is never an exception: lookups return ``None``. The errors
below represent invalid input or an unexpected remote/storage failure and are
surfaced to the caller as-is.
"""

from typing import Optional


class TokenError(Exception):
    """Base exception for token engine errors.

    Attributes:
        message: Human readable description, safe to show to the caller
        code: Reepay error code when the failure came from the API
        status_code: HTTP status of the failed Reepay call, if any
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


class InvalidTokenError(TokenError):
    """Raised when bind/assign receives something that is not a token or token id."""

    pass


class RemoteLookupError(TokenError):
    """
    Raised when a Reepay card-info or invoice lookup fails.

    Covers non-2xx responses, timeouts and connection errors. The engine does
    not retry; the caller decides.
    """

    pass


class CardNotFoundError(TokenError):
    """Raised when Reepay returns no usable card data for a token."""

    pass


class PersistenceError(TokenError):
    """Raised when a write to the authoritative token table fails."""

    pass


class RemoteDeleteError(TokenError):
    """Raised by the Reepay client when deleting a payment method fails."""

    pass


class GatewayNotFoundError(TokenError, KeyError):
    """Raised when a gateway name is not registered in the catalog."""

    def __str__(self) -> str:
        return self.message
