"""Reepay payment-method token resolution and reconciliation engine."""

from reepay_tokens.service import ReepayTokenService

__version__ = "0.1.0"

__all__ = ["ReepayTokenService", "__version__"]
