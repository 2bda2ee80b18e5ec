"""Clients for external services."""

from reepay_tokens.clients.reepay_client import ReepayApiClient

__all__ = ["ReepayApiClient"]
