"""Wiring of the token engine from settings.

Provides the process-wide collaborators (cache, Reepay client, gateway
catalog) and builds a ReepayTokenService around a caller's database session.
"""

from functools import lru_cache

from sqlalchemy.orm import Session

from reepay_tokens.clients.reepay_client import ReepayApiClient
from reepay_tokens.config import Settings, settings
from reepay_tokens.domain.gateways import GatewayCatalog
from reepay_tokens.domain.interfaces import ITokenCache
from reepay_tokens.infrastructure.cache import create_token_cache
from reepay_tokens.infrastructure.repository import OrderRepository, TokenRepository
from reepay_tokens.logging_config import configure_logging
from reepay_tokens.service import ReepayTokenService


def configure(app_settings: Settings = settings) -> None:
    """Configure logging once at process start."""
    configure_logging(
        log_level=app_settings.log_level,
        format_as_json=app_settings.log_json,
    )


@lru_cache
def get_token_cache() -> ITokenCache:
    """Process-wide token cache, shared by every session."""
    return create_token_cache(settings.cache)


@lru_cache
def get_reepay_client() -> ReepayApiClient:
    """Process-wide Reepay API client (keeps its connection pool)."""
    return ReepayApiClient(
        base_url=settings.reepay.base_url,
        private_key=settings.reepay.private_key,
        timeout_seconds=settings.reepay.timeout_seconds,
        customer_handle_prefix=settings.reepay.customer_handle_prefix,
        invoice_handle_prefix=settings.reepay.invoice_handle_prefix,
    )


@lru_cache
def get_gateway_catalog() -> GatewayCatalog:
    return GatewayCatalog.from_settings(settings.gateways)


def build_token_service(session: Session) -> ReepayTokenService:
    """Build the token service for one unit of work.

    Usage:
        with get_db_session() as session:
            service = build_token_service(session)
            token = service.reepay_save_token(order, "ca_1234")
    """
    return ReepayTokenService(
        tokens=TokenRepository(session),
        orders=OrderRepository(session),
        cache=get_token_cache(),
        gateway=get_reepay_client(),
        catalog=get_gateway_catalog(),
        wallet_recurring_prefix=settings.gateways.wallet_recurring_prefix,
    )
