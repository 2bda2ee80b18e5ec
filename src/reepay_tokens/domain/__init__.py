"""Reepay token domain layer.

This package contains the token variants, the order/subscription snapshots,
the ports the engine depends on, and the engine components: store, factory,
resolver, binder and lifecycle.
"""

from reepay_tokens.domain.binder import TokenBinder
from reepay_tokens.domain.exceptions import (
    CardNotFoundError,
    GatewayNotFoundError,
    InvalidTokenError,
    PersistenceError,
    RemoteDeleteError,
    RemoteLookupError,
    TokenError,
)
from reepay_tokens.domain.factory import TokenFactory
from reepay_tokens.domain.gateways import (
    CHECKOUT_GATEWAY,
    WALLET_RECURRING_GATEWAY,
    GatewayCatalog,
    GatewayDescriptor,
)
from reepay_tokens.domain.interfaces import (
    IOrderRepository,
    IReepayGateway,
    ITokenCache,
    ITokenRepository,
)
from reepay_tokens.domain.lifecycle import TokenLifecycle
from reepay_tokens.domain.order import Order, Subscription
from reepay_tokens.domain.resolver import TokenResolver
from reepay_tokens.domain.store import TokenStore
from reepay_tokens.domain.token import (
    CardDetails,
    CardInfo,
    PaymentMethodToken,
    TokenType,
)

__all__ = [
    # Token models
    "PaymentMethodToken",
    "TokenType",
    "CardDetails",
    "CardInfo",
    "Order",
    "Subscription",
    # Exceptions
    "TokenError",
    "InvalidTokenError",
    "RemoteLookupError",
    "CardNotFoundError",
    "PersistenceError",
    "RemoteDeleteError",
    "GatewayNotFoundError",
    # Gateways
    "GatewayCatalog",
    "GatewayDescriptor",
    "CHECKOUT_GATEWAY",
    "WALLET_RECURRING_GATEWAY",
    # Engine
    "TokenStore",
    "TokenFactory",
    "TokenResolver",
    "TokenBinder",
    "TokenLifecycle",
    # Ports
    "ITokenRepository",
    "IOrderRepository",
    "ITokenCache",
    "IReepayGateway",
]
