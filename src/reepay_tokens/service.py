"""Entry point used by checkout, webhook and renewal callers.

ReepayTokenService composes the engine components around one database
session and exposes the operations under the names callers use.
"""

from typing import Optional, Union

from reepay_tokens.domain.binder import TokenBinder
from reepay_tokens.domain.factory import TokenFactory
from reepay_tokens.domain.gateways import GatewayCatalog
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
from reepay_tokens.domain.token import CardInfo, PaymentMethodToken


class ReepayTokenService:
    """Facade over TokenStore, TokenFactory, TokenResolver, TokenBinder and TokenLifecycle."""

    def __init__(
        self,
        tokens: ITokenRepository,
        orders: IOrderRepository,
        cache: ITokenCache,
        gateway: IReepayGateway,
        catalog: GatewayCatalog,
        wallet_recurring_prefix: str = "ms_",
    ):
        self.store = TokenStore(tokens, cache)
        self.factory = TokenFactory(
            tokens, gateway, catalog, wallet_recurring_prefix=wallet_recurring_prefix
        )
        self.resolver = TokenResolver(self.store, orders, gateway)
        self.binder = TokenBinder(self.store, self.factory, tokens, orders, gateway)
        self.lifecycle = TokenLifecycle(self.store, tokens, gateway, catalog)

    def get_payment_token(self, token: str) -> Optional[PaymentMethodToken]:
        return self.store.resolve(token)

    def get_payment_token_order(self, order: Order) -> Optional[PaymentMethodToken]:
        return self.resolver.resolve_for_order(order)

    def get_payment_token_subscription(
        self, subscription: Subscription
    ) -> Optional[PaymentMethodToken]:
        return self.resolver.resolve_for_subscription(subscription)

    def assign_payment_token(
        self, order: Order, token: Union[PaymentMethodToken, int, str]
    ) -> None:
        self.binder.bind(order, token)

    def reepay_save_token(self, order: Order, reepay_token: str) -> PaymentMethodToken:
        return self.binder.save_token_for_order(order, reepay_token)

    def reepay_save_card_info(
        self, order: Order, reepay_token: str
    ) -> Optional[CardInfo]:
        return self.binder.save_card_info(order, reepay_token)

    def add_payment_token_to_customer(
        self, customer_id: int, reepay_token: str
    ) -> tuple[PaymentMethodToken, CardInfo]:
        token, card_info = self.factory.create_for_customer(customer_id, reepay_token)
        self.store.remember(token)
        return token, card_info

    def add_payment_token_to_order(
        self, order: Order, reepay_token: str
    ) -> PaymentMethodToken:
        return self.binder.add_payment_token_to_order(order, reepay_token)

    def delete_card(self, token: PaymentMethodToken) -> bool:
        return self.lifecycle.delete(token)

    def is_reepay_token(self, token: Optional[PaymentMethodToken]) -> bool:
        return self.lifecycle.is_reepay_token(token)
