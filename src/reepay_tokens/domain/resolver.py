"""Finding the token that applies to an order or subscription."""

from typing import Any, Callable, Optional

from reepay_tokens.domain.exceptions import RemoteLookupError
from reepay_tokens.domain.interfaces import IOrderRepository, IReepayGateway
from reepay_tokens.domain.order import Order, Subscription
from reepay_tokens.domain.store import TokenStore
from reepay_tokens.domain.token import PaymentMethodToken
from reepay_tokens.logging_config import get_logger

logger = get_logger(__name__)

CandidateStep = Callable[[], Optional[str]]


def candidate_from_invoice(invoice_data: Optional[dict[str, Any]]) -> Optional[str]:
    """Pick the token string a Reepay invoice was paid with.

    ``recurring_payment_method`` wins; otherwise the last transaction with a
    payment method (later transactions override earlier ones).
    """
    if not invoice_data:
        return None

    if invoice_data.get("recurring_payment_method"):
        return invoice_data["recurring_payment_method"]

    candidate = None
    for transaction in invoice_data.get("transactions") or []:
        if transaction.get("payment_method"):
            candidate = transaction["payment_method"]
    return candidate


class TokenResolver:
    """Resolves orders and subscriptions to local tokens."""

    def __init__(
        self,
        store: TokenStore,
        orders: IOrderRepository,
        gateway: IReepayGateway,
    ):
        self.store = store
        self.orders = orders
        self.gateway = gateway

    def resolve_for_order(self, order: Order) -> Optional[PaymentMethodToken]:
        """Get the token stored on an order, None if it has none."""
        token = order.token_string
        if not token:
            return None

        return self.store.resolve(token)

    def resolve_for_subscription(
        self, subscription: Subscription
    ) -> Optional[PaymentMethodToken]:
        """Get the token a subscription renews with.

        Candidates are tried in order, stopping at the first non-empty one:
        the subscription's own slot, the parent order's slot, then the parent
        order's Reepay invoice. An invoice lookup failure yields None.
        """
        parent: Optional[Order] = None
        if subscription.parent_id is not None:
            parent = self.orders.get(subscription.parent_id)

        steps: list[CandidateStep] = [lambda: subscription.token_string]
        if parent is not None:
            steps.append(lambda: parent.token_string)
            steps.append(lambda: self._candidate_from_remote_invoice(parent))

        try:
            token = self._first_candidate(steps)
        except RemoteLookupError as e:
            logger.warning(
                "subscription_invoice_lookup_failed",
                subscription_id=subscription.id,
                parent_id=subscription.parent_id,
                error=e.message,
            )
            return None

        if not token:
            logger.debug("subscription_token_absent", subscription_id=subscription.id)
            return None

        return self.store.resolve(token)

    def _candidate_from_remote_invoice(self, order: Order) -> Optional[str]:
        return candidate_from_invoice(self.gateway.get_invoice_data(order))

    @staticmethod
    def _first_candidate(steps: list[CandidateStep]) -> Optional[str]:
        for step in steps:
            candidate = step()
            if candidate:
                return candidate
        return None
