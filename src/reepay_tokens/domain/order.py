"""Order and subscription snapshots used by the token engine.

Orders and subscriptions are owned elsewhere; the engine only reads their
metadata slots and writes the mirrored token fields.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

# Mirrored token fields, always written together by TokenBinder.bind
META_TOKEN_ID = "_reepay_token_id"
META_TOKEN = "reepay_token"
META_TOKEN_PRIVATE = "_reepay_token"

# Card display fields mirrored from card info
META_MASKED_CARD = "reepay_masked_card"
META_CARD_TYPE = "reepay_card_type"
META_SOURCE = "_reepay_source"

# Optional stored Reepay handles
META_CUSTOMER_HANDLE = "_reepay_customer"
META_ORDER_HANDLE = "_reepay_order"

# Slot read when resolving an order's token
TOKEN_SLOT = META_TOKEN_PRIVATE


@dataclass
class Order:
    """Purchase order snapshot.

    Attributes:
        id: Order id
        customer_id: Local customer id (0 for guests)
        meta: Order metadata slots
        payment_token_ids: Local ids of the associated payment tokens
    """

    id: int
    customer_id: int
    meta: dict[str, Any] = field(default_factory=dict)
    payment_token_ids: list[int] = field(default_factory=list)

    def get_meta(self, key: str, default: Any = None) -> Any:
        return self.meta.get(key, default)

    @property
    def token_string(self) -> Optional[str]:
        """External token string stored on the order, None when empty."""
        return self.meta.get(TOKEN_SLOT) or None


@dataclass
class Subscription(Order):
    """Recurring-billing subscription; may inherit its token from the parent order."""

    parent_id: Optional[int] = None
