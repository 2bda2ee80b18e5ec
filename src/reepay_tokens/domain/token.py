"""Domain models for Reepay payment-method tokens.

A token is a tagged variant: ``token_type`` is the discriminant and card
details exist only on card tokens. Lookup, bind and delete work on the common
fields; only classification (TokenFactory) and the gateway membership test
look at the variant.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from reepay_tokens.domain.exceptions import CardNotFoundError

# Added to the 2-digit year Reepay returns in exp_date
EXPIRY_CENTURY = 2000


class TokenType(str, enum.Enum):
    """Payment-method token variants."""

    CARD = "card"
    WALLET_RECURRING = "wallet_recurring"


@dataclass(frozen=True)
class CardDetails:
    """Card display data derived from a Reepay card-info payload.

    No PAN is ever stored; ``masked_card`` is the processor's masked form
    (e.g. ``"457199XXXXXX3040"``).

    Attributes:
        last4: Last 4 characters of the masked card
        expiry_month: Expiry month as received ("01" - "12")
        expiry_year: 4-digit expiry year
        card_type: Card brand label (e.g. "visa", "mc", "dankort")
        masked_card: Masked card number for display
    """

    last4: str
    expiry_month: str
    expiry_year: int
    card_type: str
    masked_card: str

    def __post_init__(self):
        """Validate card fields."""
        if len(self.last4) != 4:
            raise ValueError("last4 must be 4 characters")

        if not self.expiry_month.isdigit() or not 1 <= int(self.expiry_month) <= 12:
            raise ValueError("expiry_month must be between 01 and 12")

        if not 1000 <= self.expiry_year <= 9999:
            raise ValueError("expiry_year must be a 4-digit year")


@dataclass
class PaymentMethodToken:
    """A Reepay payment method persisted locally.

    Attributes:
        token: External token string issued by Reepay (unique, immutable)
        gateway_id: Payment-method integration owning the token
        user_id: Local customer id owning the token
        token_type: Variant discriminant
        card: Card details, present only for CARD tokens
        id: Local identifier, None until persisted
        created_at: Set by the store on persist
    """

    token: str
    gateway_id: str
    user_id: int
    token_type: TokenType
    card: Optional[CardDetails] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        """Enforce the variant invariants."""
        if not self.token:
            raise ValueError("token cannot be empty")

        if not self.gateway_id:
            raise ValueError("gateway_id cannot be empty")

        if self.token_type is TokenType.CARD and self.card is None:
            raise ValueError("card tokens require card details")

        if self.token_type is TokenType.WALLET_RECURRING and self.card is not None:
            raise ValueError("wallet-recurring tokens never carry card details")

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    @property
    def is_card(self) -> bool:
        return self.token_type is TokenType.CARD

    @property
    def is_wallet_recurring(self) -> bool:
        return self.token_type is TokenType.WALLET_RECURRING

    @classmethod
    def card_token(
        cls,
        token: str,
        gateway_id: str,
        user_id: int,
        card: CardDetails,
    ) -> "PaymentMethodToken":
        """Build an unpersisted card token."""
        return cls(
            token=token,
            gateway_id=gateway_id,
            user_id=user_id,
            token_type=TokenType.CARD,
            card=card,
        )

    @classmethod
    def wallet_recurring_token(
        cls,
        token: str,
        gateway_id: str,
        user_id: int,
    ) -> "PaymentMethodToken":
        """Build an unpersisted wallet-recurring (MobilePay Subscriptions) token."""
        return cls(
            token=token,
            gateway_id=gateway_id,
            user_id=user_id,
            token_type=TokenType.WALLET_RECURRING,
        )


@dataclass(frozen=True)
class CardInfo:
    """Card/wallet metadata returned by Reepay for a token.

    Only mined for fields; the full payload is kept in ``raw`` so callers can
    store it on the order as ``_reepay_source``.
    """

    id: str
    masked_card: Optional[str] = None
    card_type: Optional[str] = None
    exp_date: Optional[str] = None
    recurring_payment_method: Optional[str] = None
    transactions: list[dict[str, Any]] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CardInfo":
        """Create card info from a Reepay payload.

        Raises:
            CardNotFoundError: If the payload is empty or has no id
        """
        if not data or not data.get("id"):
            raise CardNotFoundError("Card not found")

        return cls(
            id=str(data["id"]),
            masked_card=data.get("masked_card"),
            card_type=data.get("card_type"),
            exp_date=data.get("exp_date"),
            recurring_payment_method=data.get("recurring_payment_method"),
            transactions=list(data.get("transactions") or []),
            raw=dict(data),
        )

    def parse_expiry(self) -> tuple[str, int]:
        """Split ``exp_date`` ("MM-YY") into month and 4-digit year.

        Returns:
            Tuple of (month as received, 2000 + year)

        Raises:
            CardNotFoundError: If exp_date is missing or malformed
        """
        parts = (self.exp_date or "").split("-")
        if len(parts) != 2 or not parts[0].isdigit() or not parts[1].isdigit():
            raise CardNotFoundError(f"Card {self.id} has no usable expiry date")

        month, year = parts
        return month, EXPIRY_CENTURY + int(year)

    def to_card_details(self) -> CardDetails:
        """Derive card details for a card token.

        Raises:
            CardNotFoundError: If the payload lacks a masked card or expiry
        """
        if not self.masked_card or len(self.masked_card) < 4:
            raise CardNotFoundError(f"Card {self.id} has no masked card number")

        month, year = self.parse_expiry()
        try:
            return CardDetails(
                last4=self.masked_card[-4:],
                expiry_month=month,
                expiry_year=year,
                card_type=self.card_type or "",
                masked_card=self.masked_card,
            )
        except ValueError as e:
            raise CardNotFoundError(f"Card {self.id} has invalid card data: {e}") from e
