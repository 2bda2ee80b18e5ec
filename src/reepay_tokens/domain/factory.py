"""Creation of local tokens from Reepay card info."""

from reepay_tokens.domain.exceptions import (
    CardNotFoundError,
    PersistenceError,
    RemoteLookupError,
)
from reepay_tokens.domain.gateways import GatewayCatalog
from reepay_tokens.domain.interfaces import IReepayGateway, ITokenRepository
from reepay_tokens.domain.token import CardInfo, PaymentMethodToken
from reepay_tokens.logging_config import get_logger

logger = get_logger(__name__)


class TokenFactory:
    """Classifies Reepay tokens and persists them as local records.

    A card-info id starting with the wallet-recurring prefix ("ms_") denotes a
    MobilePay Subscriptions agreement; anything else is a card.
    """

    def __init__(
        self,
        repository: ITokenRepository,
        gateway: IReepayGateway,
        catalog: GatewayCatalog,
        wallet_recurring_prefix: str = "ms_",
    ):
        self.repository = repository
        self.gateway = gateway
        self.catalog = catalog
        self.wallet_recurring_prefix = wallet_recurring_prefix

    def classify(
        self, raw_token: str, card_info: CardInfo, customer_id: int
    ) -> PaymentMethodToken:
        """Build an unpersisted token of the right variant.

        Args:
            raw_token: External token string the token is stored under
            card_info: Card info fetched for the token
            customer_id: Owning customer

        Returns:
            Unpersisted PaymentMethodToken

        Raises:
            CardNotFoundError: If a card payload lacks usable card data
        """
        if card_info.id.startswith(self.wallet_recurring_prefix):
            return PaymentMethodToken.wallet_recurring_token(
                token=raw_token,
                gateway_id=self.catalog.wallet_recurring().id,
                user_id=customer_id,
            )

        return PaymentMethodToken.card_token(
            token=raw_token,
            gateway_id=self.catalog.checkout().id,
            user_id=customer_id,
            card=card_info.to_card_details(),
        )

    def create_for_customer(
        self, customer_id: int, raw_token: str
    ) -> tuple[PaymentMethodToken, CardInfo]:
        """Fetch card info for a token and store it for the customer.

        Args:
            customer_id: Local customer id
            raw_token: External token string

        Returns:
            Tuple of (persisted token, card info) so the caller can mirror the
            card info onto the owning order

        Raises:
            RemoteLookupError: If the card-info lookup fails
            CardNotFoundError: If Reepay returns no usable card data
            PersistenceError: If the token cannot be stored
        """
        customer_handle = self.gateway.get_customer_handle(customer_id)

        try:
            payload = self.gateway.get_card_info(customer_handle, raw_token)
        except RemoteLookupError as e:
            logger.error(
                "card_info_lookup_failed",
                token=raw_token,
                customer_handle=customer_handle,
                error=e.message,
            )
            raise

        if not payload:
            logger.warning(
                "card_not_found", token=raw_token, customer_handle=customer_handle
            )
            raise CardNotFoundError("Card not found")

        card_info = CardInfo.from_dict(payload)
        token = self.classify(raw_token, card_info, customer_id)

        try:
            saved = self.repository.save(token)
        except PersistenceError as e:
            logger.error("token_save_failed", token=raw_token, error=e.message)
            raise

        logger.info(
            "token_created",
            token=raw_token,
            token_id=saved.id,
            token_type=saved.token_type.value,
            gateway_id=saved.gateway_id,
            customer_id=customer_id,
        )
        return saved, card_info
