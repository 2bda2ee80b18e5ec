"""Ports the token engine depends on.

The domain layer defines what it needs (these interfaces) and the
infrastructure/clients layers implement them: SQLAlchemy repositories, the
token cache backends and the Reepay REST client.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from reepay_tokens.domain.order import Order
from reepay_tokens.domain.token import PaymentMethodToken


class ITokenRepository(ABC):
    """Authoritative token table.

    Keyed by local id with a unique secondary lookup by external token string.
    """

    @abstractmethod
    def get(self, token_id: int) -> Optional[PaymentMethodToken]:
        """Load a token by local id, None if absent."""
        pass

    @abstractmethod
    def get_id_by_token(self, token: str) -> Optional[int]:
        """Look up the local id for an external token string, None if absent."""
        pass

    @abstractmethod
    def save(self, token: PaymentMethodToken) -> PaymentMethodToken:
        """Persist a new token and return it with its local id.

        If a record for the same external string already exists (including one
        created concurrently), the existing record is returned instead.

        Raises:
            PersistenceError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, token_id: int) -> None:
        """Delete a token by local id.

        Raises:
            PersistenceError: If the delete fails
        """
        pass


class IOrderRepository(ABC):
    """Order/subscription store used for resolution and binding."""

    @abstractmethod
    def get(self, order_id: int) -> Optional[Order]:
        """Load an order or subscription snapshot, None if absent."""
        pass

    @abstractmethod
    def clear_payment_tokens(self, order_id: int) -> None:
        """Remove every payment token association of the order."""
        pass

    @abstractmethod
    def add_payment_token(self, order_id: int, token_id: int) -> None:
        """Associate a payment token with the order.

        Raises:
            PersistenceError: If the write fails
        """
        pass

    @abstractmethod
    def update_meta(self, order_id: int, values: dict[str, Any]) -> None:
        """Write several metadata slots in a single write.

        Raises:
            PersistenceError: If the order doesn't exist or the write fails
        """
        pass


class ITokenCache(ABC):
    """Best-effort external token string -> local id projection.

    Implementations may raise on backend failures; TokenStore treats every
    cache error as a miss.
    """

    @abstractmethod
    def get(self, token: str) -> Optional[int]:
        pass

    @abstractmethod
    def set(self, token: str, token_id: int) -> None:
        pass

    @abstractmethod
    def delete(self, token: str) -> None:
        pass


class IReepayGateway(ABC):
    """Remote Reepay collaborator."""

    @abstractmethod
    def get_customer_handle(self, customer_id: int) -> str:
        """Resolve a local customer id to the Reepay customer handle."""
        pass

    @abstractmethod
    def get_customer_handle_by_order(self, order: Order) -> str:
        """Resolve the Reepay customer handle an order was paid with."""
        pass

    @abstractmethod
    def get_card_info(self, customer_handle: str, token: str) -> dict[str, Any]:
        """Fetch card/wallet metadata for a token; empty dict when not found.

        Raises:
            RemoteLookupError: If the API call fails
        """
        pass

    @abstractmethod
    def get_invoice_data(self, order: Order) -> dict[str, Any]:
        """Fetch the Reepay invoice of an order.

        Raises:
            RemoteLookupError: If the API call fails
        """
        pass

    @abstractmethod
    def delete_payment_method(self, token: str) -> None:
        """Delete a payment method at Reepay.

        Raises:
            RemoteDeleteError: If the API call fails
        """
        pass
