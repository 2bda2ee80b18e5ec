"""Repository layer for token and order database operations.

Repositories write inside savepoints but never commit: the caller owns the
transaction (see infrastructure.database.get_db_session).
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from reepay_tokens.domain.exceptions import PersistenceError
from reepay_tokens.domain.interfaces import IOrderRepository, ITokenRepository
from reepay_tokens.domain.order import Order, Subscription
from reepay_tokens.domain.token import CardDetails, PaymentMethodToken, TokenType
from reepay_tokens.infrastructure.models import Order as OrderModel
from reepay_tokens.infrastructure.models import OrderPaymentToken
from reepay_tokens.infrastructure.models import PaymentToken as PaymentTokenModel
from reepay_tokens.logging_config import get_logger

logger = get_logger(__name__)


@contextmanager
def _savepoint(session: Session, message: str) -> Iterator[None]:
    """Run writes in a SAVEPOINT, raising PersistenceError if they fail."""
    try:
        with session.begin_nested():
            yield
    except SQLAlchemyError as e:
        raise PersistenceError(f"{message}: {e}") from e


class TokenRepository(ITokenRepository):
    """Repository for the authoritative payment token table."""

    def __init__(self, session: Session):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy database session
        """
        self.session = session

    def get(self, token_id: int) -> Optional[PaymentMethodToken]:
        """Retrieve a token by local id."""
        model = self.session.get(PaymentTokenModel, token_id)
        if model is None:
            logger.debug("token_id_not_found", token_id=token_id)
            return None

        return self._to_domain_entity(model)

    def get_id_by_token(self, token: str) -> Optional[int]:
        """Look up the local id for an external token string."""
        return (
            self.session.query(PaymentTokenModel.id)
            .filter(PaymentTokenModel.token == token)
            .scalar()
        )

    def save(self, token: PaymentMethodToken) -> PaymentMethodToken:
        """Insert a token, or return the existing row for the same token string.

        The UNIQUE constraint on ``token`` decides races: the loser of a
        concurrent insert rolls back to its savepoint and reads the winner's row.

        Raises:
            PersistenceError: If the insert fails for any other reason
        """
        card = token.card
        model = PaymentTokenModel(
            token=token.token,
            gateway_id=token.gateway_id,
            user_id=token.user_id,
            token_type=token.token_type.value,
            last4=card.last4 if card else None,
            expiry_month=card.expiry_month if card else None,
            expiry_year=card.expiry_year if card else None,
            card_type=card.card_type if card else None,
            masked_card=card.masked_card if card else None,
            created_at=datetime.now(timezone.utc),
        )

        try:
            with self.session.begin_nested():
                self.session.add(model)
        except IntegrityError as e:
            # Only the savepoint is rolled back; the caller's unit of work survives
            logger.info("token_insert_conflict", token=token.token)

            existing = (
                self.session.query(PaymentTokenModel)
                .filter(PaymentTokenModel.token == token.token)
                .first()
            )
            if existing is None:
                raise PersistenceError(
                    "There was a problem adding the card."
                ) from e
            return self._to_domain_entity(existing)
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"There was a problem adding the card: {e}"
            ) from e

        logger.debug("token_saved", token=token.token, token_id=model.id)
        return self._to_domain_entity(model)

    def delete(self, token_id: int) -> None:
        """Delete a token by local id; associations are removed by cascade."""
        model = self.session.get(PaymentTokenModel, token_id)
        if model is None:
            logger.debug("token_delete_missing", token_id=token_id)
            return

        with _savepoint(self.session, f"Failed to delete token {token_id}"):
            self.session.delete(model)

    def _to_domain_entity(self, model: PaymentTokenModel) -> PaymentMethodToken:
        """Convert ORM model to domain entity."""
        token_type = TokenType(model.token_type)

        card = None
        if token_type is TokenType.CARD:
            card = CardDetails(
                last4=model.last4 or "",
                expiry_month=model.expiry_month or "",
                expiry_year=model.expiry_year or 0,
                card_type=model.card_type or "",
                masked_card=model.masked_card or "",
            )

        return PaymentMethodToken(
            token=model.token,
            gateway_id=model.gateway_id,
            user_id=model.user_id,
            token_type=token_type,
            card=card,
            id=model.id,
            created_at=model.created_at,
        )


class OrderRepository(IOrderRepository):
    """Repository for order/subscription metadata and token associations."""

    def __init__(self, session: Session):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy database session
        """
        self.session = session

    def add(self, order: Order) -> None:
        """Insert an order or subscription snapshot."""
        model = OrderModel(
            id=order.id,
            customer_id=order.customer_id,
            order_type="subscription" if isinstance(order, Subscription) else "order",
            parent_id=order.parent_id if isinstance(order, Subscription) else None,
            meta=dict(order.meta),
            updated_at=datetime.now(timezone.utc),
        )
        self.session.add(model)
        self.session.flush()

        for token_id in order.payment_token_ids:
            self.add_payment_token(order.id, token_id)

    def get(self, order_id: int) -> Optional[Order]:
        """Load an order from the database, discarding any cached state."""
        model = self.session.get(OrderModel, order_id, populate_existing=True)
        if model is None:
            logger.debug("order_not_found", order_id=order_id)
            return None

        token_ids = [
            row.token_id
            for row in self.session.query(OrderPaymentToken.token_id)
            .filter(OrderPaymentToken.order_id == order_id)
            .order_by(OrderPaymentToken.token_id)
        ]

        if model.order_type == "subscription":
            return Subscription(
                id=model.id,
                customer_id=model.customer_id,
                meta=dict(model.meta or {}),
                payment_token_ids=token_ids,
                parent_id=model.parent_id,
            )

        return Order(
            id=model.id,
            customer_id=model.customer_id,
            meta=dict(model.meta or {}),
            payment_token_ids=token_ids,
        )

    def clear_payment_tokens(self, order_id: int) -> None:
        with _savepoint(self.session, f"Failed to clear payment tokens of order {order_id}"):
            self.session.query(OrderPaymentToken).filter(
                OrderPaymentToken.order_id == order_id
            ).delete()

    def add_payment_token(self, order_id: int, token_id: int) -> None:
        with _savepoint(
            self.session, f"Failed to add payment token {token_id} to order {order_id}"
        ):
            self.session.merge(OrderPaymentToken(order_id=order_id, token_id=token_id))

    def update_meta(self, order_id: int, values: dict[str, Any]) -> None:
        """Merge several metadata slots into the order in one UPDATE.

        Raises:
            PersistenceError: If the order doesn't exist or the write fails
        """
        model = self.session.get(OrderModel, order_id)
        if model is None:
            raise PersistenceError(f"Order {order_id} not found")

        with _savepoint(self.session, f"Failed to update metadata of order {order_id}"):
            # Reassign so the JSON column is flagged dirty
            model.meta = {**(model.meta or {}), **values}
            model.updated_at = datetime.now(timezone.utc)
