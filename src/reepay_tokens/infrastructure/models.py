"""SQLAlchemy ORM models for the token engine."""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    TIMESTAMP,
    BigInteger,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from reepay_tokens.infrastructure.database import Base

# SQLite only autoincrements INTEGER PRIMARY KEY columns
TokenIdType = BigInteger().with_variant(Integer(), "sqlite")


class PaymentToken(Base):
    """
    Authoritative table of Reepay payment-method tokens.

    One row per external token string; card columns are only filled for
    card tokens.
    """

    __tablename__ = "payment_tokens"

    id: Mapped[int] = mapped_column(
        TokenIdType, primary_key=True, autoincrement=True, comment="Local token id"
    )

    # External token string issued by Reepay
    token: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True, comment="Reepay payment method id"
    )

    gateway_id: Mapped[str] = mapped_column(
        String(100), nullable=False, comment="Owning payment-method integration"
    )

    user_id: Mapped[int] = mapped_column(
        BigInteger, nullable=False, index=True, comment="Owning customer id"
    )

    token_type: Mapped[str] = mapped_column(
        String(32), nullable=False, comment="card | wallet_recurring"
    )

    # Card display data (card tokens only)
    last4: Mapped[str | None] = mapped_column(String(4), nullable=True)
    expiry_month: Mapped[str | None] = mapped_column(String(2), nullable=True)
    expiry_year: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
    card_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    masked_card: Mapped[str | None] = mapped_column(String(32), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="Token creation timestamp",
    )

    __table_args__ = (Index("idx_payment_tokens_user_gateway", "user_id", "gateway_id"),)


class Order(Base):
    """
    Orders and subscriptions as seen by the token engine.

    Only the metadata slots and payment token associations the engine reads
    and writes are stored here.
    """

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)

    customer_id: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0, comment="0 for guest orders"
    )

    order_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default="order", comment="order | subscription"
    )

    parent_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("orders.id", ondelete="SET NULL"),
        nullable=True,
        comment="Parent order of a subscription",
    )

    meta: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class OrderPaymentToken(Base):
    """Payment token associations of an order."""

    __tablename__ = "order_payment_tokens"

    order_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("orders.id", ondelete="CASCADE"), primary_key=True
    )

    token_id: Mapped[int] = mapped_column(
        TokenIdType,
        ForeignKey("payment_tokens.id", ondelete="CASCADE"),
        primary_key=True,
    )
