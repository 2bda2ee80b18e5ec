"""Unit tests for TokenFactory classification and creation."""

from unittest.mock import Mock

import pytest

from reepay_tokens.domain.exceptions import (
    CardNotFoundError,
    PersistenceError,
    RemoteLookupError,
)
from reepay_tokens.domain.factory import TokenFactory
from reepay_tokens.domain.interfaces import ITokenRepository
from reepay_tokens.domain.token import CardInfo, TokenType


def _assign_id(token):
    token.id = 11
    return token


@pytest.fixture
def repository():
    repo = Mock(spec=ITokenRepository)
    repo.save.side_effect = _assign_id
    return repo


@pytest.fixture
def factory(repository, gateway, catalog):
    return TokenFactory(repository, gateway, catalog)


class TestClassify:
    """Tests for variant classification."""

    def test_wallet_recurring_prefix(self, factory):
        card_info = CardInfo.from_dict({"id": "ms_abc123"})

        token = factory.classify("ms_abc123", card_info, customer_id=42)

        assert token.token_type is TokenType.WALLET_RECURRING
        assert token.gateway_id == "reepay_mobilepay_subscriptions"
        assert token.card is None
        assert token.user_id == 42

    def test_card(self, factory):
        card_info = CardInfo.from_dict(
            {
                "id": "card_abc123",
                "masked_card": "457199XXXXXX3040",
                "card_type": "visa",
                "exp_date": "07-25",
            }
        )

        token = factory.classify("card_abc123", card_info, customer_id=42)

        assert token.token_type is TokenType.CARD
        assert token.gateway_id == "reepay_checkout"
        assert token.token == "card_abc123"
        assert token.card.last4 == "3040"
        assert token.card.expiry_month == "07"
        assert token.card.expiry_year == 2025
        assert token.card.card_type == "visa"
        assert token.card.masked_card == "457199XXXXXX3040"

    def test_custom_prefix(self, repository, gateway, catalog):
        factory = TokenFactory(repository, gateway, catalog, wallet_recurring_prefix="vp_")

        token = factory.classify("vp_1", CardInfo.from_dict({"id": "vp_1"}), customer_id=1)

        assert token.is_wallet_recurring


class TestCreateForCustomer:
    """Tests for TokenFactory.create_for_customer."""

    def test_creates_card_token(self, factory, repository, gateway, card_payload):
        token, card_info = factory.create_for_customer(42, card_payload["id"])

        gateway.get_customer_handle.assert_called_once_with(42)
        gateway.get_card_info.assert_called_once_with("customer-42", card_payload["id"])
        repository.save.assert_called_once()
        assert token.id == 11
        assert token.is_card
        assert card_info.raw == card_payload

    def test_creates_wallet_token(self, factory, gateway, wallet_payload):
        gateway.get_card_info.return_value = wallet_payload

        token, card_info = factory.create_for_customer(42, wallet_payload["id"])

        assert token.is_wallet_recurring
        assert token.card is None
        assert card_info.id == wallet_payload["id"]

    def test_remote_error_propagates(self, factory, repository, gateway):
        gateway.get_card_info.side_effect = RemoteLookupError(
            "Customer not found", code="6", status_code=404
        )

        with pytest.raises(RemoteLookupError) as exc_info:
            factory.create_for_customer(42, "ca_123")

        assert exc_info.value.status_code == 404
        repository.save.assert_not_called()

    def test_empty_result_is_card_not_found(self, factory, repository, gateway):
        gateway.get_card_info.return_value = {}

        with pytest.raises(CardNotFoundError, match="Card not found"):
            factory.create_for_customer(42, "ca_123")

        repository.save.assert_not_called()

    def test_unusable_card_data_is_card_not_found(self, factory, repository, gateway, card_payload):
        card_payload["exp_date"] = None

        with pytest.raises(CardNotFoundError):
            factory.create_for_customer(42, card_payload["id"])

        repository.save.assert_not_called()

    def test_persistence_error_propagates(self, factory, repository, card_payload):
        repository.save.side_effect = PersistenceError("There was a problem adding the card.")

        with pytest.raises(PersistenceError, match="problem adding the card"):
            factory.create_for_customer(42, card_payload["id"])
