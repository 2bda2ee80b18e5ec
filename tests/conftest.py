"""Pytest configuration and shared fixtures for all tests.

This module provides shared test fixtures including:
- Reepay card-info and invoice payloads
- A gateway catalog built from default settings
- A mocked Reepay gateway
"""

from unittest.mock import Mock

import pytest

from reepay_tokens.config import GatewaySettings
from reepay_tokens.domain.gateways import GatewayCatalog
from reepay_tokens.domain.interfaces import IReepayGateway
from reepay_tokens.domain.token import CardDetails, PaymentMethodToken, TokenType

CARD_TOKEN = "ca_8e3a5b2f0c1d4e6f"
WALLET_TOKEN = "ms_71d2a9e4b3c5"


@pytest.fixture
def catalog():
    """Catalog with the default gateway ids."""
    return GatewayCatalog.from_settings(GatewaySettings())


@pytest.fixture
def card_payload():
    """Reepay card payment method payload."""
    return {
        "id": CARD_TOKEN,
        "state": "active",
        "customer": "customer-42",
        "masked_card": "457199XXXXXX3040",
        "card_type": "visa",
        "exp_date": "07-25",
        "transactions": [],
    }


@pytest.fixture
def wallet_payload():
    """Reepay MobilePay Subscriptions agreement payload."""
    return {
        "id": WALLET_TOKEN,
        "state": "active",
        "customer": "customer-42",
    }


@pytest.fixture
def gateway(card_payload):
    """Mocked Reepay gateway returning the card payload."""
    mock = Mock(spec=IReepayGateway)
    mock.get_customer_handle.side_effect = lambda customer_id: f"customer-{customer_id}"
    mock.get_customer_handle_by_order.side_effect = (
        lambda order: order.meta.get("_reepay_customer") or f"customer-{order.customer_id}"
    )
    mock.get_card_info.return_value = card_payload
    mock.get_invoice_data.return_value = {}
    mock.delete_payment_method.return_value = None
    return mock


@pytest.fixture
def card_token():
    """Persisted card token."""
    return PaymentMethodToken(
        id=7,
        token=CARD_TOKEN,
        gateway_id="reepay_checkout",
        user_id=42,
        token_type=TokenType.CARD,
        card=CardDetails(
            last4="3040",
            expiry_month="07",
            expiry_year=2025,
            card_type="visa",
            masked_card="457199XXXXXX3040",
        ),
    )
