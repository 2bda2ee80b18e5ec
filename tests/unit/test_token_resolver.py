"""Unit tests for TokenResolver fallback resolution."""

from unittest.mock import Mock

import pytest

from reepay_tokens.domain.exceptions import RemoteLookupError
from reepay_tokens.domain.interfaces import IOrderRepository
from reepay_tokens.domain.order import Order, Subscription
from reepay_tokens.domain.resolver import TokenResolver, candidate_from_invoice
from reepay_tokens.domain.store import TokenStore


class TestCandidateFromInvoice:
    """Tests for picking the token string from invoice data."""

    def test_last_transaction_wins(self):
        invoice = {"transactions": [{"payment_method": "A"}, {"payment_method": "B"}]}

        assert candidate_from_invoice(invoice) == "B"

    def test_empty_payment_methods_are_skipped(self):
        invoice = {
            "transactions": [
                {"payment_method": "A"},
                {"payment_method": "B"},
                {"payment_method": ""},
                {"state": "failed"},
            ]
        }

        assert candidate_from_invoice(invoice) == "B"

    def test_recurring_payment_method_preferred(self):
        invoice = {
            "recurring_payment_method": "R",
            "transactions": [{"payment_method": "A"}],
        }

        assert candidate_from_invoice(invoice) == "R"

    def test_no_data(self):
        assert candidate_from_invoice({}) is None
        assert candidate_from_invoice(None) is None
        assert candidate_from_invoice({"transactions": []}) is None


class TestTokenResolver:
    """Tests for TokenResolver."""

    @pytest.fixture
    def store(self, card_token):
        store = Mock(spec=TokenStore)
        store.resolve.return_value = card_token
        return store

    @pytest.fixture
    def orders(self):
        return Mock(spec=IOrderRepository)

    @pytest.fixture
    def resolver(self, store, orders, gateway):
        return TokenResolver(store, orders, gateway)

    def test_order_with_token(self, resolver, store, card_token):
        order = Order(id=1, customer_id=42, meta={"_reepay_token": card_token.token})

        assert resolver.resolve_for_order(order) is card_token
        store.resolve.assert_called_once_with(card_token.token)

    def test_order_without_token(self, resolver, store):
        order = Order(id=1, customer_id=42)

        assert resolver.resolve_for_order(order) is None
        store.resolve.assert_not_called()

    def test_order_token_not_stored(self, resolver, store):
        store.resolve.return_value = None
        order = Order(id=1, customer_id=42, meta={"_reepay_token": "ca_gone"})

        assert resolver.resolve_for_order(order) is None

    def test_subscription_own_slot(self, resolver, store, orders, gateway):
        orders.get.return_value = Order(id=1, customer_id=42, meta={"_reepay_token": "parent"})
        subscription = Subscription(
            id=2, customer_id=42, parent_id=1, meta={"_reepay_token": "own"}
        )

        resolver.resolve_for_subscription(subscription)

        store.resolve.assert_called_once_with("own")
        gateway.get_invoice_data.assert_not_called()

    def test_subscription_parent_slot(self, resolver, store, orders, gateway):
        orders.get.return_value = Order(id=1, customer_id=42, meta={"_reepay_token": "parent"})
        subscription = Subscription(id=2, customer_id=42, parent_id=1)

        resolver.resolve_for_subscription(subscription)

        orders.get.assert_called_once_with(1)
        store.resolve.assert_called_once_with("parent")
        gateway.get_invoice_data.assert_not_called()

    def test_subscription_invoice_last_transaction(self, resolver, store, orders, gateway):
        parent = Order(id=1, customer_id=42)
        orders.get.return_value = parent
        gateway.get_invoice_data.return_value = {
            "transactions": [{"payment_method": "A"}, {"payment_method": "B"}]
        }
        subscription = Subscription(id=2, customer_id=42, parent_id=1)

        resolver.resolve_for_subscription(subscription)

        gateway.get_invoice_data.assert_called_once_with(parent)
        store.resolve.assert_called_once_with("B")

    def test_subscription_invoice_error_is_soft(self, resolver, store, orders, gateway):
        orders.get.return_value = Order(id=1, customer_id=42)
        gateway.get_invoice_data.side_effect = RemoteLookupError("Reepay API timeout")
        subscription = Subscription(id=2, customer_id=42, parent_id=1)

        assert resolver.resolve_for_subscription(subscription) is None
        store.resolve.assert_not_called()

    def test_subscription_without_parent(self, resolver, store, orders, gateway):
        subscription = Subscription(id=2, customer_id=42)

        assert resolver.resolve_for_subscription(subscription) is None
        orders.get.assert_not_called()
        gateway.get_invoice_data.assert_not_called()
        store.resolve.assert_not_called()

    def test_subscription_with_missing_parent(self, resolver, store, orders, gateway):
        orders.get.return_value = None
        subscription = Subscription(id=2, customer_id=42, parent_id=99)

        assert resolver.resolve_for_subscription(subscription) is None
        gateway.get_invoice_data.assert_not_called()

    def test_subscription_empty_chain(self, resolver, store, orders, gateway):
        orders.get.return_value = Order(id=1, customer_id=42)
        gateway.get_invoice_data.return_value = {"transactions": []}
        subscription = Subscription(id=2, customer_id=42, parent_id=1)

        assert resolver.resolve_for_subscription(subscription) is None
        store.resolve.assert_not_called()

    def test_subscription_candidate_not_stored(self, resolver, store, orders):
        store.resolve.return_value = None
        orders.get.return_value = Order(id=1, customer_id=42, meta={"_reepay_token": "parent"})
        subscription = Subscription(id=2, customer_id=42, parent_id=1)

        assert resolver.resolve_for_subscription(subscription) is None
