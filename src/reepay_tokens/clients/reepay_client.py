"""Reepay REST API client for card info, invoices and payment method deletion."""

from typing import Any, Optional
from urllib.parse import quote

import httpx

from reepay_tokens.domain.exceptions import RemoteDeleteError, RemoteLookupError, TokenError
from reepay_tokens.domain.interfaces import IReepayGateway
from reepay_tokens.domain.order import META_CUSTOMER_HANDLE, META_ORDER_HANDLE, Order
from reepay_tokens.logging_config import get_logger

logger = get_logger(__name__)


def _segment(value: str) -> str:
    return quote(str(value), safe="")


class ReepayApiClient(IReepayGateway):
    """
    Client for the Reepay API endpoints the token engine needs.

    Authenticates with HTTP Basic auth using the private API key as username.
    Calls are synchronous with a fixed timeout and are never retried here;
    every failure (non-2xx, timeout, network error) is raised as the error
    kind of the operation.
    """

    def __init__(
        self,
        base_url: str,
        private_key: str,
        timeout_seconds: float = 10.0,
        customer_handle_prefix: str = "customer-",
        invoice_handle_prefix: str = "order-",
        http_client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the Reepay API client.

        Args:
            base_url: Reepay API base URL (e.g., "https://api.reepay.com")
            private_key: Private API key
            timeout_seconds: Request timeout in seconds
            customer_handle_prefix: Prefix of handles derived from customer ids
            invoice_handle_prefix: Prefix of handles derived from order ids
            http_client: Preconfigured client (tests, custom transports)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.customer_handle_prefix = customer_handle_prefix
        self.invoice_handle_prefix = invoice_handle_prefix
        self.http_client = http_client or httpx.Client(
            base_url=self.base_url,
            auth=(private_key, ""),
            timeout=timeout_seconds,
            headers={"Accept": "application/json"},
        )

        logger.info(
            "reepay_client_initialized",
            base_url=self.base_url,
            timeout_seconds=timeout_seconds,
        )

    def close(self) -> None:
        """Close the HTTP client connection pool."""
        self.http_client.close()

    def get_customer_handle(self, customer_id: int) -> str:
        return f"{self.customer_handle_prefix}{customer_id}"

    def get_customer_handle_by_order(self, order: Order) -> str:
        handle = order.get_meta(META_CUSTOMER_HANDLE)
        if handle:
            return handle
        return self.get_customer_handle(order.customer_id)

    def get_invoice_handle(self, order: Order) -> str:
        return order.get_meta(META_ORDER_HANDLE) or f"{self.invoice_handle_prefix}{order.id}"

    def get_card_info(self, customer_handle: str, token: str) -> dict[str, Any]:
        """
        Find a customer's payment method by id.

        Searches both saved cards and MobilePay Subscriptions agreements.

        Returns:
            The payment method payload, or an empty dict if the customer has
            no payment method with this id

        Raises:
            RemoteLookupError: If the API call fails
        """
        path = f"/v1/customer/{_segment(customer_handle)}/payment_method"
        data = self._request("GET", path, RemoteLookupError, token=token)

        for group in ("cards", "mps_subscriptions"):
            for payment_method in data.get(group) or []:
                if payment_method.get("id") == token:
                    return payment_method

        logger.info("reepay_payment_method_not_found", customer_handle=customer_handle, token=token)
        return {}

    def get_invoice_data(self, order: Order) -> dict[str, Any]:
        """
        Fetch the invoice of an order.

        Raises:
            RemoteLookupError: If the API call fails
        """
        handle = self.get_invoice_handle(order)
        return self._request(
            "GET", f"/v1/invoice/{_segment(handle)}", RemoteLookupError, order_id=order.id
        )

    def delete_payment_method(self, token: str) -> None:
        """
        Inactivate and delete a payment method.

        Raises:
            RemoteDeleteError: If the API call fails
        """
        self._request(
            "DELETE", f"/v1/payment_method/{_segment(token)}", RemoteDeleteError, token=token
        )
        logger.info("reepay_payment_method_deleted", token=token)

    def _request(
        self,
        method: str,
        path: str,
        error_cls: type[TokenError],
        **log_context: Any,
    ) -> dict[str, Any]:
        try:
            response = self.http_client.request(method, path)
        except httpx.TimeoutException as e:
            logger.error("reepay_api_timeout", method=method, path=path, error=str(e), **log_context)
            raise error_cls("Reepay API timeout") from e
        except httpx.RequestError as e:
            logger.error(
                "reepay_api_request_error", method=method, path=path, error=str(e), **log_context
            )
            raise error_cls(f"Reepay API request error: {e}") from e

        if response.status_code >= 400:
            message, code = self._parse_error(response)
            logger.warning(
                "reepay_api_error",
                method=method,
                path=path,
                status_code=response.status_code,
                code=code,
                error=message,
                **log_context,
            )
            raise error_cls(message, code=code, status_code=response.status_code)

        if not response.content:
            return {}

        try:
            return response.json()
        except ValueError as e:
            raise error_cls(f"Invalid JSON from Reepay API: {e}") from e

    @staticmethod
    def _parse_error(response: httpx.Response) -> tuple[str, Optional[str]]:
        """Extract message and code from a Reepay error body."""
        try:
            body = response.json()
        except ValueError:
            body = None

        if not isinstance(body, dict):
            return f"Reepay API error (status: {response.status_code})", None

        message = body.get("message") or body.get("error")
        if not message:
            message = f"Reepay API error (status: {response.status_code})"
        code = body.get("code")
        return message, str(code) if code is not None else None

    def __enter__(self) -> "ReepayApiClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
