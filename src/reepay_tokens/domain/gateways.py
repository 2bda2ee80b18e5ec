"""Catalog of the payment-method integrations that own Reepay tokens."""

from dataclasses import dataclass

from reepay_tokens.config import GatewaySettings
from reepay_tokens.domain.exceptions import GatewayNotFoundError

CHECKOUT_GATEWAY = "reepay_checkout"
WALLET_RECURRING_GATEWAY = "reepay_mobilepay_subscriptions"


@dataclass(frozen=True)
class GatewayDescriptor:
    """A registered gateway.

    Attributes:
        name: Catalog key (CHECKOUT_GATEWAY or WALLET_RECURRING_GATEWAY)
        id: Gateway id stored on tokens
        title: Display title
    """

    name: str
    id: str
    title: str


class GatewayCatalog:
    """Resolves the recognised gateway names to their descriptors."""

    def __init__(self, descriptors: list[GatewayDescriptor]):
        self._descriptors = {descriptor.name: descriptor for descriptor in descriptors}

    @classmethod
    def from_settings(cls, gateway_settings: GatewaySettings) -> "GatewayCatalog":
        return cls(
            [
                GatewayDescriptor(
                    name=CHECKOUT_GATEWAY,
                    id=gateway_settings.checkout_id,
                    title=gateway_settings.checkout_title,
                ),
                GatewayDescriptor(
                    name=WALLET_RECURRING_GATEWAY,
                    id=gateway_settings.wallet_recurring_id,
                    title=gateway_settings.wallet_recurring_title,
                ),
            ]
        )

    def get(self, name: str) -> GatewayDescriptor:
        """Get a gateway descriptor by name.

        Raises:
            GatewayNotFoundError: If the gateway is not registered
        """
        try:
            return self._descriptors[name]
        except KeyError:
            raise GatewayNotFoundError(f"Gateway {name} is not registered") from None

    def checkout(self) -> GatewayDescriptor:
        return self.get(CHECKOUT_GATEWAY)

    def wallet_recurring(self) -> GatewayDescriptor:
        return self.get(WALLET_RECURRING_GATEWAY)

    def reepay_gateway_ids(self) -> frozenset[str]:
        """Gateway ids whose tokens are Reepay tokens."""
        return frozenset((self.checkout().id, self.wallet_recurring().id))
