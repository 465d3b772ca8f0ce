"""
Base verification provider interface.
The orchestrator only talks to providers through this contract.
"""

from abc import ABC, abstractmethod

from ...models.verification import Channel


class ProviderGateway(ABC):
    """Outbound verification capabilities of an external provider."""

    @abstractmethod
    async def dispatch_code(self, identifier: str, channel: Channel) -> str:
        """
        Ask the provider to deliver a one-time code.

        Args:
            identifier: Phone number or email address
            channel: "sms" or "email"

        Returns:
            Provider transaction id (request_id)

        Raises:
            ProviderError: Delivery request failed
        """

    @abstractmethod
    async def confirm_code(self, request_id: str, code: str) -> bool:
        """
        Check a user-entered code against a dispatched transaction.

        Fails closed: any provider-side failure, including an empty request
        id, is False.

        Raises:
            ConfigurationError: Provider credentials are not configured
        """

    @abstractmethod
    async def exchange_authorization_code(self, code: str, redirect_uri: str) -> str:
        """
        Complete an OAuth2 authorization-code grant.

        Returns:
            Access token

        Raises:
            ProviderError: Transport failure or non-2xx response
        """

    @abstractmethod
    async def check_network_verification(
        self, access_token: str, phone_number: str
    ) -> bool:
        """
        Silently ask whether `phone_number` belongs to the current network session.

        Fails closed: any failure is False.
        """

    @abstractmethod
    async def request_authorization_url(
        self, phone_number: str, state: str, scope: str
    ) -> str:
        """
        Start an authorization flow scoped to number verification.

        Returns:
            URL the end user's browser is redirected to

        Raises:
            ProviderError: Provider refused or failed
        """

    async def close(self) -> None:
        """Release network resources."""
