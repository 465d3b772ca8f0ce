"""
HTTP implementation of the provider gateway.

One class covers every deployment variant; endpoints, brand and the token
exchange auth scheme come from settings. Calls share a pooled httpx client
with a bounded timeout so a slow provider cannot pin a request forever.
"""

from typing import Any

import httpx
import structlog

from ...core.config import Settings
from ...core.exceptions import ProviderError
from ...core.identifiers import provider_recipient
from ...models.verification import Channel
from .base import ProviderGateway
from .credentials import ProviderCredentials

logger = structlog.get_logger()

# Provider error text surfaced to clients is truncated to this length
MAX_REASON_LENGTH = 200


def _provider_reason(response: httpx.Response) -> str:
    """Short human-readable reason from a provider error response."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        for field in ("error_description", "detail", "title", "error"):
            value = body.get(field)
            if isinstance(value, str) and value:
                return value[:MAX_REASON_LENGTH]

    return response.reason_phrase or f"HTTP {response.status_code}"


class HttpProviderGateway(ProviderGateway):
    """
    Provider gateway over HTTPS.

    Provides:
    - One-time code dispatch and confirmation (Basic auth)
    - OAuth2 authorization-code exchange (Basic or Bearer auth)
    - Network enablement / authorization URL (Bearer application JWT)
    - Silent number verification (Bearer access token)
    """

    def __init__(
        self,
        settings: Settings,
        client: httpx.AsyncClient | None = None,
        credentials: ProviderCredentials | None = None,
    ):
        """
        Initialize gateway.

        Args:
            settings: Application settings with provider URLs and credentials
            client: Optional httpx AsyncClient (tests inject a mock transport)
            credentials: Optional credential builder, defaults to one from settings
        """
        self.settings = settings
        self.credentials = credentials or ProviderCredentials(settings)
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=settings.provider_timeout_seconds,
            limits=httpx.Limits(
                max_keepalive_connections=5,
                max_connections=20,
                keepalive_expiry=30.0,
            ),
        )

        logger.info(
            "Provider gateway initialized",
            api_gateway=settings.api_gateway,
            oauth_client_auth=settings.oauth_client_auth,
            timeout_seconds=settings.provider_timeout_seconds,
        )

    async def close(self) -> None:
        """Close HTTP client if we own it."""
        if self._owns_client:
            await self.client.aclose()
            logger.info("Provider gateway closed")

    @property
    def _verify_url(self) -> str:
        return f"{self.settings.api_gateway.rstrip('/')}/v2/verify"

    async def dispatch_code(self, identifier: str, channel: Channel) -> str:
        to = provider_recipient(identifier)
        payload = {
            "brand": self.settings.brand,
            "workflow": [{"channel": channel, "to": to}],
        }

        try:
            response = await self.client.post(
                self._verify_url,
                json=payload,
                headers={"Authorization": self.credentials.basic_auth_header()},
            )
        except httpx.HTTPError as e:
            raise ProviderError(
                f"Failed to send verification code: {type(e).__name__}",
                service="verify",
                channel=channel,
            ) from e

        if response.is_error:
            raise ProviderError(
                f"Failed to send verification code: {_provider_reason(response)}",
                service="verify",
                status_code=response.status_code,
                channel=channel,
            )

        data = self._json_object(response)
        request_id = data.get("request_id")
        if not isinstance(request_id, str) or not request_id:
            raise ProviderError(
                "Verification request accepted without a request_id",
                service="verify",
                status_code=502,
            )

        logger.info("Verification code dispatched", channel=channel, request_id=request_id)
        return request_id

    async def confirm_code(self, request_id: str, code: str) -> bool:
        """Provider verdict on `code`; missing API credentials raise instead."""
        if not request_id:
            logger.warning("Code check without a verification request id")
            return False

        try:
            response = await self.client.post(
                f"{self._verify_url}/{request_id}",
                json={"code": code},
                headers={"Authorization": self.credentials.basic_auth_header()},
            )
        except httpx.HTTPError as e:
            logger.warning(
                "Code check failed", request_id=request_id, error_type=type(e).__name__
            )
            return False

        if response.is_error:
            logger.info(
                "Code rejected by provider",
                request_id=request_id,
                status_code=response.status_code,
            )
            return False
        return True

    async def exchange_authorization_code(self, code: str, redirect_uri: str) -> str:
        if self.settings.oauth_client_auth == "basic":
            authorization = self.credentials.basic_auth_header()
        else:
            authorization = self.credentials.bearer_auth_header()

        try:
            response = await self.client.post(
                self.settings.oauth_token_url,
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": redirect_uri,
                },
                headers={"Authorization": authorization},
            )
        except httpx.HTTPError as e:
            raise ProviderError(
                f"Token exchange failed: {type(e).__name__}", service="oauth"
            ) from e

        if response.is_error:
            raise ProviderError(
                f"Token exchange failed: {_provider_reason(response)}",
                service="oauth",
                status_code=response.status_code,
            )

        access_token = self._json_object(response).get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise ProviderError(
                "Token endpoint returned no access_token",
                service="oauth",
                status_code=502,
            )

        logger.info("Authorization code exchanged")
        return access_token

    async def check_network_verification(
        self, access_token: str, phone_number: str
    ) -> bool:
        try:
            response = await self.client.post(
                self.settings.number_verification_url,
                json={"phoneNumber": phone_number},
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as e:
            logger.warning("Number verification failed", error_type=type(e).__name__)
            return False

        if response.is_error:
            logger.warning(
                "Number verification rejected",
                status_code=response.status_code,
                reason=_provider_reason(response),
            )
            return False

        try:
            data = response.json()
        except ValueError:
            logger.warning("Number verification returned invalid JSON")
            return False

        return isinstance(data, dict) and data.get("devicePhoneNumberVerified") is True

    async def request_authorization_url(
        self, phone_number: str, state: str, scope: str
    ) -> str:
        try:
            response = await self.client.post(
                self.settings.network_enablement_url,
                json={"phone_number": phone_number, "scopes": [scope], "state": state},
                headers={"Authorization": self.credentials.bearer_auth_header()},
            )
        except httpx.HTTPError as e:
            raise ProviderError(
                f"Authorization request failed: {type(e).__name__}", service="network"
            ) from e

        if response.is_error:
            raise ProviderError(
                f"Authorization request failed: {_provider_reason(response)}",
                service="network",
                status_code=response.status_code,
            )

        scopes = self._json_object(response).get("scopes")
        auth_url = None
        if isinstance(scopes, dict) and isinstance(scopes.get(scope), dict):
            auth_url = scopes[scope].get("auth_url")
        if not isinstance(auth_url, str) or not auth_url:
            raise ProviderError(
                "Provider returned no auth_url for the requested scope",
                service="network",
                status_code=502,
                scope=scope,
            )

        return auth_url

    @staticmethod
    def _json_object(response: httpx.Response) -> dict[str, Any]:
        """Decode a success body that must be a JSON object."""
        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(
                "Provider returned invalid JSON",
                service="provider",
                status_code=502,
            ) from e
        if not isinstance(data, dict):
            raise ProviderError(
                "Provider returned an unexpected body",
                service="provider",
                status_code=502,
            )
        return data
