"""
Verification orchestrator.

Drives a user from `unverified` to `verified` through one of three paths:

- Code:   Created -> PendingCode -> Verified   (sms or email one-time code)
- Silent: Created -> Verified                  (carrier number verification
                                                using a token cached by the
                                                OAuth callback)
- Fallback: Created -> PendingCode             (silent check failed, an sms
                                                code is sent instead)

Store, token cache and provider gateway are injected. Work on one normalized
identifier is serialized by a per-key lock: signup (check-then-insert),
confirm, and the background write-back of a dispatched code's request id.
"""

import asyncio
import re

import structlog

from ..core.exceptions import (
    ConflictError,
    NotFoundError,
    UnmodifiedError,
    ValidationError,
)
from ..core.identifiers import (
    is_email,
    is_numeric_code,
    is_phone_number,
    normalize_identifier,
)
from ..core.utils.locks import KeyedLock
from ..database.repositories.credential_store import CredentialStore
from ..models.user import CustomerUser
from ..models.verification import Channel, SignupResult
from .password import hash_password
from .providers.base import ProviderGateway
from .token_cache import TokenCache

logger = structlog.get_logger()

# Provider error text meaning the subscriber has no account with the provider
NO_ACCOUNT_PATTERN = re.compile(
    r"not\s+found|no\s+account|unknown\s+(subscriber|user|number)|not\s+a\s+subscriber",
    re.IGNORECASE,
)


class VerificationOrchestrator:
    """State machine behind the signup, verify, callback and authorize endpoints."""

    def __init__(
        self,
        store: CredentialStore,
        token_cache: TokenCache,
        gateway: ProviderGateway,
        redirect_uri: str,
        oauth_scope: str,
    ):
        """
        Initialize orchestrator.

        Args:
            store: Credential store for user records
            token_cache: Correlation state -> access token cache
            gateway: Provider gateway for all outbound calls
            redirect_uri: OAuth redirect URI registered with the provider
            oauth_scope: Scope requested when starting number verification
        """
        self.store = store
        self.token_cache = token_cache
        self.gateway = gateway
        self.redirect_uri = redirect_uri
        self.oauth_scope = oauth_scope

        self._locks = KeyedLock()
        self._dispatches: set[asyncio.Task[None]] = set()

    # ===== Signup =====

    async def signup(
        self,
        user_id: str | None,
        password: str | None = None,
        state: str | None = None,
    ) -> SignupResult:
        """
        Create a user record and start verification.

        Args:
            user_id: Phone number or email
            password: Required when user_id is an email
            state: Correlation state of a completed OAuth flow (silent path)

        Returns:
            SignupResult; `silent` tells whether a network check was attempted

        Raises:
            ValidationError: Missing id, or email without password
            ConflictError: A record with the same normalized id exists
        """
        user_id = (user_id or "").strip()
        email = is_email(user_id)
        if not user_id or (email and not password):
            raise ValidationError(
                "Bad Request: phone number or email and password are required"
            )

        password_hash = None
        if password:
            password_hash = await asyncio.to_thread(hash_password, password)

        async with self._locks.hold(normalize_identifier(user_id)):
            if await self.store.find_by_id(user_id) is not None:
                raise ConflictError("Conflict: User already exists", identifier=user_id)

            user = CustomerUser(
                id=user_id,
                is_phone_number=is_phone_number(user_id),
                password_hash=password_hash,
            )

            if email:
                await self.store.insert(user)
                self._schedule_dispatch(user.id, "email")
                return SignupResult(verified=False)

            if state:
                user.verified = await self._check_silently(user.id, state)
                await self.store.insert(user)
                if not user.verified:
                    self._schedule_dispatch(user.id, "sms")
                logger.info(
                    "Silent verification finished",
                    identifier=user.id,
                    state=state,
                    verified=user.verified,
                )
                return SignupResult(verified=user.verified, silent=True)

            await self.store.insert(user)
            self._schedule_dispatch(user.id, "sms")
            return SignupResult(verified=False)

    async def _check_silently(self, phone_number: str, state: str) -> bool:
        """Network check with the token cached for `state`; False when there is none."""
        access_token = await self.token_cache.take(state)
        if access_token is None:
            logger.info("No access token for state, falling back to sms", state=state)
            return False
        return await self.gateway.check_network_verification(access_token, phone_number)

    # ===== Code dispatch (background) =====

    def _schedule_dispatch(self, identifier: str, channel: Channel) -> None:
        """Send a code without holding up the response."""
        task = asyncio.create_task(
            self._dispatch(identifier, channel), name=f"dispatch-code:{channel}"
        )
        self._dispatches.add(task)
        task.add_done_callback(self._dispatches.discard)

    async def _dispatch(self, identifier: str, channel: Channel) -> None:
        try:
            request_id = await self.gateway.dispatch_code(identifier, channel)
        except Exception as e:
            # The signup response is already sent; the user can retry later
            logger.error(
                "Error sending verification code",
                identifier=identifier,
                channel=channel,
                error=str(e),
                error_type=type(e).__name__,
            )
            return

        async with self._locks.hold(normalize_identifier(identifier)):
            user = await self.store.find_by_id(identifier)
            if user is None:
                logger.warning("Dispatched code for unknown user", identifier=identifier)
                return
            # Only the request id is written back; `verified` stays as confirm left it
            user.verification_request_id = request_id
            await self.store.update(user)

        logger.info(
            "Verification request attached",
            identifier=identifier,
            channel=channel,
            request_id=request_id,
        )

    @property
    def pending_dispatches(self) -> int:
        return len(self._dispatches)

    async def wait_for_dispatches(self) -> None:
        """Wait until every scheduled dispatch has finished."""
        while self._dispatches:
            await asyncio.gather(*list(self._dispatches), return_exceptions=True)

    async def aclose(self, timeout: float | None = None) -> None:
        """
        Let in-flight dispatches finish before shutdown.

        Dispatches are never cancelled: a provider may already have sent the
        code, and dropping the write-back would orphan the request id.
        """
        if not self._dispatches:
            return
        _, pending = await asyncio.wait(list(self._dispatches), timeout=timeout)
        if pending:
            logger.warning("Dispatches still running at shutdown", count=len(pending))

    # ===== Confirm =====

    async def confirm(self, user_id: str | None, code: str | None) -> bool:
        """
        Check a one-time code and record the outcome.

        Returns:
            Provider's verdict, also stored on the record

        Raises:
            ValidationError: Missing/malformed id or non-numeric code
            NotFoundError: No record for id
            UnmodifiedError: User already verified (provider not called)
        """
        user_id = (user_id or "").strip()
        if not user_id or not code:
            raise ValidationError(
                "Bad Request: phone number or email as id, and code are required"
            )
        if not is_phone_number(user_id) and not is_email(user_id):
            raise ValidationError("Bad Request: Invalid phone number or email format for id")
        if not is_numeric_code(code):
            raise ValidationError("Bad Request: code must be a number")

        async with self._locks.hold(normalize_identifier(user_id)):
            user = await self.store.find_by_id(user_id)
            if user is None:
                raise NotFoundError("Not Found: User not found", identifier=user_id)
            if user.verified:
                raise UnmodifiedError("User already verified", identifier=user_id)

            # An unset request id (dispatch still in flight) fails closed
            user.verified = await self.gateway.confirm_code(
                user.verification_request_id or "", code
            )
            await self.store.update(user)

        logger.info("Code confirmation finished", identifier=user_id, verified=user.verified)
        return user.verified

    # ===== OAuth =====

    async def handle_callback(
        self,
        code: str | None,
        state: str | None,
        error: str | None = None,
        error_description: str | None = None,
    ) -> None:
        """
        Exchange the authorization code and cache the token under `state`.

        Raises:
            NotFoundError: Provider says the subscriber has no account
            ValidationError: Provider reported another error, or code/state missing
            ProviderError: Token exchange failed
        """
        if error:
            reason = error_description or error
            logger.warning("Provider reported callback error", error=error, reason=reason)
            if NO_ACCOUNT_PATTERN.search(f"{error} {error_description or ''}"):
                raise NotFoundError(f"Not Found: {reason}", state=state)
            raise ValidationError(f"Bad Request: {reason}", state=state)

        if not code or not state:
            raise ValidationError("Bad Request: code and state are required")

        access_token = await self.gateway.exchange_authorization_code(
            code, self.redirect_uri
        )
        await self.token_cache.put(state, access_token)

    async def authorize(self, phone: str | None, state: str | None) -> str:
        """
        Start number-verification authorization for `phone`.

        Returns:
            Provider auth_url for the browser redirect

        Raises:
            ValidationError: Missing phone/state or malformed phone
            ProviderError: Provider refused or failed
        """
        phone = (phone or "").strip()
        if not phone or not state:
            raise ValidationError("Bad Request: phone and state are required")
        if not is_phone_number(phone):
            raise ValidationError("Bad Request: Invalid phone number format")

        auth_url = await self.gateway.request_authorization_url(
            phone, state, self.oauth_scope
        )
        logger.info("Authorization flow started", state=state)
        return auth_url
