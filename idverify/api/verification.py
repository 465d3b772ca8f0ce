"""
Verification API endpoints.

Thin transport over the orchestrator: signup, code confirmation, the OAuth
redirect callback, and the start of number-verification authorization.
Errors are AppError subclasses rendered by the application error handler.
"""

import structlog
from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import HTMLResponse

from ..services.verification_service import VerificationOrchestrator
from .dependencies.services import get_orchestrator
from .schemas.verification_schemas import (
    AuthorizeRequest,
    AuthorizeResponse,
    SignupRequest,
    VerificationResponse,
    VerifyRequest,
)

logger = structlog.get_logger()

router = APIRouter(tags=["verification"])

# Served to the popup window the provider redirects back to
CALLBACK_CLOSE_PAGE = """<!DOCTYPE html>
<html>
  <head><title>Verification</title></head>
  <body>
    <p>You can close this window.</p>
    <script>window.close();</script>
  </body>
</html>
"""


@router.post(
    "/signup",
    response_model=VerificationResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def signup(
    signup_request: SignupRequest,
    response: Response,
    state: str | None = Query(None, description="OAuth correlation state"),
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
) -> VerificationResponse:
    """
    Register an identifier and start verification.

    - Email, or phone without state: a code is sent in the background -> 202
    - Phone with state: silent network check; on failure an sms code is
      sent instead -> 200
    """
    result = await orchestrator.signup(
        signup_request.id, signup_request.password, state
    )
    if result.silent:
        response.status_code = status.HTTP_200_OK
    return VerificationResponse(verified=result.verified)


@router.post("/verify", response_model=VerificationResponse)
async def verify_code(
    verify_request: VerifyRequest,
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
) -> VerificationResponse:
    """
    Confirm a one-time code.

    Already verified users get 304 Not Modified without a provider call.
    """
    verified = await orchestrator.confirm(verify_request.id, verify_request.code)
    return VerificationResponse(verified=verified)


@router.get("/callback", response_class=HTMLResponse, status_code=status.HTTP_201_CREATED)
async def oauth_callback(
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    error_description: str | None = None,
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
) -> HTMLResponse:
    """
    OAuth redirect target.

    Exchanges the authorization code and caches the access token under
    `state` for the silent verification performed at signup.
    """
    await orchestrator.handle_callback(code, state, error, error_description)
    return HTMLResponse(CALLBACK_CLOSE_PAGE, status_code=status.HTTP_201_CREATED)


@router.post("/authorize", response_model=AuthorizeResponse)
@router.post("/login", response_model=AuthorizeResponse)
async def authorize(
    authorize_request: AuthorizeRequest,
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
) -> AuthorizeResponse:
    """
    Start number-verification authorization.

    Returns the provider URL to redirect the end user to; the provider later
    calls back /callback with the same state.
    """
    auth_url = await orchestrator.authorize(
        authorize_request.phone, authorize_request.state
    )
    return AuthorizeResponse(auth_url=auth_url)
