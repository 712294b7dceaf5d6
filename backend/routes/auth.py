"""
Yahoo OAuth authentication routes.

The session lives entirely in cookies: ``oauth_state`` holds the CSRF state
between the redirect to Yahoo and the callback, ``yahoo_oauth`` holds the
encoded token afterwards.
"""

from typing import Iterable, Optional
from urllib.parse import urlencode

import httpx
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import RedirectResponse

from app.auth.cookies import (
    AUTH_COOKIE,
    AUTH_COOKIE_MAX_AGE,
    STATE_COOKIE,
    STATE_COOKIE_MAX_AGE,
    build_cookie,
    clear_cookie,
    read_cookie,
    read_token_cookie,
)
from app.auth.tokens import encode_token, is_token_expired
from app.config import settings
from app.logging_config import get_logger
from app.models import OAuthToken
from app.services.yahoo_api import YahooTokenExchangeError
from app.services.yahoo_oauth import YahooOAuthClient, create_state, resolve_redirect_uri

logger = get_logger(__name__)

router = APIRouter()


def get_http_transport() -> Optional[httpx.AsyncBaseTransport]:
    """
    Transport for outbound Yahoo calls. None means httpx's default network transport.

    Tests override this dependency with an ``httpx.MockTransport``.
    """
    return None


def get_current_token(request: Request) -> Optional[OAuthToken]:
    """
    Get the caller's OAuth token from the ``yahoo_oauth`` cookie.

    Returns:
        OAuthToken if the cookie decodes, None otherwise
    """
    return read_token_cookie(request.headers.get("cookie"))


def redirect_with_cookies(location: str, cookies: Iterable[str]) -> RedirectResponse:
    """303 redirect carrying one Set-Cookie header per cookie string."""
    response = RedirectResponse(url=location, status_code=303)
    for cookie in cookies:
        response.headers.append("set-cookie", cookie)
    return response


def error_redirect(error_code: str) -> RedirectResponse:
    """Send the browser to the landing page with ``?auth_error=...``, dropping the CSRF state."""
    location = f"{settings.AUTH_LANDING_PATH}?{urlencode({'auth_error': error_code})}"
    return redirect_with_cookies(location, [clear_cookie(STATE_COOKIE)])


@router.get("")
async def authorize(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_http_transport),
) -> RedirectResponse:
    """
    Start the Yahoo sign-in, or finish it when Yahoo redirects back.

    - No ``code``: issue a CSRF state cookie and redirect to Yahoo.
    - ``code`` + ``state``: verify state against the cookie, exchange the code,
      store the token cookie and land on the home page.
    """
    host = request.headers.get("host") or request.url.netloc
    redirect_uri = resolve_redirect_uri(
        host,
        configured=settings.YAHOO_REDIRECT_URI,
        local_uri=settings.YAHOO_LOCAL_REDIRECT_URI,
    )
    missing = settings.validate()
    if missing or not redirect_uri:
        logger.error(f"OAuth misconfigured: missing={missing} redirect_uri_resolved={bool(redirect_uri)}")
        return error_redirect("missing_config")

    oauth = YahooOAuthClient(settings.YAHOO_CLIENT_ID, settings.YAHOO_CLIENT_SECRET, transport=transport)

    if not code:
        if error:
            logger.warning(f"Yahoo returned OAuth error: {error}")
            return error_redirect("provider_error")

        next_state = create_state()
        logger.info(f"Starting Yahoo sign-in redirect_uri={redirect_uri}")
        return redirect_with_cookies(
            oauth.authorization_url(redirect_uri, next_state),
            [build_cookie(STATE_COOKIE, next_state, max_age=STATE_COOKIE_MAX_AGE)],
        )

    # Verify state to prevent CSRF
    stored_state = read_cookie(request.headers.get("cookie"), STATE_COOKIE)
    if not state or not stored_state or stored_state != state:
        logger.warning("OAuth callback rejected: state mismatch")
        return error_redirect("state_mismatch")

    try:
        token = await oauth.exchange_code(code, redirect_uri)
    except YahooTokenExchangeError as e:
        logger.error(f"OAuth callback failed: {e.message}")
        return error_redirect("token_exchange_failed")

    logger.info("Yahoo sign-in complete")
    return redirect_with_cookies(
        settings.AUTH_LANDING_PATH,
        [
            clear_cookie(STATE_COOKIE),
            build_cookie(AUTH_COOKIE, encode_token(token), max_age=AUTH_COOKIE_MAX_AGE),
        ],
    )


async def read_refresh_token_from_body(request: Request) -> Optional[str]:
    """
    Read a refresh token from a JSON (``refresh_token`` or ``refreshToken``)
    or form-encoded (``refresh_token``) request body.
    """
    content_type = request.headers.get("content-type", "")

    if "application/json" in content_type:
        try:
            body = await request.json()
        except ValueError:
            return None
        if not isinstance(body, dict):
            return None
        value = body.get("refresh_token") or body.get("refreshToken")
        return value if isinstance(value, str) and value else None

    if "application/x-www-form-urlencoded" in content_type:
        form = await request.form()
        value = form.get("refresh_token")
        return value if isinstance(value, str) and value else None

    return None


@router.post("/refresh")
async def refresh(
    request: Request,
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_http_transport),
) -> Response:
    """
    Exchange a refresh token for a new access token and overwrite the token cookie.

    Returns:
        204 with the new cookie; 400 when no refresh token is available;
        500 when client credentials are not configured; 502 when Yahoo rejects the exchange
    """
    missing = settings.validate()
    if missing:
        logger.error(f"Token refresh unavailable: missing={missing}")
        return Response(status_code=500)

    refresh_token = await read_refresh_token_from_body(request)
    if not refresh_token:
        current = get_current_token(request)
        refresh_token = current.refresh_token if current else None

    if not refresh_token:
        logger.info("Token refresh rejected: no refresh token")
        return Response(status_code=400)

    oauth = YahooOAuthClient(settings.YAHOO_CLIENT_ID, settings.YAHOO_CLIENT_SECRET, transport=transport)
    try:
        token = await oauth.refresh(refresh_token)
    except YahooTokenExchangeError as e:
        logger.error(f"Token refresh failed: {e.message}")
        return Response(status_code=502)

    response = Response(status_code=204)
    response.headers.append(
        "set-cookie", build_cookie(AUTH_COOKIE, encode_token(token), max_age=AUTH_COOKIE_MAX_AGE)
    )
    return response


@router.get("/status")
async def auth_status(token: Optional[OAuthToken] = Depends(get_current_token)) -> dict:
    """
    Check authentication status.

    Returns whether a token cookie is present and whether it needs refreshing.
    """
    if not token:
        return {"authenticated": False}

    return {
        "authenticated": True,
        "expired": is_token_expired(token),
        "expires_at": token.expires_at,
        "can_refresh": bool(token.refresh_token),
    }


@router.post("/logout")
async def logout() -> Response:
    """Drop the token cookie. Nothing is held server-side."""
    response = Response(status_code=204)
    response.headers.append("set-cookie", clear_cookie(AUTH_COOKIE))
    return response
