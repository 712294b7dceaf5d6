"""
Yahoo OAuth2 client: authorization URL, code exchange and refresh-token exchange.

Tokens are never stored server-side; callers encode the returned OAuthToken
into the ``yahoo_oauth`` cookie.
"""

import base64
import random
import time
import uuid
from typing import Any, Dict, Optional
from urllib.parse import urlencode, urlsplit

import httpx

from app.auth.tokens import token_from_provider
from app.config import settings
from app.logging_config import get_logger
from app.models import OAuthToken
from app.services.yahoo_api import YahooTokenExchangeError

logger = get_logger(__name__)

LOOPBACK_HOSTS = {"localhost", "127.0.0.1", "::1"}
CALLBACK_PATH = "/api/auth"

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(number: int) -> str:
    digits = ""
    while True:
        number, remainder = divmod(number, 36)
        digits = _BASE36[remainder] + digits
        if not number:
            return digits


def create_state() -> str:
    """
    Generate a CSRF state token.

    A random UUID normally; if the system random source is unavailable, a
    time-plus-random string instead.
    """
    try:
        return str(uuid.uuid4())
    except NotImplementedError:
        return f"{_to_base36(int(time.time() * 1000))}{_to_base36(random.getrandbits(64))}"


def resolve_redirect_uri(
    host: Optional[str],
    configured: Optional[str] = None,
    local_uri: Optional[str] = None,
) -> Optional[str]:
    """
    Work out the OAuth callback URL.

    Args:
        host: Host header of the inbound request (may include a port)
        configured: Explicit redirect URI from settings; must be https
        local_uri: Callback used for loopback hosts

    Returns:
        The redirect URI, or None when misconfigured (non-https configured
        value, or no host to derive from)
    """
    if configured:
        if not configured.startswith("https://"):
            return None
        return configured

    if not host:
        return None

    hostname = urlsplit(f"//{host}").hostname
    if hostname in LOOPBACK_HOSTS:
        return local_uri or settings.YAHOO_LOCAL_REDIRECT_URI
    return f"https://{host}{CALLBACK_PATH}"


class YahooOAuthClient:
    """
    Talks to Yahoo's OAuth2 endpoints with the app's client credentials.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.transport = transport
        self.timeout = settings.HTTP_TIMEOUT_SECONDS if timeout is None else timeout

    def authorization_url(self, redirect_uri: str, state: str) -> str:
        """
        Build the Yahoo consent page URL.

        Args:
            redirect_uri: Callback Yahoo redirects back to
            state: CSRF state echoed back on the callback
        """
        params = {
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "state": state,
        }
        return f"{settings.YAHOO_AUTH_URL}?{urlencode(params)}"

    def _basic_auth(self) -> str:
        credentials = f"{self.client_id}:{self.client_secret}"
        return base64.b64encode(credentials.encode("utf-8")).decode("ascii")

    async def _request_token(self, data: Dict[str, str]) -> Dict[str, Any]:
        """
        POST a grant to the token endpoint and return the JSON payload.

        Raises:
            YahooTokenExchangeError: On network failure, non-2xx status or non-JSON body
        """
        headers = {
            "Authorization": f"Basic {self._basic_auth()}",
            "Content-Type": "application/x-www-form-urlencoded",
        }
        grant_type = data["grant_type"]

        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.post(settings.YAHOO_TOKEN_URL, headers=headers, data=data)
        except httpx.HTTPError as e:
            logger.error(f"Yahoo token request failed: grant={grant_type} error={e}")
            raise YahooTokenExchangeError(f"Unable to reach Yahoo token endpoint: {e}")

        if response.is_error:
            logger.error(f"Yahoo token endpoint error: grant={grant_type} status={response.status_code}")
            raise YahooTokenExchangeError(
                f"Yahoo token endpoint returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise YahooTokenExchangeError(f"Yahoo token response is not JSON: {e}")
        if not isinstance(payload, dict):
            raise YahooTokenExchangeError("Yahoo token response is not an object")
        return payload

    async def exchange_code(self, code: str, redirect_uri: str) -> OAuthToken:
        """
        Exchange an authorization code for a token.

        Args:
            code: The authorization code from the OAuth callback
            redirect_uri: Must match the one used to start the flow

        Raises:
            YahooTokenExchangeError: If the exchange fails
        """
        payload = await self._request_token({
            "grant_type": "authorization_code",
            "redirect_uri": redirect_uri,
            "code": code,
        })
        try:
            token = token_from_provider(payload)
        except ValueError as e:
            raise YahooTokenExchangeError(str(e))
        logger.info("Authorization code exchanged for access token")
        return token

    async def refresh(self, refresh_token: str) -> OAuthToken:
        """
        Exchange a refresh token for a new access token.

        The old refresh token is kept if Yahoo does not issue a new one.

        Raises:
            YahooTokenExchangeError: If the exchange fails
        """
        payload = await self._request_token({
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        })
        try:
            token = token_from_provider(payload, fallback_refresh_token=refresh_token)
        except ValueError as e:
            raise YahooTokenExchangeError(str(e))
        logger.info("Access token refreshed")
        return token
