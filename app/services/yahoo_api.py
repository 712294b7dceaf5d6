"""
Yahoo API Service - per-request client for the Yahoo Fantasy Sports API.

Each instance carries the bearer token read from the caller's cookie. There is
no retry logic here; a failed call surfaces to the caller as one of the
exceptions below.
"""

import time
from typing import Any, Dict, List, Optional
from urllib.parse import unquote

import httpx

from app.config import settings
from app.logging_config import get_logger
from app.models import League, Player
from app.parsing.leagues import parse_leagues
from app.parsing.roster import parse_roster

logger = get_logger(__name__)

# Paths are relative to YAHOO_API_BASE and must stay inside the fantasy namespace
API_NAMESPACE = "fantasy/"
DEFAULT_PATH = "fantasy/v2/users;use_login=1?format=json"
LEAGUES_PATH = "fantasy/v2/users;use_login=1/games;game_keys={game_key}/leagues/teams?format=json"
ROSTER_PATH = "fantasy/v2/team/{team_key}/roster?format=json"


# Custom exceptions for better error handling
class YahooAPIError(Exception):
    """Base exception for Yahoo API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class YahooRateLimitError(YahooAPIError):
    """Raised when Yahoo API rate limit is exceeded (HTTP 429)."""

    def __init__(self, retry_after: Optional[int] = None):
        self.retry_after = retry_after
        message = "Yahoo API rate limit exceeded"
        if retry_after:
            message += f" (retry after {retry_after}s)"
        super().__init__(message, status_code=429)


class YahooAuthError(YahooAPIError):
    """Raised when authentication fails (HTTP 401)."""

    def __init__(self, message: str = "Yahoo API authentication failed"):
        super().__init__(message, status_code=401)


class YahooConnectionError(YahooAPIError):
    """Raised when connection to Yahoo API fails."""

    def __init__(self, message: str = "Unable to connect to Yahoo API"):
        super().__init__(message)


class YahooTimeoutError(YahooAPIError):
    """Raised when Yahoo API request times out."""

    def __init__(self, message: str = "Yahoo API request timed out"):
        super().__init__(message)


class YahooInvalidPathError(YahooAPIError):
    """Raised when a request path would leave the fantasy API namespace."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Invalid Yahoo API path: {path}")


class YahooTokenExchangeError(YahooAPIError):
    """Raised when the OAuth token endpoint rejects or fails an exchange."""

    def __init__(self, message: str = "Yahoo token exchange failed", status_code: Optional[int] = None):
        super().__init__(message, status_code=status_code)


def sanitize_path(path: Optional[str]) -> Optional[str]:
    """
    Validate a caller-supplied API path.

    Returns:
        The trimmed path, or None if it is empty, absolute, outside
        ``fantasy/`` or contains ".." segments
    """
    if path is None:
        return None
    trimmed = path.strip()
    if not trimmed or trimmed.startswith(("http://", "https://")):
        return None
    if not trimmed.startswith(API_NAMESPACE):
        return None
    path_part = trimmed.split("?", 1)[0]
    if ".." in (unquote(segment) for segment in path_part.split("/")):
        return None
    return trimmed


class YahooAPIService:
    """
    Yahoo Fantasy API client bound to one user's access token.
    """

    def __init__(
        self,
        access_token: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the Yahoo API service.

        Args:
            access_token: Bearer token from the user's OAuth cookie
            transport: Optional httpx transport (tests pass a MockTransport)
            timeout: Request timeout in seconds (default: settings.HTTP_TIMEOUT_SECONDS)
        """
        self.access_token = access_token
        self.transport = transport
        self.timeout = settings.HTTP_TIMEOUT_SECONDS if timeout is None else timeout

    def build_url(self, path: str) -> str:
        """Resolve an API path against the Yahoo API base URL."""
        return f"{settings.YAHOO_API_BASE.rstrip('/')}/{path.lstrip('/')}"

    async def fetch(self, path: str) -> httpx.Response:
        """
        GET ``path`` upstream and return the raw response, whatever its status.

        Raises:
            YahooTimeoutError: If the request times out
            YahooInvalidPathError: If the path is outside the fantasy namespace
            YahooConnectionError: If the request cannot be sent
        """
        safe_path = sanitize_path(path)
        if safe_path is None:
            logger.warning(f"Yahoo API request refused: invalid path {path!r}")
            raise YahooInvalidPathError(path)
        path = safe_path

        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
        }
        endpoint = path.split("?", 1)[0]
        logger.info(f"Yahoo API request: GET {endpoint}")

        start_time = time.time()
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.get(self.build_url(path), headers=headers)
        except httpx.TimeoutException:
            elapsed_ms = (time.time() - start_time) * 1000
            logger.warning(f"Yahoo API timeout: {endpoint} time={elapsed_ms:.0f}ms")
            raise YahooTimeoutError()
        except httpx.HTTPError as e:
            logger.warning(f"Yahoo API connection error: {endpoint} error={e}")
            raise YahooConnectionError(f"Unable to connect to Yahoo API: {e}")

        elapsed_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Yahoo API response: {endpoint} status={response.status_code} time={elapsed_ms:.0f}ms"
        )
        return response

    async def get_json(self, path: str) -> Dict[str, Any]:
        """
        GET ``path`` and return the decoded JSON body.

        Raises:
            YahooAuthError: On HTTP 401
            YahooRateLimitError: On HTTP 429
            YahooAPIError: On other error statuses or a non-JSON body
        """
        response = await self.fetch(path)
        endpoint = path.split("?", 1)[0]

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            retry_seconds = int(retry_after) if retry_after and retry_after.isdigit() else None
            logger.warning(f"Yahoo API rate limit: {endpoint} retry_after={retry_seconds}s")
            raise YahooRateLimitError(retry_after=retry_seconds)

        if response.status_code == 401:
            logger.error(f"Yahoo API auth error: {endpoint}")
            raise YahooAuthError("Yahoo API returned 401 - token may be invalid")

        if response.is_error:
            logger.error(f"Yahoo API HTTP error: {endpoint} status={response.status_code}")
            raise YahooAPIError(
                f"Yahoo API error: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Yahoo API JSON parse error: {endpoint} error={e}")
            raise YahooAPIError(f"Failed to parse Yahoo API response: {e}")

    # Convenience methods for common API calls

    async def get_user_leagues(self, game_key: str = "nba") -> List[League]:
        """
        Get the signed-in user's leagues, each with the user's own team when present.

        Args:
            game_key: Yahoo game code (nba, nfl, mlb, nhl) or a numeric game key
        """
        data = await self.get_json(LEAGUES_PATH.format(game_key=game_key))
        leagues = parse_leagues(data)
        logger.info(f"Parsed {len(leagues)} leagues for game={game_key}")
        return leagues

    async def get_roster(self, team_key: str) -> List[Player]:
        """
        Get the current roster of a team.

        Args:
            team_key: Yahoo team key, e.g. "428.l.12345.t.3"
        """
        data = await self.get_json(ROSTER_PATH.format(team_key=team_key))
        players = parse_roster(data)
        logger.info(f"Parsed {len(players)} players for team={team_key}")
        return players
