"""
Data API routes for Yahoo Fantasy data.

``/yahoo`` relays raw Yahoo responses; ``/leagues`` and ``/teams/{team_key}/roster``
return decoded records.
"""

from typing import Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse, Response

from app.logging_config import get_logger
from app.models import OAuthToken
from app.services.yahoo_api import (
    DEFAULT_PATH,
    YahooAPIError,
    YahooAPIService,
    YahooAuthError,
    YahooInvalidPathError,
    sanitize_path,
)
from backend.routes.auth import get_current_token, get_http_transport

logger = get_logger(__name__)

router = APIRouter()


def require_token(token: Optional[OAuthToken] = Depends(get_current_token)) -> OAuthToken:
    """
    Dependency that requires a Yahoo token cookie.

    Raises:
        HTTPException: If no usable token cookie is present
    """
    if not token:
        raise HTTPException(status_code=401, detail="Missing Yahoo token")
    return token


def get_yahoo_service(
    token: OAuthToken = Depends(require_token),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_http_transport),
) -> YahooAPIService:
    """Get a Yahoo API service bound to the caller's access token."""
    return YahooAPIService(token.access_token, transport=transport)


def yahoo_http_error(e: YahooAPIError) -> HTTPException:
    """Translate a Yahoo failure into the status the caller sees."""
    if isinstance(e, YahooInvalidPathError):
        return HTTPException(status_code=400, detail="Invalid path")
    if isinstance(e, YahooAuthError):
        return HTTPException(status_code=401, detail="Yahoo rejected the token")
    return HTTPException(status_code=502, detail=e.message)


@router.get("/yahoo")
async def yahoo_proxy(
    path: Optional[str] = None,
    token: Optional[OAuthToken] = Depends(get_current_token),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_http_transport),
) -> Response:
    """
    Forward a GET to the Yahoo Fantasy API with the caller's bearer token.

    Status, body and content-type of the upstream response are relayed as-is.

    Args:
        path: API path under ``fantasy/`` (default: the signed-in user)
    """
    safe_path = sanitize_path(DEFAULT_PATH if path is None else path)
    if not safe_path:
        return PlainTextResponse("Invalid path", status_code=400)

    if not token:
        return PlainTextResponse("Missing Yahoo token", status_code=401)

    service = YahooAPIService(token.access_token, transport=transport)
    try:
        upstream = await service.fetch(safe_path)
    except YahooAPIError as e:
        logger.error(f"Yahoo proxy failed: {e.message}")
        return PlainTextResponse("Upstream request failed", status_code=502)

    headers = {}
    content_type = upstream.headers.get("content-type")
    if content_type:
        headers["content-type"] = content_type

    return Response(content=upstream.content, status_code=upstream.status_code, headers=headers)


@router.get("/leagues")
async def get_leagues(
    game: str = "nba",
    service: YahooAPIService = Depends(get_yahoo_service),
) -> dict:
    """
    Get the signed-in user's leagues for a game, each with the user's team when known.
    """
    try:
        leagues = await service.get_user_leagues(game_key=game)
    except YahooAPIError as e:
        raise yahoo_http_error(e) from e

    return {"leagues": [league.to_dict() for league in leagues]}


@router.get("/teams/{team_key}/roster")
async def get_team_roster(
    team_key: str,
    service: YahooAPIService = Depends(get_yahoo_service),
) -> dict:
    """
    Get a team's current roster.
    """
    try:
        players = await service.get_roster(team_key)
    except YahooAPIError as e:
        raise yahoo_http_error(e) from e

    return {"team_key": team_key, "players": [player.to_dict() for player in players]}
