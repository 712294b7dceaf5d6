"""
Opaque encoding of Yahoo OAuth tokens for transport in a cookie.

The cookie value is base64(JSON(token)). Decoding is forgiving: anything that
does not decode to a token with an access_token and token_type is treated as
"no token" rather than an error.
"""

import base64
import binascii
import json
import time
from typing import Any, Dict, Optional

from app.models import OAuthToken

# Treat tokens as expired this long before the provider does
DEFAULT_EXPIRY_SKEW_MS = 30_000


def current_time_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def encode_token(token: OAuthToken) -> str:
    """Serialize a token to compact JSON and base64 it."""
    payload = json.dumps(token.to_dict(), separators=(",", ":"), ensure_ascii=False)
    return base64.b64encode(payload.encode("utf-8")).decode("ascii")


def _as_number(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def decode_token(encoded: Optional[str]) -> Optional[OAuthToken]:
    """
    Reverse ``encode_token``.

    Returns:
        The token, or None if the value is not valid base64/UTF-8/JSON, or lacks
        a non-empty access_token or token_type
    """
    if not encoded or not isinstance(encoded, str):
        return None
    try:
        raw = base64.b64decode(encoded.strip(), validate=True)
        data = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError, RecursionError):
        return None

    if not isinstance(data, dict):
        return None

    access_token = data.get("access_token")
    token_type = data.get("token_type")
    if not isinstance(access_token, str) or not access_token:
        return None
    if not isinstance(token_type, str) or not token_type:
        return None

    expires_in = _as_number(data.get("expires_in", 0))
    created_at = _as_number(data.get("created_at", 0))
    if expires_in is None or created_at is None:
        return None

    refresh_token = data.get("refresh_token")
    if refresh_token is not None and not isinstance(refresh_token, str):
        return None

    return OAuthToken(
        access_token=access_token,
        token_type=token_type,
        expires_in=expires_in,
        created_at=created_at,
        refresh_token=refresh_token,
    )


def is_token_expired(
    token: OAuthToken,
    skew_ms: int = DEFAULT_EXPIRY_SKEW_MS,
    now_ms: Optional[int] = None,
) -> bool:
    """
    Check whether a token should be considered expired.

    True when ``now + skew >= created_at + expires_in * 1000``.
    """
    if now_ms is None:
        now_ms = current_time_ms()
    return now_ms + skew_ms >= token.expires_at


def token_from_provider(
    payload: Dict[str, Any],
    fallback_refresh_token: Optional[str] = None,
    now_ms: Optional[int] = None,
) -> OAuthToken:
    """
    Build a token from a Yahoo token-endpoint response.

    ``created_at`` is stamped locally. When Yahoo does not rotate the refresh
    token, ``fallback_refresh_token`` is kept.
    A missing ``token_type`` is taken as "bearer" so the cookie stays decodable.

    Raises:
        ValueError: If the payload has no access_token
    """
    access_token = payload.get("access_token")
    if not isinstance(access_token, str) or not access_token:
        raise ValueError("Token response is missing access_token")

    try:
        expires_in = int(float(payload.get("expires_in") or 0))
    except (TypeError, ValueError):
        expires_in = 0

    refresh_token = payload.get("refresh_token") or fallback_refresh_token

    return OAuthToken(
        access_token=access_token,
        token_type=str(payload.get("token_type") or "bearer"),
        expires_in=expires_in,
        created_at=current_time_ms() if now_ms is None else now_ms,
        refresh_token=refresh_token,
    )
