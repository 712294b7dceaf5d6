"""
Cookie construction and parsing for the OAuth flow.

Set-Cookie strings are built by hand so every cookie carries exactly
``Path=/; SameSite=Lax; Secure`` and a percent-encoded value.
"""

from typing import Optional
from urllib.parse import quote, unquote

from app.auth.tokens import decode_token
from app.models import OAuthToken

AUTH_COOKIE = "yahoo_oauth"
STATE_COOKIE = "oauth_state"

AUTH_COOKIE_MAX_AGE = 60 * 60 * 24 * 30  # 30 days
STATE_COOKIE_MAX_AGE = 60 * 5  # 5 minutes

COOKIE_ATTRIBUTES = "Path=/; SameSite=Lax; Secure"

# Characters JavaScript's encodeURIComponent leaves alone (besides alphanumerics)
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_cookie_value(value: str) -> str:
    """Percent-encode a cookie value the way encodeURIComponent does."""
    return quote(value, safe=_URI_COMPONENT_SAFE)


def build_cookie(name: str, value: str, max_age: Optional[int] = None) -> str:
    """
    Build a Set-Cookie header value.

    Example:
        build_cookie("oauth_state", "abc", max_age=300)
        -> "oauth_state=abc; Path=/; SameSite=Lax; Secure; Max-Age=300"
    """
    cookie = f"{name}={encode_cookie_value(value)}; {COOKIE_ATTRIBUTES}"
    if max_age is not None:
        cookie += f"; Max-Age={max_age}"
    return cookie


def clear_cookie(name: str) -> str:
    """Build a Set-Cookie header value that deletes ``name``."""
    return f"{name}=; {COOKIE_ATTRIBUTES}; Max-Age=0"


def get_cookie_value(cookie_header: Optional[str], name: str) -> Optional[str]:
    """
    Return the raw (still percent-encoded) value of ``name`` from a Cookie header.

    Values may themselves contain "=" (base64 padding), so only the first "="
    separates name from value.
    """
    if not cookie_header:
        return None
    for part in cookie_header.split(";"):
        key, _, value = part.strip().partition("=")
        if key == name:
            return value
    return None


def read_cookie(cookie_header: Optional[str], name: str) -> Optional[str]:
    """Return the percent-decoded value of ``name``, or None when absent."""
    raw = get_cookie_value(cookie_header, name)
    if raw is None:
        return None
    return unquote(raw)


def read_token_cookie(cookie_header: Optional[str]) -> Optional[OAuthToken]:
    """Decode the OAuth token carried in the ``yahoo_oauth`` cookie."""
    return decode_token(read_cookie(cookie_header, AUTH_COOKIE))
