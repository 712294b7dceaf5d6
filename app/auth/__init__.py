# OAuth token codec and cookie rules
from .tokens import (
    DEFAULT_EXPIRY_SKEW_MS,
    current_time_ms,
    decode_token,
    encode_token,
    is_token_expired,
    token_from_provider,
)
from .cookies import (
    AUTH_COOKIE,
    AUTH_COOKIE_MAX_AGE,
    STATE_COOKIE,
    STATE_COOKIE_MAX_AGE,
    build_cookie,
    clear_cookie,
    get_cookie_value,
    read_cookie,
    read_token_cookie,
)
