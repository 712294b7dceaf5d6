"""
Tests for the OAuth token codec, expiry check and cookie helpers.
"""

import base64
import json

import pytest

from app.auth.cookies import (
    AUTH_COOKIE,
    STATE_COOKIE,
    build_cookie,
    clear_cookie,
    get_cookie_value,
    read_cookie,
    read_token_cookie,
)
from app.auth.tokens import (
    decode_token,
    encode_token,
    is_token_expired,
    token_from_provider,
)
from app.models import OAuthToken

T0 = 1_700_000_000_000


@pytest.fixture
def token():
    return OAuthToken(
        access_token="access-abc",
        refresh_token="refresh-xyz",
        expires_in=3600,
        token_type="bearer",
        created_at=T0,
    )


class TestTokenCodec:
    """Tests for encode_token / decode_token."""

    def test_round_trip(self, token):
        """Test decoding an encoded token gives the same token."""
        assert decode_token(encode_token(token)) == token

    def test_round_trip_without_refresh_token(self):
        """Test tokens without a refresh token survive the round trip."""
        token = OAuthToken(access_token="a", token_type="bearer", expires_in=60, created_at=1)
        assert decode_token(encode_token(token)) == token

    def test_round_trip_non_ascii(self):
        """Test UTF-8 content round-trips."""
        token = OAuthToken(access_token="tök€n", token_type="bearer", expires_in=60, created_at=1)
        assert decode_token(encode_token(token)) == token

    def test_encoding_is_base64_compact_json(self, token):
        """Test the wire format is base64 of compact JSON."""
        decoded = base64.b64decode(encode_token(token)).decode("utf-8")
        assert decoded == (
            '{"access_token":"access-abc","refresh_token":"refresh-xyz",'
            '"expires_in":3600,"token_type":"bearer","created_at":1700000000000}'
        )

    def test_refresh_token_omitted_when_none(self):
        """Test a missing refresh token is left out of the payload."""
        token = OAuthToken(access_token="a", token_type="bearer", expires_in=60, created_at=1)
        payload = json.loads(base64.b64decode(encode_token(token)))
        assert "refresh_token" not in payload

    @pytest.mark.parametrize(
        "value",
        [
            "",
            None,
            "not base64!!",
            "%%%",
            base64.b64encode(b"not json").decode(),
            base64.b64encode(b"[1, 2]").decode(),
            base64.b64encode(b"\xff\xfe").decode(),
            base64.b64encode(b'{"token_type": "bearer"}').decode(),
            base64.b64encode(b'{"access_token": "a"}').decode(),
            base64.b64encode(b'{"access_token": "", "token_type": "bearer"}').decode(),
            base64.b64encode(b'{"access_token": "a", "token_type": "bearer", "expires_in": "soon"}').decode(),
            base64.b64encode(b"[" * 5000).decode(),
        ],
    )
    def test_decode_garbage_returns_none(self, value):
        """Test malformed input decodes to None instead of raising."""
        assert decode_token(value) is None

    def test_decode_defaults_missing_numbers(self):
        """Test absent expires_in/created_at default to zero."""
        encoded = base64.b64encode(b'{"access_token": "a", "token_type": "bearer"}').decode()
        token = decode_token(encoded)
        assert token.expires_in == 0
        assert token.created_at == 0


class TestTokenExpiry:
    """Tests for is_token_expired."""

    def test_not_expired_just_outside_skew(self, token):
        """Test a token is still valid 30001ms before expiry."""
        assert is_token_expired(token, now_ms=T0 + 3_600_000 - 30_001) is False

    def test_expired_inside_skew(self, token):
        """Test a token counts as expired 29999ms before expiry."""
        assert is_token_expired(token, now_ms=T0 + 3_600_000 - 29_999) is True

    def test_expired_exactly_at_skew_boundary(self, token):
        """Test the boundary itself counts as expired."""
        assert is_token_expired(token, now_ms=T0 + 3_600_000 - 30_000) is True

    def test_custom_skew(self, token):
        """Test a zero skew only expires at the real expiry."""
        assert is_token_expired(token, skew_ms=0, now_ms=T0 + 3_599_999) is False
        assert is_token_expired(token, skew_ms=0, now_ms=T0 + 3_600_000) is True

    def test_expires_at(self, token):
        """Test expires_at is derived from created_at and expires_in."""
        assert token.expires_at == T0 + 3_600_000


class TestTokenFromProvider:
    """Tests for building tokens from token endpoint payloads."""

    def test_stamps_created_at_and_coerces_expires_in(self):
        """Test created_at is local and expires_in is coerced to int."""
        payload = {
            "access_token": "a",
            "refresh_token": "r",
            "expires_in": "3600",
            "token_type": "bearer",
            "created_at": 5,
            "xoauth_yahoo_guid": "GUID",
        }
        token = token_from_provider(payload, now_ms=T0)
        assert token == OAuthToken(
            access_token="a", refresh_token="r", expires_in=3600, token_type="bearer", created_at=T0
        )

    def test_keeps_fallback_refresh_token(self):
        """Test the old refresh token is kept when Yahoo does not rotate it."""
        token = token_from_provider(
            {"access_token": "a", "expires_in": 3600, "token_type": "bearer"},
            fallback_refresh_token="old",
            now_ms=T0,
        )
        assert token.refresh_token == "old"

    def test_rotated_refresh_token_wins(self):
        """Test a newly issued refresh token replaces the fallback."""
        token = token_from_provider(
            {"access_token": "a", "refresh_token": "new", "expires_in": 3600, "token_type": "bearer"},
            fallback_refresh_token="old",
        )
        assert token.refresh_token == "new"

    def test_missing_token_type_defaults_to_bearer(self):
        """Test a payload without token_type still yields a token the cookie codec accepts."""
        token = token_from_provider({"access_token": "a", "expires_in": 3600}, now_ms=T0)

        assert token.token_type == "bearer"
        assert decode_token(encode_token(token)) == token

    def test_missing_access_token_raises(self):
        """Test a payload without an access token is rejected."""
        with pytest.raises(ValueError):
            token_from_provider({"token_type": "bearer"})


class TestCookies:
    """Tests for cookie building and parsing."""

    def test_build_cookie_with_max_age(self):
        """Test cookie attributes and max-age."""
        assert build_cookie(STATE_COOKIE, "abc-123", max_age=300) == (
            "oauth_state=abc-123; Path=/; SameSite=Lax; Secure; Max-Age=300"
        )

    def test_build_cookie_without_max_age(self):
        """Test no Max-Age is attached when no lifetime is given."""
        assert build_cookie("x", "v") == "x=v; Path=/; SameSite=Lax; Secure"

    def test_build_cookie_percent_encodes(self):
        """Test the value is encoded like encodeURIComponent."""
        assert build_cookie("x", "a+b/c=d e", max_age=1).startswith("x=a%2Bb%2Fc%3Dd%20e;")
        assert build_cookie("x", "-_.!~*'()").startswith("x=-_.!~*'();")

    def test_clear_cookie(self):
        """Test clearing re-issues the cookie empty with Max-Age=0."""
        assert clear_cookie(AUTH_COOKIE) == "yahoo_oauth=; Path=/; SameSite=Lax; Secure; Max-Age=0"

    def test_get_cookie_value(self):
        """Test the raw value is found and '=' inside values is preserved."""
        header = "a=1; yahoo_oauth=abc%3D%3D==; oauth_state=s"
        assert get_cookie_value(header, "yahoo_oauth") == "abc%3D%3D=="
        assert get_cookie_value(header, "oauth_state") == "s"
        assert get_cookie_value(header, "missing") is None
        assert get_cookie_value(None, "a") is None

    def test_read_cookie_decodes(self):
        """Test read_cookie percent-decodes the value."""
        assert read_cookie("oauth_state=a%20b", STATE_COOKIE) == "a b"

    def test_token_cookie_round_trip(self, token):
        """Test a token written with build_cookie is read back."""
        set_cookie = build_cookie(AUTH_COOKIE, encode_token(token), max_age=60)
        cookie_pair = set_cookie.split(";", 1)[0]
        assert read_token_cookie(f"other=1; {cookie_pair}") == token

    def test_token_cookie_garbage(self):
        """Test an undecodable token cookie reads as no token."""
        assert read_token_cookie("yahoo_oauth=garbage") is None
        assert read_token_cookie(None) is None

    def test_deeply_nested_token_cookie(self):
        """Test a token cookie nesting JSON past the recursion limit reads as no token."""
        value = base64.b64encode(b"[" * 5000).decode()
        assert read_token_cookie(f"{AUTH_COOKIE}={value}") is None
