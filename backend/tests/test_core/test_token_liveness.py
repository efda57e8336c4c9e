"""
Unit tests for bearer token liveness

Only the embedded exp claim matters; signatures are never checked.
"""
from datetime import datetime, timedelta, timezone

from jose import jwt

from storefront.core.auth import is_token_live, read_token_claims


class TestTokenLiveness:
    """Test is_token_live and read_token_claims"""

    def test_future_exp_is_live(self, token_factory):
        assert is_token_live(token_factory(timedelta(minutes=5))) is True

    def test_past_exp_is_not_live(self, token_factory):
        assert is_token_live(token_factory(timedelta(minutes=-5))) is False

    def test_token_signed_with_unknown_secret_is_still_read(self):
        token = jwt.encode({"exp": 4102444800}, "some-other-secret", algorithm="HS256")
        assert is_token_live(token) is True

    def test_missing_exp_is_not_live(self, token_factory):
        assert is_token_live(token_factory(expires_in=None)) is False

    def test_non_numeric_exp_is_not_live(self):
        token = jwt.encode({"exp": "tomorrow"}, "s", algorithm="HS256")
        assert is_token_live(token) is False

    def test_malformed_token_is_not_live(self):
        assert is_token_live("not-a-jwt") is False
        assert read_token_claims("not-a-jwt") is None

    def test_empty_token_is_not_live(self):
        assert is_token_live(None) is False
        assert is_token_live("") is False

    def test_explicit_now(self, token_factory):
        token = token_factory(timedelta(hours=1))
        later = datetime.now(timezone.utc) + timedelta(hours=2)
        assert is_token_live(token, now=later) is False
