"""
Tests for session tokens and flash cookies.
"""

import pytest
from jose import jwt

from goodtraining.core.config import settings
from goodtraining.core.flash import Flash, _decode, _encode
from goodtraining.core.session import session_user_from_token
from goodtraining.domain.enums import UserRole
from tests.factories import TOKEN_SECRET


class TestSessionUser:
    @pytest.mark.anyio
    async def test_reads_claims(self, make_token):
        token = make_token(user_id=7, email="a@b.com", role="admin")

        user = session_user_from_token(token)

        assert user.id == "7"
        assert user.email == "a@b.com"
        assert user.role is UserRole.ADMIN
        assert user.is_admin
        assert user.token == token

    @pytest.mark.anyio
    async def test_missing_or_garbage_token(self):
        assert session_user_from_token(None) is None
        assert session_user_from_token("") is None
        assert session_user_from_token("not-a-jwt") is None

    @pytest.mark.anyio
    async def test_expired_token(self, make_token):
        assert session_user_from_token(make_token(expires_in=-10)) is None

    @pytest.mark.anyio
    async def test_unknown_role_is_kept_as_none(self, make_token):
        user = session_user_from_token(make_token(role="superuser"))

        assert user.role is None
        assert not user.is_admin

    @pytest.mark.anyio
    async def test_token_without_id(self):
        token = jwt.encode({"email": "a@b.com"}, TOKEN_SECRET, algorithm="HS256")

        assert session_user_from_token(token) is None

    @pytest.mark.anyio
    async def test_verifies_signature_when_secret_set(self, make_token, monkeypatch):
        monkeypatch.setattr(settings, "backend_jwt_secret", TOKEN_SECRET)
        forged = jwt.encode({"id": 1, "role": "admin"}, "another-secret", algorithm="HS256")

        assert session_user_from_token(make_token(role="admin")).is_admin
        assert session_user_from_token(forged) is None


class TestFlashCookie:
    @pytest.mark.anyio
    async def test_encoded_value_is_cookie_safe(self):
        value = _encode(Flash("로그인 성공", "환영합니다!"))

        assert "=" not in value
        assert _decode(value) == Flash("로그인 성공", "환영합니다!")

    @pytest.mark.anyio
    async def test_malformed_value(self):
        assert _decode("!!!") is None
        assert _decode(_encode(Flash("x"))[:-3]) is None
