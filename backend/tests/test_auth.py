"""Tests for bearer-token verification."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from app.core.config import settings
from app.core.security import decode_access_token, get_current_user, get_optional_user
from factories import make_user, mock_db


def _token(sub: str | None = "1", expires_in: timedelta = timedelta(minutes=5)) -> str:
    claims: dict = {"exp": datetime.now(timezone.utc) + expires_in}
    if sub is not None:
        claims["sub"] = sub
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def _creds(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestDecodeAccessToken:
    def test_valid_token(self):
        assert decode_access_token(_token("7"))["sub"] == "7"

    def test_expired_token_is_401(self):
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(_token(expires_in=timedelta(minutes=-1)))
        assert exc_info.value.status_code == 401

    def test_wrong_signature_is_401(self):
        forged = jwt.encode({"sub": "1"}, "other-secret", algorithm="HS256")
        with pytest.raises(HTTPException):
            decode_access_token(forged)


class TestGetCurrentUser:
    @pytest.mark.asyncio
    @patch("app.core.security.get_user_by_id")
    async def test_resolves_user(self, mock_get_user):
        mock_get_user.return_value = make_user(1)
        user = await get_current_user(_creds(_token("1")), mock_db())
        assert user.id == 1

    @pytest.mark.asyncio
    async def test_missing_subject_is_401(self):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(_creds(_token(sub=None)), mock_db())
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_non_numeric_subject_is_401(self):
        with pytest.raises(HTTPException):
            await get_current_user(_creds(_token("abc")), mock_db())

    @pytest.mark.asyncio
    @patch("app.core.security.get_user_by_id")
    async def test_inactive_user_is_401(self, mock_get_user):
        user = make_user(1)
        user.is_active = False
        mock_get_user.return_value = user
        with pytest.raises(HTTPException):
            await get_current_user(_creds(_token("1")), mock_db())


class TestGetOptionalUser:
    @pytest.mark.asyncio
    async def test_anonymous_is_none(self):
        assert await get_optional_user(None, mock_db()) is None
