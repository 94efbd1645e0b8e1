"""Unit tests for session authentication."""

import asyncio
import time
from unittest.mock import patch

import pytest
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from app.core.auth import decode_session_token, get_current_user_id, require_current_user
from app.core.errors import AuthenticationAppError

KEY = "test-signing-secret"


def _token(claims: dict, key: str = KEY) -> str:
    return jwt.encode(claims, key, algorithm="HS256")


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestDecodeSessionToken:
    def test_returns_subject(self) -> None:
        assert decode_session_token(_token({"sub": "user_alice"})) == "user_alice"

    def test_rejects_wrong_signature(self) -> None:
        with pytest.raises(AuthenticationAppError) as exc_info:
            decode_session_token(_token({"sub": "user_alice"}, key="other-secret"))
        assert exc_info.value.code == "unauthorized"

    def test_rejects_expired_token(self) -> None:
        token = _token({"sub": "user_alice", "exp": int(time.time()) - 60})

        with pytest.raises(AuthenticationAppError):
            decode_session_token(token)

    def test_rejects_token_without_subject(self) -> None:
        with pytest.raises(AuthenticationAppError):
            decode_session_token(_token({"sid": "sess_1"}))

    @patch("app.core.auth.settings")
    def test_rejects_everything_when_key_not_configured(self, mock_settings) -> None:
        mock_settings.auth.jwt_key = None

        with pytest.raises(AuthenticationAppError):
            decode_session_token(_token({"sub": "user_alice"}))

    @patch("app.core.auth.settings")
    def test_checks_issuer_when_configured(self, mock_settings) -> None:
        mock_settings.auth.jwt_key = KEY
        mock_settings.auth.jwt_algorithm = "HS256"
        mock_settings.auth.jwt_issuer = "https://clerk.example.com"
        mock_settings.auth.jwt_audience = None

        good = _token({"sub": "user_alice", "iss": "https://clerk.example.com"})
        bad = _token({"sub": "user_alice", "iss": "https://evil.example.com"})

        assert decode_session_token(good) == "user_alice"
        with pytest.raises(AuthenticationAppError):
            decode_session_token(bad)


class TestDependencies:
    def test_current_user_id_is_none_without_credentials(self) -> None:
        assert asyncio.run(get_current_user_id(None)) is None

    def test_current_user_id_is_none_for_invalid_token(self) -> None:
        assert asyncio.run(get_current_user_id(_credentials("garbage"))) is None

    def test_current_user_id_from_valid_token(self) -> None:
        token = _token({"sub": "user_bob"})

        assert asyncio.run(get_current_user_id(_credentials(token))) == "user_bob"

    def test_require_current_user_rejects_anonymous(self) -> None:
        with pytest.raises(AuthenticationAppError) as exc_info:
            asyncio.run(require_current_user(None))
        assert exc_info.value.code == "unauthorized"

    def test_require_current_user_passes_user_through(self) -> None:
        assert asyncio.run(require_current_user("user_bob")) == "user_bob"
