"""Tests for identity token issue/verification and password hashing."""

from datetime import timedelta

import jwt
import pytest

from app.app_config import get_app_environ_config
from app.shared.auth.passwords import hash_password, verify_password
from app.shared.auth.tokens import decode_token, issue_token
from app.shared.utils import utc_now
from app.utils.app_errors import AppError, AppErrorCode


class TestTokens:
    def test_round_trip_carries_id_and_role(self):
        token = issue_token("us_123", "trainer")

        payload = decode_token(token)

        assert payload["id"] == "us_123"
        assert payload["role"] == "trainer"

    def test_expired_token(self):
        cfg = get_app_environ_config()
        past = utc_now() - timedelta(days=1)
        token = jwt.encode(
            {"id": "us_123", "role": "user", "iat": past - timedelta(days=7), "exp": past},
            cfg.JWT_SECRET,
            algorithm=cfg.JWT_ALGORITHM,
        )

        with pytest.raises(AppError) as exc_info:
            decode_token(token)

        assert exc_info.value.errcode == AppErrorCode.E_TOKEN_EXPIRED
        assert exc_info.value.status_code == 401

    def test_wrong_signature(self):
        token = jwt.encode(
            {"id": "us_123", "exp": utc_now() + timedelta(days=1)},
            "some-other-secret",
            algorithm="HS256",
        )

        with pytest.raises(AppError) as exc_info:
            decode_token(token)

        assert exc_info.value.errcode == AppErrorCode.E_BAD_TOKEN

    def test_missing_id_claim(self):
        cfg = get_app_environ_config()
        token = jwt.encode({"exp": utc_now() + timedelta(days=1)}, cfg.JWT_SECRET, algorithm=cfg.JWT_ALGORITHM)

        with pytest.raises(AppError) as exc_info:
            decode_token(token)

        assert exc_info.value.errmesg == "Invalid token"

    def test_garbage(self):
        with pytest.raises(AppError):
            decode_token("not-a-jwt")


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = hash_password("s3cret!")

        assert hashed != "s3cret!"
        assert verify_password("s3cret!", hashed) is True
        assert verify_password("wrong", hashed) is False

    def test_malformed_hash(self):
        assert verify_password("s3cret!", "not-a-bcrypt-hash") is False
