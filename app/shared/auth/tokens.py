"""Signed identity tokens (HS256 JWT carrying `{id, role}`)."""

from datetime import timedelta
from typing import Any

import jwt
from loguru import logger

from app.app_config import get_app_environ_config
from app.shared.utils import utc_now
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


def issue_token(user_id: str, role: str) -> str:
    cfg = get_app_environ_config()
    now = utc_now()
    payload = {
        "id": user_id,
        "role": str(role),
        "iat": now,
        "exp": now + timedelta(days=cfg.JWT_EXPIRES_DAYS),
    }
    return jwt.encode(payload, cfg.JWT_SECRET, algorithm=cfg.JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """
    Verify signature and expiry and return the payload.

    Raises AppError (401) with E_TOKEN_EXPIRED or E_BAD_TOKEN.
    """
    cfg = get_app_environ_config()
    try:
        payload = jwt.decode(
            token,
            cfg.JWT_SECRET,
            algorithms=[cfg.JWT_ALGORITHM],
            options={"require": ["exp", "id"]},
        )
    except jwt.ExpiredSignatureError:
        raise AppError(
            errcode=AppErrorCode.E_TOKEN_EXPIRED,
            errmesg="Token expired",
            status_code=HttpStatusCode.UNAUTHORIZED,
        )
    except jwt.InvalidTokenError as e:
        logger.debug(f"Rejected token: {e}")
        raise AppError(
            errcode=AppErrorCode.E_BAD_TOKEN,
            errmesg="Invalid token",
            status_code=HttpStatusCode.UNAUTHORIZED,
        )
    return payload
