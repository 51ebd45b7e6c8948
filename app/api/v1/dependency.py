from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger

from app.domain.utils.actor import Actor
from app.schemas import User
from app.shared.auth.tokens import decode_token
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

_bearer = HTTPBearer(auto_error=False)


async def _resolve_actor(token: str) -> Actor:
    payload = decode_token(token)

    user_id = payload.get("id")
    user = await User.find_one(User.user_id == user_id) if user_id else None
    if not user:
        raise AppError(
            errcode=AppErrorCode.E_BAD_TOKEN,
            errmesg="Invalid token",
            status_code=HttpStatusCode.UNAUTHORIZED,
        )

    logger.debug("Authenticated user_id: {}", user.user_id)

    # Role is read from the account, not the token, so role changes apply immediately
    return Actor(user_id=user.user_id, role=user.role)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> Actor:
    # Do not log the Authorization header.
    if not credentials or not credentials.credentials:
        raise AppError(
            errcode=AppErrorCode.E_BAD_TOKEN,
            errmesg="Authentication required",
            status_code=HttpStatusCode.UNAUTHORIZED,
        )
    return await _resolve_actor(credentials.credentials)


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> Actor | None:
    """Caller identity for public endpoints whose output depends on the role."""
    if not credentials or not credentials.credentials:
        return None
    return await _resolve_actor(credentials.credentials)


CurrentUser = Annotated[Actor, Depends(get_current_user)]
OptionalUser = Annotated[Actor | None, Depends(get_optional_user)]


async def require_trainer(user: CurrentUser) -> Actor:
    if not user.has_trainer_role:
        raise AppError(
            errcode=AppErrorCode.E_FORBIDDEN,
            errmesg="Trainer access required",
            status_code=HttpStatusCode.FORBIDDEN,
        )
    return user


async def require_admin(user: CurrentUser) -> Actor:
    if not user.is_admin:
        raise AppError(
            errcode=AppErrorCode.E_FORBIDDEN,
            errmesg="Admin access required",
            status_code=HttpStatusCode.FORBIDDEN,
        )
    return user


TrainerUser = Annotated[Actor, Depends(require_trainer)]
AdminUser = Annotated[Actor, Depends(require_admin)]
