"""Base service for account operations."""

from app.schemas import User
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from ..utils.actor import Actor
from .user_models import UserProfileResponse


class BaseService:
    """Shared lookups and authorization for account operations."""

    async def _get_user_by_id(self, user_id: str) -> User | None:
        return await User.find_one(User.user_id == user_id)

    async def _get_user_by_email(self, email: str) -> User | None:
        return await User.find_one(User.email == email.strip().lower())

    async def _require_user(self, user_id: str) -> User:
        user = await self._get_user_by_id(user_id)
        if not user:
            raise AppError(
                errcode=AppErrorCode.E_USER_NOT_FOUND,
                errmesg="User not found",
                status_code=HttpStatusCode.NOT_FOUND,
            )
        return user

    def _ensure_can_access(self, actor: Actor, user_id: str) -> None:
        if not actor.can_access_user(user_id):
            raise AppError(
                errcode=AppErrorCode.E_FORBIDDEN,
                errmesg="Access denied",
                status_code=HttpStatusCode.FORBIDDEN,
            )

    @staticmethod
    def _to_profile(user: User) -> UserProfileResponse:
        return UserProfileResponse(**user.model_dump(exclude={"id", "password_hash"}, mode="json"))
