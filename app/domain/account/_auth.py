"""Registration and login."""

from loguru import logger
from pymongo.errors import DuplicateKeyError

from app.schemas import TrainerProfile, User, UserRole
from app.shared.auth.passwords import hash_password, verify_password
from app.shared.auth.tokens import issue_token
from app.shared.utils import utc_now
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from ..utils.idgen import new_user_id
from ._base import BaseService
from .user_models import AuthResponse, LoginParams, RegisterParams, UserProfileResponse

# Roles a caller may pick for themselves at registration
SELF_SERVICE_ROLES = {UserRole.USER, UserRole.TRAINER}


def _user_exists() -> AppError:
    return AppError(
        errcode=AppErrorCode.E_USER_EXISTS,
        errmesg="User already exists",
        status_code=HttpStatusCode.BAD_REQUEST,
        stacklevel=2,
    )


class AuthOperations(BaseService):
    """Account creation and credential checks."""

    async def register(self, params: RegisterParams) -> AuthResponse:
        """
        Create an account and return a signed token for it.

        Any role other than user/trainer falls back to user. Trainers start
        with an empty trainer profile.
        """
        if await self._get_user_by_email(params.email):
            raise _user_exists()

        role = params.role if params.role in SELF_SERVICE_ROLES else UserRole.USER
        now = utc_now()

        user = User(
            user_id=new_user_id(),
            email=params.email,
            password_hash=hash_password(params.password),
            first_name=params.first_name.strip(),
            last_name=params.last_name.strip(),
            role=role,
            trainer_profile=TrainerProfile() if role == UserRole.TRAINER else None,
            created_at=now,
            updated_at=now,
        )

        try:
            await user.insert()
        except DuplicateKeyError:
            # Concurrent registration with the same email
            raise _user_exists()

        logger.info(f"Registered user {user.user_id} with role {role}")

        return AuthResponse(token=issue_token(user.user_id, user.role), user=self._to_profile(user))

    async def login(self, params: LoginParams) -> AuthResponse:
        user = await self._get_user_by_email(params.email)
        if not user or not verify_password(params.password, user.password_hash):
            raise AppError(
                errcode=AppErrorCode.E_INVALID_CREDENTIALS,
                errmesg="Invalid credentials",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        logger.debug(f"User {user.user_id} logged in")
        return AuthResponse(token=issue_token(user.user_id, user.role), user=self._to_profile(user))

    async def me(self, user_id: str) -> UserProfileResponse:
        """Profile of the token holder."""
        return self._to_profile(await self._require_user(user_id))
