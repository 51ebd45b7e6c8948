"""Account domain service - registration, login and user management with Beanie ODM."""

from ..utils.actor import Actor
from ._auth import AuthOperations
from ._users import UserOperations
from .user_models import (
    AuthResponse,
    LoginParams,
    PreferencesResponse,
    PreferencesUpdateParams,
    RegisterParams,
    TokenOperation,
    TokenUpdateResponse,
    UserListResponse,
    UserProfileResponse,
    UserSessionsResponse,
    UserUpdateParams,
)


class UserService:
    """Account service."""

    def __init__(self):
        self._auth = AuthOperations()
        self._users = UserOperations()

    # ==================== AUTH ====================

    async def register(self, params: RegisterParams) -> AuthResponse:
        """Create an account and return a signed token.

        Raises AppError if the email is already registered.
        """
        return await self._auth.register(params=params)

    async def login(self, params: LoginParams) -> AuthResponse:
        """Raises AppError on unknown email or wrong password."""
        return await self._auth.login(params=params)

    async def me(self, user_id: str) -> UserProfileResponse:
        return await self._auth.me(user_id=user_id)

    # ==================== USERS ====================

    async def list_users(self, actor: Actor) -> UserListResponse:
        return await self._users.list_users(actor=actor)

    async def get_user(self, user_id: str, actor: Actor) -> UserProfileResponse:
        return await self._users.get_user(user_id=user_id, actor=actor)

    async def update_user(
        self,
        user_id: str,
        actor: Actor,
        params: UserUpdateParams,
    ) -> UserProfileResponse:
        return await self._users.update_user(user_id=user_id, actor=actor, params=params)

    async def delete_user(self, user_id: str, actor: Actor) -> None:
        await self._users.delete_user(user_id=user_id, actor=actor)

    async def update_tokens(
        self,
        user_id: str,
        actor: Actor,
        tokens: int | None,
        operation: TokenOperation | str | None = None,
    ) -> TokenUpdateResponse:
        """Add, subtract or set a token balance.

        Raises AppError on an invalid amount or when a subtraction would go
        below zero.
        """
        return await self._users.update_tokens(
            user_id=user_id,
            actor=actor,
            tokens=tokens,
            operation=operation,
        )

    async def get_user_sessions(self, user_id: str, actor: Actor) -> UserSessionsResponse:
        return await self._users.get_user_sessions(user_id=user_id, actor=actor)

    async def update_preferences(
        self,
        user_id: str,
        actor: Actor,
        params: PreferencesUpdateParams,
    ) -> PreferencesResponse:
        return await self._users.update_preferences(user_id=user_id, actor=actor, params=params)
