"""User account operations."""

from typing import Any

from beanie.operators import In
from beanie.odm.operators.update.general import Inc, Set
from loguru import logger

from app.schemas import Session, TrainerProfile, User, UserRole
from app.shared.utils import utc_now
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode, forbidden, invalid_request

from ..utils.actor import Actor
from ._base import BaseService
from .user_models import (
    BookedSessionView,
    PreferencesResponse,
    PreferencesUpdateParams,
    TokenOperation,
    TokenUpdateResponse,
    UserListResponse,
    UserProfileResponse,
    UserSessionsResponse,
    UserUpdateParams,
)


class UserOperations(BaseService):
    """Profile, token ledger and preference operations."""

    async def list_users(self, actor: Actor) -> UserListResponse:
        if not actor.is_admin:
            raise forbidden("Admin access required")
        users = await User.find_all().sort([(User.created_at, 1)]).to_list()
        return UserListResponse(users=[self._to_profile(u) for u in users])

    async def get_user(self, user_id: str, actor: Actor) -> UserProfileResponse:
        self._ensure_can_access(actor, user_id)
        return self._to_profile(await self._require_user(user_id))

    async def update_user(
        self,
        user_id: str,
        actor: Actor,
        params: UserUpdateParams,
    ) -> UserProfileResponse:
        """
        Update profile fields that were provided.

        `trainer_profile` is merged into the existing profile and only
        applies to trainer accounts; it is ignored for everyone else.
        """
        self._ensure_can_access(actor, user_id)
        user = await self._require_user(user_id)

        changes = params.model_dump(exclude_none=True, exclude={"trainer_profile"})

        new_email = changes.get("email")
        if new_email and new_email != user.email:
            other = await self._get_user_by_email(new_email)
            if other and other.user_id != user_id:
                raise AppError(
                    errcode=AppErrorCode.E_USER_EXISTS,
                    errmesg="User already exists",
                    status_code=HttpStatusCode.BAD_REQUEST,
                )

        updates: dict[Any, Any] = {getattr(User, field): value for field, value in changes.items()}

        if params.trainer_profile is not None and user.role == UserRole.TRAINER:
            merged = (user.trainer_profile or TrainerProfile()).model_copy(
                update=params.trainer_profile.model_dump(exclude_none=True)
            )
            updates[User.trainer_profile] = merged

        if not updates:
            return self._to_profile(user)

        updates[User.updated_at] = utc_now()
        await user.set(updates)

        logger.info(f"User {user_id} updated fields: {sorted(str(k) for k in updates)}")

        return self._to_profile(user)

    async def delete_user(self, user_id: str, actor: Actor) -> None:
        self._ensure_can_access(actor, user_id)
        user = await self._require_user(user_id)
        await user.delete()
        logger.info(f"Deleted user {user_id} (by {actor.user_id})")

    async def update_tokens(
        self,
        user_id: str,
        actor: Actor,
        tokens: int | None,
        operation: TokenOperation | str | None = None,
    ) -> TokenUpdateResponse:
        """
        Adjust a user's token balance.

        `add` and `subtract` are applied atomically; `subtract` only applies
        while the balance covers the amount. Without an operation the balance
        is set to `tokens`.
        """
        self._ensure_can_access(actor, user_id)

        if tokens is None or isinstance(tokens, bool) or tokens < 0:
            raise invalid_request("Invalid token amount")

        try:
            op = TokenOperation(operation) if operation else TokenOperation.SET
        except ValueError:
            raise invalid_request("Invalid token operation")

        now = utc_now()
        if op == TokenOperation.ADD:
            result = await User.find(User.user_id == user_id).update(
                Inc({User.tokens: tokens}),
                Set({User.updated_at: now}),
            )
        elif op == TokenOperation.SUBTRACT:
            result = await User.find(User.user_id == user_id, User.tokens >= tokens).update(
                Inc({User.tokens: -tokens}),
                Set({User.updated_at: now}),
            )
        else:
            result = await User.find(User.user_id == user_id).update(
                Set({User.tokens: tokens, User.updated_at: now}),
            )

        if not result or result.matched_count == 0:
            # Distinguish a missing account from a balance that does not cover the debit
            await self._require_user(user_id)
            raise AppError(
                errcode=AppErrorCode.E_INSUFFICIENT_TOKENS,
                errmesg="User does not have enough tokens",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        user = await self._require_user(user_id)
        logger.info(f"Tokens for {user_id}: {op.value} {tokens} -> balance {user.tokens}")

        return TokenUpdateResponse(user_id=user_id, tokens=user.tokens)

    async def get_user_sessions(self, user_id: str, actor: Actor) -> UserSessionsResponse:
        """Bookings of a user joined with their session and the trainer's name."""
        self._ensure_can_access(actor, user_id)
        user = await self._require_user(user_id)

        session_ids = [b.session_id for b in user.booked_sessions]
        sessions = await Session.find(In(Session.session_id, session_ids)).to_list() if session_ids else []
        sessions_by_id = {s.session_id: s for s in sessions}

        trainer_ids = list({s.trainer_id for s in sessions})
        trainers = await User.find(In(User.user_id, trainer_ids)).to_list() if trainer_ids else []
        names = {t.user_id: t.full_name for t in trainers}

        views = []
        for booking in user.booked_sessions:
            session = sessions_by_id.get(booking.session_id)
            if session is None:
                logger.warning(f"User {user_id} holds a booking for missing session {booking.session_id}")
                continue
            views.append(
                BookedSessionView(
                    session_id=session.session_id,
                    title=session.title,
                    trainer=names.get(session.trainer_id),
                    scheduled_at=session.scheduled_at,
                    duration=session.duration,
                    status=session.status,
                    booked_at=booking.booked_at,
                )
            )

        return UserSessionsResponse(sessions=views)

    async def update_preferences(
        self,
        user_id: str,
        actor: Actor,
        params: PreferencesUpdateParams,
    ) -> PreferencesResponse:
        """Partial preference update; notification flags are merged individually."""
        self._ensure_can_access(actor, user_id)
        user = await self._require_user(user_id)

        changes = params.model_dump(exclude_none=True, exclude={"notifications"})
        preferences = user.preferences.model_copy(update=changes)
        if params.notifications is not None:
            preferences.notifications = preferences.notifications.model_copy(
                update=params.notifications.model_dump(exclude_none=True)
            )

        await user.set({User.preferences: preferences, User.updated_at: utc_now()})

        return PreferencesResponse(user_id=user_id, preferences=user.preferences)
