"""Base service for session operations."""

from collections.abc import Iterable, Mapping
from typing import Any

from beanie.odm.fields import ExpressionField
from beanie.operators import In
from loguru import logger

from app.app_config import get_app_environ_config
from app.schemas import Session, SessionState, User
from app.services.integrations.rtc_service import RtcService, get_rtc_service
from app.shared.utils import utc_now
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from ...utils.actor import Actor
from .session_models import SessionResponse, TrainerSummary
from .session_state_machine import SessionStateMachine


class BaseService:
    """Base service with shared session operation methods."""

    def __init__(self, rtc: RtcService | None = None):
        """Initialize BaseService with the RTC collaborator."""
        self.rtc = rtc or get_rtc_service()
        self._cfg = get_app_environ_config()

    async def _get_session_by_id(self, session_id: str) -> Session | None:
        """
        Retrieve a session by session_id.

        Args:
            session_id: The session identifier

        Returns:
            Session document if found, None otherwise
        """
        return await Session.find_one(Session.session_id == session_id)

    async def _require_session(self, session_id: str) -> Session:
        session = await self._get_session_by_id(session_id)
        if not session:
            raise AppError(
                errcode=AppErrorCode.E_SESSION_NOT_FOUND,
                errmesg="Session not found",
                status_code=HttpStatusCode.NOT_FOUND,
            )
        return session

    async def _require_user(self, user_id: str) -> User:
        user = await User.find_one(User.user_id == user_id)
        if not user:
            raise AppError(
                errcode=AppErrorCode.E_USER_NOT_FOUND,
                errmesg="User not found",
                status_code=HttpStatusCode.NOT_FOUND,
            )
        return user

    def _ensure_owner_or_admin(self, session: Session, actor: Actor, errmesg: str) -> None:
        if session.trainer_id != actor.user_id and not actor.is_admin:
            raise AppError(
                errcode=AppErrorCode.E_SESSION_FORBIDDEN,
                errmesg=errmesg,
                status_code=HttpStatusCode.FORBIDDEN,
            )

    async def _load_trainers(self, trainer_ids: Iterable[str]) -> dict[str, TrainerSummary]:
        ids = sorted(set(trainer_ids))
        if not ids:
            return {}
        trainers = await User.find(In(User.user_id, ids)).to_list()
        return {
            t.user_id: TrainerSummary(
                user_id=t.user_id,
                first_name=t.first_name,
                last_name=t.last_name,
                profile_picture=t.profile_picture,
            )
            for t in trainers
        }

    async def _to_response(self, session: Session) -> SessionResponse:
        trainers = await self._load_trainers([session.trainer_id])
        return SessionResponse(
            **session.model_dump(exclude={"id"}, mode="json"),
            trainer=trainers.get(session.trainer_id),
        )

    async def _to_responses(self, sessions: list[Session]) -> list[SessionResponse]:
        trainers = await self._load_trainers(s.trainer_id for s in sessions)
        return [
            SessionResponse(
                **s.model_dump(exclude={"id"}, mode="json"),
                trainer=trainers.get(s.trainer_id),
            )
            for s in sessions
        ]

    async def update_session_state(
        self,
        session: Session,
        new_state: SessionState,
        extra_updates: Mapping[ExpressionField, Any] | None = None,
    ) -> Session:
        """
        Update session state with validation.

        Args:
            session: Session document to update
            new_state: Target state to transition to
            extra_updates: Other top-level fields written in the same update

        Returns:
            Updated session document

        Raises:
            AppError: If the state transition is invalid or the session changed concurrently
        """
        # No-op if already in target state
        if session.status == new_state:
            logger.info(f"Session {session.session_id} already in state {new_state}, skipping")
            return session

        if not SessionStateMachine.can_transition(session.status, new_state):
            raise AppError(
                errcode=AppErrorCode.E_INVALID_STATE,
                errmesg=f"Invalid state transition: {session.status} -> {new_state}",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        updates: dict[ExpressionField, Any] = {
            Session.status: new_state,
            Session.updated_at: utc_now(),
        }
        if extra_updates:
            updates.update(extra_updates)

        await session.partial_update_session_with_version_check(updates)

        logger.info(f"Session {session.session_id} state updated to {new_state}")

        return session
