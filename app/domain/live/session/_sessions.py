"""Session operations."""

import re
from typing import Any

from beanie.odm.fields import ExpressionField
from loguru import logger
from pymongo import ASCENDING, DESCENDING

from app.schemas import Session, SessionState
from app.schemas.schema_utils import to_mongo_datetime
from app.services.integrations.rtc_service import RtcService
from app.shared.utils import utc_now
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from ...utils.actor import Actor
from ...utils.idgen import new_session_id
from ._base import BaseService
from ._booking import BookingOperations
from .session_models import (
    SessionCreateParams,
    SessionListFilters,
    SessionListResponse,
    SessionResponse,
    SessionStatusResponse,
    SessionUpdateParams,
)

# Targets accepted by update_status; live/completed are reached through the stream endpoints
SETTABLE_STATUSES = {SessionState.SCHEDULED, SessionState.CANCELLED}


class SessionOperations(BaseService):
    """Session-related operations."""

    def __init__(self, rtc: RtcService | None = None, booking: BookingOperations | None = None):
        super().__init__(rtc)
        self._booking = booking or BookingOperations(rtc=self.rtc)

    async def create_session(
        self,
        params: SessionCreateParams,
    ) -> SessionResponse:
        """
        Create a new scheduled session owned by params.trainer_id.

        Returns SessionResponse.
        """
        now = utc_now()

        session = Session(
            session_id=new_session_id(),
            trainer_id=params.trainer_id,
            title=params.title.strip(),
            description=params.description,
            category=params.category,
            difficulty=params.difficulty,
            scheduled_at=params.scheduled_at,
            duration=params.duration,
            token_cost=params.token_cost,
            max_participants=params.max_participants,
            thumbnail=params.thumbnail,
            equipment_required=params.equipment_required or [],
            tags=params.tags or [],
            status=SessionState.SCHEDULED,
            created_at=now,
            updated_at=now,
        )

        await session.insert()
        logger.info(f"Created session {session.session_id} for trainer {params.trainer_id}")

        return await self._to_response(session)

    async def get_session(
        self,
        session_id: str,
    ) -> SessionResponse:
        """
        Get a single session by session_id.

        Raises AppError if session not found.
        """
        session = await self._require_session(session_id)
        return await self._to_response(session)

    async def list_sessions(
        self,
        filters: SessionListFilters | None = None,
    ) -> SessionListResponse:
        """Return sessions matching the filters, earliest scheduled first."""
        filters = filters or SessionListFilters()
        query: list[Any] = []

        if filters.category:
            query.append(Session.category == filters.category)
        if filters.difficulty:
            query.append(Session.difficulty == filters.difficulty)
        if filters.trainer_id:
            query.append(Session.trainer_id == filters.trainer_id)
        if filters.status:
            query.append(Session.status == filters.status)
        if filters.upcoming:
            query.append(Session.scheduled_at > to_mongo_datetime(utc_now()))
        if filters.search:
            pattern = re.escape(filters.search.strip())
            query.append(
                {
                    "$or": [
                        {"title": {"$regex": pattern, "$options": "i"}},
                        {"description": {"$regex": pattern, "$options": "i"}},
                        {"tags": {"$regex": pattern, "$options": "i"}},
                    ]
                }
            )

        sessions = await Session.find(*query).sort([(Session.scheduled_at, ASCENDING)]).to_list()
        return SessionListResponse(sessions=await self._to_responses(sessions))

    async def list_sessions_by_trainer(
        self,
        trainer_id: str,
    ) -> SessionListResponse:
        """Return a trainer's sessions, latest scheduled first."""
        sessions = (
            await Session.find(Session.trainer_id == trainer_id)
            .sort([(Session.scheduled_at, DESCENDING)])
            .to_list()
        )
        return SessionListResponse(sessions=await self._to_responses(sessions))

    async def update_session(
        self,
        session_id: str,
        actor: Actor,
        params: SessionUpdateParams,
    ) -> SessionResponse:
        """
        Update session descriptor fields.

        Only the owning trainer or an admin may update, and only while the
        session is neither live nor completed.
        """
        session = await self._require_session(session_id)
        self._ensure_owner_or_admin(session, actor, "Not authorized to update this session")

        if session.status in SessionState.locked_states():
            raise AppError(
                errcode=AppErrorCode.E_INVALID_STATE,
                errmesg=f"Cannot update a {session.status} session",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        changes = params.model_dump(exclude_none=True)
        if not changes:
            return await self._to_response(session)

        updates: dict[ExpressionField, Any] = {
            getattr(Session, field): value for field, value in changes.items()
        }
        updates[Session.updated_at] = utc_now()

        await session.partial_update_session_with_version_check(updates)
        logger.info(f"Session {session_id} updated fields: {sorted(changes)}")

        return await self._to_response(session)

    async def delete_session(
        self,
        session_id: str,
        actor: Actor,
    ) -> int:
        """
        Delete a session that never went live.

        Bookings still held for the session are refunded.

        Returns the number of refunded users.
        """
        session = await self._require_session(session_id)
        self._ensure_owner_or_admin(session, actor, "Not authorized to delete this session")

        if session.status in SessionState.locked_states():
            raise AppError(
                errcode=AppErrorCode.E_INVALID_STATE,
                errmesg=f"Cannot delete a {session.status} session",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        result = await Session.find(
            Session.id == session.id,
            Session.version == session.version,
        ).delete()
        if not result or result.deleted_count == 0:
            raise AppError(
                errcode=AppErrorCode.E_SESSION_VERSION_CONFLICT,
                errmesg=f"Session {session_id} changed while deleting, retry",
                status_code=HttpStatusCode.CONFLICT,
            )

        logger.info(f"Deleted session {session_id}")

        return await self._booking.refund_bookings(session)

    async def update_status(
        self,
        session_id: str,
        actor: Actor,
        status: SessionState | str,
    ) -> SessionStatusResponse:
        """
        Move a session to scheduled or cancelled.

        Cancelling refunds every booking for the session.
        """
        try:
            target = SessionState(status)
        except ValueError:
            target = None
        if target not in SETTABLE_STATUSES:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="Invalid status",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        session = await self._require_session(session_id)
        self._ensure_owner_or_admin(session, actor, "Not authorized to update this session")

        if session.status in SessionState.locked_states():
            raise AppError(
                errcode=AppErrorCode.E_INVALID_STATE,
                errmesg=f"Cannot change status of a {session.status} session",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        await self.update_session_state(session, target)

        refunded = 0
        if target == SessionState.CANCELLED:
            refunded = await self._booking.refund_bookings(session)

        return SessionStatusResponse(
            session=await self._to_response(session),
            refunded_count=refunded,
        )
