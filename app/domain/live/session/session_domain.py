"""Session domain service - sessions, bookings, streams and analytics with Beanie ODM."""

from app.schemas import ReactionType, SessionState
from app.services.integrations.rtc_service import RtcService, get_rtc_service

from ...utils.actor import Actor
from ._analytics import AnalyticsOperations
from ._booking import BookingOperations
from ._sessions import SessionOperations
from ._stream import StreamOperations
from .session_models import (
    BookingResponse,
    ChatMessageResponse,
    RateSessionResponse,
    ReactionResponse,
    SessionAnalyticsResponse,
    SessionCreateParams,
    SessionListFilters,
    SessionListResponse,
    SessionResponse,
    SessionStatusResponse,
    SessionUpdateParams,
    StreamDetailsResponse,
    StreamEndResponse,
    StreamLeaveResponse,
    StreamParticipantsResponse,
)


class SessionService:
    """Session lifecycle service."""

    def __init__(self, rtc: RtcService | None = None):
        rtc = rtc or get_rtc_service()
        self._booking = BookingOperations(rtc=rtc)
        self._sessions = SessionOperations(rtc=rtc, booking=self._booking)
        self._stream = StreamOperations(rtc=rtc)
        self._analytics = AnalyticsOperations(rtc=rtc)

    # ==================== SESSIONS ====================

    async def create_session(
        self,
        params: SessionCreateParams,
    ) -> SessionResponse:
        """Create a new scheduled session."""
        return await self._sessions.create_session(params=params)

    async def get_session(
        self,
        session_id: str,
    ) -> SessionResponse:
        """Get a single session by session_id.

        Raises AppError if session not found.
        """
        return await self._sessions.get_session(session_id=session_id)

    async def list_sessions(
        self,
        filters: SessionListFilters | None = None,
    ) -> SessionListResponse:
        return await self._sessions.list_sessions(filters=filters)

    async def list_sessions_by_trainer(
        self,
        trainer_id: str,
    ) -> SessionListResponse:
        return await self._sessions.list_sessions_by_trainer(trainer_id=trainer_id)

    async def update_session(
        self,
        session_id: str,
        actor: Actor,
        params: SessionUpdateParams,
    ) -> SessionResponse:
        """Update session descriptor fields.

        Raises AppError if the caller is not the owner/admin or the session
        is live or completed.
        """
        return await self._sessions.update_session(session_id=session_id, actor=actor, params=params)

    async def delete_session(
        self,
        session_id: str,
        actor: Actor,
    ) -> int:
        """Delete a session and refund its bookings. Returns the refunded count."""
        return await self._sessions.delete_session(session_id=session_id, actor=actor)

    async def update_status(
        self,
        session_id: str,
        actor: Actor,
        status: SessionState | str,
    ) -> SessionStatusResponse:
        """Set a session to scheduled or cancelled; cancelling refunds bookings."""
        return await self._sessions.update_status(session_id=session_id, actor=actor, status=status)

    # ==================== BOOKING ====================

    async def book_session(
        self,
        session_id: str,
        user_id: str,
    ) -> BookingResponse:
        """Book a session, debiting its token cost.

        Raises AppError if the booking is not allowed.
        """
        return await self._booking.book_session(session_id=session_id, user_id=user_id)

    async def rate_session(
        self,
        session_id: str,
        user_id: str,
        rating: int | None,
        feedback: str | None = None,
    ) -> RateSessionResponse:
        return await self._booking.rate_session(
            session_id=session_id,
            user_id=user_id,
            rating=rating,
            feedback=feedback,
        )

    # ==================== STREAM ====================

    async def get_stream_details(
        self,
        session_id: str,
        actor: Actor,
    ) -> StreamDetailsResponse:
        return await self._stream.get_stream_details(session_id=session_id, actor=actor)

    async def start_stream(
        self,
        session_id: str,
        actor: Actor,
    ) -> StreamDetailsResponse:
        """Move the session to live and return a host credential."""
        return await self._stream.start_stream(session_id=session_id, actor=actor)

    async def end_stream(
        self,
        session_id: str,
        actor: Actor,
    ) -> StreamEndResponse:
        """Move the session to completed."""
        return await self._stream.end_stream(session_id=session_id, actor=actor)

    async def join_stream(
        self,
        session_id: str,
        actor: Actor,
    ) -> StreamDetailsResponse:
        return await self._stream.join_stream(session_id=session_id, actor=actor)

    async def leave_stream(
        self,
        session_id: str,
        actor: Actor,
    ) -> StreamLeaveResponse:
        return await self._stream.leave_stream(session_id=session_id, actor=actor)

    async def get_stream_participants(
        self,
        session_id: str,
        actor: Actor,
    ) -> StreamParticipantsResponse:
        return await self._stream.get_stream_participants(session_id=session_id, actor=actor)

    async def send_message(
        self,
        session_id: str,
        actor: Actor,
        message: str | None,
    ) -> ChatMessageResponse:
        return await self._stream.send_message(session_id=session_id, actor=actor, message=message)

    async def send_reaction(
        self,
        session_id: str,
        actor: Actor,
        reaction_type: ReactionType | str | None,
    ) -> ReactionResponse:
        return await self._stream.send_reaction(
            session_id=session_id,
            actor=actor,
            reaction_type=reaction_type,
        )

    # ==================== ANALYTICS ====================

    async def get_session_analytics(
        self,
        session_id: str,
        actor: Actor,
    ) -> SessionAnalyticsResponse:
        """Owner/admin analytics for a session."""
        return await self._analytics.get_session_analytics(session_id=session_id, actor=actor)
