"""Stream orchestration: host/viewer credentials, join/leave tracking and live engagement."""

from datetime import timedelta

from beanie.operators import In
from loguru import logger

from app.schemas import ReactionType, Session, SessionState, User
from app.schemas.session import ChatMessage, Participant, Reaction
from app.services.integrations.rtc_service import RtcCredential
from app.shared.utils import utc_now
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode, forbidden, invalid_state

from ...utils.actor import Actor
from ...utils.idgen import new_message_id, new_reaction_id
from ._base import BaseService
from .session_models import (
    ChatMessageResponse,
    ReactionResponse,
    StreamCredential,
    StreamDetailsResponse,
    StreamEndResponse,
    StreamLeaveResponse,
    StreamParticipantResponse,
    StreamParticipantsResponse,
    StreamSessionData,
)

EMBEDDED_FIELDS = ["participants", "updated_at"]


def _to_stream_credential(credential: RtcCredential) -> StreamCredential:
    return StreamCredential(
        app_id=credential.app_id,
        channel_name=credential.channel_name,
        token=credential.token,
        uid=credential.uid,
    )


class StreamOperations(BaseService):
    """Live stream lifecycle on top of the RTC collaborator."""

    @property
    def _host_ttl(self) -> timedelta:
        return timedelta(hours=self._cfg.STREAM_HOST_TOKEN_TTL_HOURS)

    @property
    def _viewer_ttl(self) -> timedelta:
        return timedelta(hours=self._cfg.STREAM_VIEWER_TOKEN_TTL_HOURS)

    async def _session_data(self, session: Session, include_started: bool = True) -> StreamSessionData:
        trainer = await User.find_one(User.user_id == session.trainer_id)
        return StreamSessionData(
            title=session.title,
            trainer=trainer.full_name if trainer else None,
            duration=session.duration,
            started_at=session.streaming.started_at if include_started else None,
        )

    async def _host_credential(self, session: Session, uid: str) -> StreamCredential:
        credential = await self.rtc.mint_host_credential(session.channel_name, uid, self._host_ttl)
        return _to_stream_credential(credential)

    async def _viewer_credential(self, session: Session, uid: str) -> StreamCredential:
        credential = await self.rtc.mint_viewer_credential(session.channel_name, uid, self._viewer_ttl)
        return _to_stream_credential(credential)

    async def _has_booking(self, session_id: str, user_id: str) -> bool:
        user = await User.find_one(User.user_id == user_id)
        return bool(user and user.has_booked(session_id))

    async def get_stream_details(
        self,
        session_id: str,
        actor: Actor,
    ) -> StreamDetailsResponse:
        """
        Return the stream payload for the caller.

        The owning trainer gets a start hint inside the lead window and a
        fresh host credential once live. Everyone else needs a booking and
        gets a viewer credential once live.
        """
        session = await self._require_session(session_id)
        is_host = actor.has_trainer_role and session.trainer_id == actor.user_id

        if not is_host and not await self._has_booking(session_id, actor.user_id):
            raise forbidden("You must book this session to join")

        if session.status == SessionState.CANCELLED:
            raise invalid_state("This session has been cancelled")
        if session.status == SessionState.COMPLETED:
            raise invalid_state("This session has ended")

        buffer_minutes = self._cfg.STREAM_START_BUFFER_MINUTES

        if is_host:
            if session.status == SessionState.LIVE:
                return StreamDetailsResponse(
                    status=SessionState.LIVE,
                    is_host=True,
                    session_data=await self._session_data(session),
                    stream_data=await self._host_credential(session, actor.user_id),
                )

            can_start_at = session.scheduled_at - timedelta(minutes=buffer_minutes)
            if utc_now() >= can_start_at:
                return StreamDetailsResponse(
                    status=SessionState.SCHEDULED,
                    can_start=True,
                    scheduled_at=session.scheduled_at,
                    session_data=await self._session_data(session, include_started=False),
                )

            raise invalid_state(
                f"Stream can be started {buffer_minutes} minutes before scheduled time "
                f"(can start at {can_start_at.isoformat()})"
            )

        if session.status == SessionState.SCHEDULED:
            raise invalid_state("Stream has not started yet")

        return StreamDetailsResponse(
            status=SessionState.LIVE,
            is_host=False,
            session_data=await self._session_data(session),
            stream_data=await self._viewer_credential(session, actor.user_id),
        )

    async def start_stream(
        self,
        session_id: str,
        actor: Actor,
    ) -> StreamDetailsResponse:
        """
        Move a scheduled session to live and hand the trainer a host credential.

        Raises AppError if the caller is not the owning trainer or the session
        cannot be started from its current state.
        """
        session = await self._require_session(session_id)

        if session.trainer_id != actor.user_id:
            raise forbidden("Only the assigned trainer can start this stream")

        if session.status == SessionState.LIVE:
            raise invalid_state("Session is already live")
        if session.status in (SessionState.CANCELLED, SessionState.COMPLETED):
            raise invalid_state(f"Cannot start a {session.status} session")

        stream_data = await self._host_credential(session, actor.user_id)

        now = utc_now()
        streaming = session.streaming.model_copy(
            update={"channel_name": session.channel_name, "started_at": now}
        )
        await self.update_session_state(
            session,
            SessionState.LIVE,
            extra_updates={Session.streaming: streaming},
        )

        logger.info(f"Stream started for session {session_id} on channel {session.channel_name}")

        return StreamDetailsResponse(
            status=SessionState.LIVE,
            is_host=True,
            session_data=await self._session_data(session),
            stream_data=stream_data,
        )

    async def end_stream(
        self,
        session_id: str,
        actor: Actor,
    ) -> StreamEndResponse:
        """End a live session; stops the recording when one was started."""
        session = await self._require_session(session_id)

        if session.trainer_id != actor.user_id:
            raise forbidden("Only the assigned trainer can end this stream")

        if session.status != SessionState.LIVE:
            raise invalid_state("Session is not currently live")

        streaming = session.streaming
        if streaming.resource_id and streaming.sid:
            await self.rtc.stop_recording(
                streaming.channel_name or session.channel_name,
                streaming.sid,
                streaming.resource_id,
            )

        now = utc_now()
        await self.update_session_state(
            session,
            SessionState.COMPLETED,
            extra_updates={Session.streaming: streaming.model_copy(update={"ended_at": now})},
        )

        logger.info(f"Stream ended for session {session_id}")

        return StreamEndResponse(session_id=session_id, status=SessionState.COMPLETED, ended_at=now)

    async def join_stream(
        self,
        session_id: str,
        actor: Actor,
    ) -> StreamDetailsResponse:
        """
        Join a live session.

        The owning trainer receives a host credential and is not tracked as a
        participant. Booking holders get their join recorded (a rejoin clears
        the previous leave time) and receive a viewer credential.
        """
        session = await self._require_session(session_id)

        if session.status != SessionState.LIVE:
            raise invalid_state("Session is not currently live")

        is_owner = session.trainer_id == actor.user_id
        if is_owner:
            return StreamDetailsResponse(
                status=SessionState.LIVE,
                is_host=True,
                session_data=await self._session_data(session),
                stream_data=await self._host_credential(session, actor.user_id),
            )

        if not await self._has_booking(session_id, actor.user_id):
            raise forbidden("You must book this session to join")

        now = utc_now()

        def record_join(s: Session) -> None:
            participant = s.participants.get(actor.user_id)
            if participant is None:
                s.participants[actor.user_id] = Participant(user_id=actor.user_id, joined_at=now)
            else:
                participant.joined_at = now
                participant.leave_at = None
            s.updated_at = now

        await session.mutate_with_version_check(record_join, fields=EMBEDDED_FIELDS)
        logger.info(f"User {actor.user_id} joined stream {session_id}")

        return StreamDetailsResponse(
            status=SessionState.LIVE,
            is_host=False,
            session_data=await self._session_data(session),
            stream_data=await self._viewer_credential(session, actor.user_id),
        )

    async def leave_stream(
        self,
        session_id: str,
        actor: Actor,
    ) -> StreamLeaveResponse:
        """
        Record a leave and add the time since the latest join to the
        participant's accumulated duration.

        Leaving without an active join changes nothing.
        """
        session = await self._require_session(session_id)
        now = utc_now()

        def record_leave(s: Session) -> Participant | None:
            participant = s.participants.get(actor.user_id)
            if participant is None or not participant.is_active:
                return participant
            elapsed = int((now - participant.joined_at).total_seconds())
            participant.leave_at = now
            participant.duration += max(elapsed, 0)
            s.updated_at = now
            return participant

        participant = session.participants.get(actor.user_id)
        if participant is None or not participant.is_active:
            return StreamLeaveResponse(
                session_id=session_id,
                left_at=participant.leave_at if participant else None,
                duration=participant.duration if participant else 0,
            )

        participant = await session.mutate_with_version_check(record_leave, fields=EMBEDDED_FIELDS)
        logger.info(f"User {actor.user_id} left stream {session_id}")

        return StreamLeaveResponse(
            session_id=session_id,
            left_at=participant.leave_at if participant else None,
            duration=participant.duration if participant else 0,
        )

    async def get_stream_participants(
        self,
        session_id: str,
        actor: Actor,
    ) -> StreamParticipantsResponse:
        """
        List participants who joined the stream.

        `active` comes from the RTC channel membership when the provider is
        configured, otherwise (or when the provider call fails) from the
        stored join/leave times.
        """
        session = await self._require_session(session_id)

        if not (actor.has_trainer_role or session.trainer_id == actor.user_id):
            raise forbidden("Not authorized to view participant details")

        joined = [p for p in session.participants.values() if p.has_joined]

        active_uids: set[str] | None = None
        channel = session.streaming.channel_name
        if channel and self.rtc.is_configured:
            try:
                members = await self.rtc.list_channel_members(channel)
                active_uids = {m.uid for m in members}
            except Exception as e:
                logger.warning(f"Channel membership lookup failed for {channel}, using stored roster: {e}")

        users = await User.find(In(User.user_id, [p.user_id for p in joined])).to_list() if joined else []
        users_by_id = {u.user_id: u for u in users}

        participants = []
        for p in joined:
            user = users_by_id.get(p.user_id)
            participants.append(
                StreamParticipantResponse(
                    user_id=p.user_id,
                    name=user.full_name if user else None,
                    email=user.email if user else None,
                    profile_picture=user.profile_picture if user else None,
                    joined_at=p.joined_at,
                    duration=p.duration,
                    active=p.user_id in active_uids if active_uids is not None else p.is_active,
                )
            )

        return StreamParticipantsResponse(
            participants=participants,
            total_count=len(participants),
            active_count=sum(1 for p in participants if p.active),
        )

    def _ensure_can_engage(self, session: Session, actor: Actor) -> None:
        if session.status != SessionState.LIVE:
            raise invalid_state("Session is not currently live")
        if session.trainer_id != actor.user_id and actor.user_id not in session.participants:
            raise forbidden("You must book this session to participate")

    async def send_message(
        self,
        session_id: str,
        actor: Actor,
        message: str | None,
    ) -> ChatMessageResponse:
        """Append a chat message to a live session."""
        text = (message or "").strip()
        if not text:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="Message content is required",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        session = await self._require_session(session_id)
        self._ensure_can_engage(session, actor)

        chat = ChatMessage(
            message_id=new_message_id(),
            user_id=actor.user_id,
            message=text,
            timestamp=utc_now(),
        )

        def add_message(s: Session) -> None:
            s.messages.append(chat)
            participant = s.participants.get(actor.user_id)
            if participant:
                participant.messages += 1
            s.updated_at = chat.timestamp

        await session.mutate_with_version_check(add_message, fields=["messages", *EMBEDDED_FIELDS])

        return ChatMessageResponse(**chat.model_dump())

    async def send_reaction(
        self,
        session_id: str,
        actor: Actor,
        reaction_type: ReactionType | str | None,
    ) -> ReactionResponse:
        """Append a reaction to a live session."""
        try:
            kind = ReactionType(reaction_type)
        except ValueError:
            kind = None
        if kind is None:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="Valid reaction type is required",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        session = await self._require_session(session_id)
        self._ensure_can_engage(session, actor)

        reaction = Reaction(
            reaction_id=new_reaction_id(),
            user_id=actor.user_id,
            type=kind,
            timestamp=utc_now(),
        )

        def add_reaction(s: Session) -> None:
            s.reactions.append(reaction)
            participant = s.participants.get(actor.user_id)
            if participant:
                participant.reactions += 1
            s.updated_at = reaction.timestamp

        await session.mutate_with_version_check(add_reaction, fields=["reactions", *EMBEDDED_FIELDS])

        return ReactionResponse(**reaction.model_dump())
