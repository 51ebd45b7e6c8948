"""Tests for StreamOperations: credentials, join/leave tracking and live engagement."""

from datetime import timedelta
from unittest.mock import patch

import pytest

from app.domain.live.session._booking import BookingOperations
from app.domain.live.session._stream import StreamOperations
from app.schemas import ReactionType, Session, SessionState
from app.services.integrations.rtc_service import ChannelMember
from app.shared.utils import utc_now
from app.utils.app_errors import AppError, AppErrorCode
from tests.fixtures.factories import actor_of, create_session, create_trainer, create_user


@pytest.fixture
def ops(fake_rtc) -> StreamOperations:
    return StreamOperations(rtc=fake_rtc)


@pytest.fixture
def booking(fake_rtc) -> BookingOperations:
    return BookingOperations(rtc=fake_rtc)


async def _live_session_with_member(ops, booking):
    trainer = await create_trainer()
    member = await create_user(tokens=1)
    session = await create_session(trainer.user_id, starts_in=timedelta(minutes=5))
    await booking.book_session(session.session_id, member.user_id)
    await ops.start_stream(session.session_id, actor_of(trainer))
    return trainer, member, session


@pytest.mark.usefixtures("clear_collections")
class TestGetStreamDetails:
    """Tests for StreamOperations.get_stream_details method."""

    async def test_host_inside_lead_window_can_start(self, beanie_db, ops):
        trainer = await create_trainer()
        session = await create_session(trainer.user_id, starts_in=timedelta(minutes=10))

        result = await ops.get_stream_details(session.session_id, actor_of(trainer))

        assert result.can_start is True
        assert result.status == SessionState.SCHEDULED
        assert result.stream_data is None
        assert result.session_data.trainer == "Jane Coach"

    async def test_host_too_early(self, beanie_db, ops):
        trainer = await create_trainer()
        session = await create_session(trainer.user_id, starts_in=timedelta(hours=2))

        with pytest.raises(AppError) as exc_info:
            await ops.get_stream_details(session.session_id, actor_of(trainer))

        assert exc_info.value.errcode == AppErrorCode.E_INVALID_STATE
        assert exc_info.value.errmesg.startswith("Stream can be started 15 minutes before scheduled time")

    async def test_viewer_without_booking_forbidden(self, beanie_db, ops):
        trainer = await create_trainer()
        outsider = await create_user()
        session = await create_session(trainer.user_id)

        with pytest.raises(AppError) as exc_info:
            await ops.get_stream_details(session.session_id, actor_of(outsider))

        assert exc_info.value.status_code == 403
        assert exc_info.value.errmesg == "You must book this session to join"

    async def test_viewer_before_start(self, beanie_db, ops, booking):
        trainer = await create_trainer()
        member = await create_user(tokens=1)
        session = await create_session(trainer.user_id)
        await booking.book_session(session.session_id, member.user_id)

        with pytest.raises(AppError) as exc_info:
            await ops.get_stream_details(session.session_id, actor_of(member))

        assert exc_info.value.errmesg == "Stream has not started yet"

    async def test_viewer_gets_viewer_credential_when_live(self, beanie_db, ops, booking, fake_rtc):
        trainer, member, session = await _live_session_with_member(ops, booking)

        result = await ops.get_stream_details(session.session_id, actor_of(member))

        assert result.is_host is False
        assert result.stream_data.uid == member.user_id
        assert result.stream_data.channel_name == f"session_{session.session_id}"
        fake_rtc.mint_viewer_credential.assert_called()

    async def test_cancelled_session(self, beanie_db, ops):
        trainer = await create_trainer()
        session = await create_session(trainer.user_id, status=SessionState.CANCELLED)

        with pytest.raises(AppError) as exc_info:
            await ops.get_stream_details(session.session_id, actor_of(trainer))

        assert exc_info.value.errmesg == "This session has been cancelled"


@pytest.mark.usefixtures("clear_collections")
class TestStartEndStream:
    async def test_start_moves_to_live(self, beanie_db, ops, fake_rtc):
        # Arrange
        trainer = await create_trainer()
        session = await create_session(trainer.user_id, starts_in=timedelta(minutes=5))

        # Act
        result = await ops.start_stream(session.session_id, actor_of(trainer))

        # Assert
        assert result.status == SessionState.LIVE
        assert result.is_host is True
        assert result.stream_data.token == f"token-{trainer.user_id}"
        fake_rtc.mint_host_credential.assert_called_once()

        saved = await Session.find_one(Session.session_id == session.session_id)
        assert saved.status == SessionState.LIVE
        assert saved.streaming.channel_name == f"session_{session.session_id}"
        assert saved.streaming.started_at is not None

    async def test_only_owner_can_start(self, beanie_db, ops):
        trainer = await create_trainer()
        other = await create_trainer()
        session = await create_session(trainer.user_id)

        with pytest.raises(AppError) as exc_info:
            await ops.start_stream(session.session_id, actor_of(other))

        assert exc_info.value.errmesg == "Only the assigned trainer can start this stream"

    async def test_start_twice(self, beanie_db, ops):
        trainer = await create_trainer()
        session = await create_session(trainer.user_id)
        await ops.start_stream(session.session_id, actor_of(trainer))

        with pytest.raises(AppError) as exc_info:
            await ops.start_stream(session.session_id, actor_of(trainer))

        assert exc_info.value.errmesg == "Session is already live"

    async def test_end_completes_session(self, beanie_db, ops, fake_rtc):
        # Arrange
        trainer = await create_trainer()
        session = await create_session(trainer.user_id)
        await ops.start_stream(session.session_id, actor_of(trainer))

        # Act
        result = await ops.end_stream(session.session_id, actor_of(trainer))

        # Assert
        assert result.status == SessionState.COMPLETED
        saved = await Session.find_one(Session.session_id == session.session_id)
        assert saved.status == SessionState.COMPLETED
        assert saved.streaming.ended_at is not None
        fake_rtc.stop_recording.assert_not_called()

    async def test_end_scheduled_session(self, beanie_db, ops):
        trainer = await create_trainer()
        session = await create_session(trainer.user_id)

        with pytest.raises(AppError) as exc_info:
            await ops.end_stream(session.session_id, actor_of(trainer))

        assert exc_info.value.errmesg == "Session is not currently live"


@pytest.mark.usefixtures("clear_collections")
class TestJoinLeave:
    """Tests for join_stream / leave_stream tracking."""

    async def test_join_records_participant(self, beanie_db, ops, booking):
        _, member, session = await _live_session_with_member(ops, booking)

        result = await ops.join_stream(session.session_id, actor_of(member))

        assert result.is_host is False
        saved = await Session.find_one(Session.session_id == session.session_id)
        participant = saved.participants[member.user_id]
        assert participant.joined_at is not None
        assert participant.is_active

    async def test_trainer_join_is_not_tracked(self, beanie_db, ops, booking):
        trainer, member, session = await _live_session_with_member(ops, booking)

        result = await ops.join_stream(session.session_id, actor_of(trainer))

        assert result.is_host is True
        saved = await Session.find_one(Session.session_id == session.session_id)
        assert trainer.user_id not in saved.participants

    async def test_join_without_booking(self, beanie_db, ops, booking):
        _, _, session = await _live_session_with_member(ops, booking)
        outsider = await create_user()

        with pytest.raises(AppError) as exc_info:
            await ops.join_stream(session.session_id, actor_of(outsider))

        assert exc_info.value.status_code == 403

    async def test_leave_accumulates_duration(self, beanie_db, ops, booking):
        # Arrange
        _, member, session = await _live_session_with_member(ops, booking)
        await ops.join_stream(session.session_id, actor_of(member))
        later = utc_now() + timedelta(minutes=10)

        # Act
        with patch("app.domain.live.session._stream.utc_now", return_value=later):
            result = await ops.leave_stream(session.session_id, actor_of(member))

        # Assert
        assert 595 <= result.duration <= 601
        saved = await Session.find_one(Session.session_id == session.session_id)
        assert not saved.participants[member.user_id].is_active

    async def test_rejoin_accumulates_duration_across_intervals(self, beanie_db, ops, booking):
        # Arrange
        _, member, session = await _live_session_with_member(ops, booking)
        t0 = utc_now().replace(microsecond=0)
        steps = [
            (ops.join_stream, t0),
            (ops.leave_stream, t0 + timedelta(minutes=5)),
            (ops.join_stream, t0 + timedelta(minutes=10)),
            (ops.leave_stream, t0 + timedelta(minutes=13)),
        ]

        # Act
        result = None
        for step, at in steps:
            with patch("app.domain.live.session._stream.utc_now", return_value=at):
                result = await step(session.session_id, actor_of(member))

        # Assert
        assert result.duration == 480
        saved = await Session.find_one(Session.session_id == session.session_id)
        assert saved.participants[member.user_id].duration == 480
        assert not saved.participants[member.user_id].is_active

    async def test_second_leave_is_not_counted(self, beanie_db, ops, booking):
        _, member, session = await _live_session_with_member(ops, booking)
        await ops.join_stream(session.session_id, actor_of(member))
        first = await ops.leave_stream(session.session_id, actor_of(member))

        second = await ops.leave_stream(session.session_id, actor_of(member))

        assert second.duration == first.duration

    async def test_leave_without_join(self, beanie_db, ops, booking):
        _, member, session = await _live_session_with_member(ops, booking)

        result = await ops.leave_stream(session.session_id, actor_of(member))

        assert result.duration == 0
        assert result.left_at is None


@pytest.mark.usefixtures("clear_collections")
class TestParticipants:
    async def test_lists_joined_participants_from_roster(self, beanie_db, ops, booking):
        # Arrange
        trainer, member, session = await _live_session_with_member(ops, booking)
        idle = await create_user(tokens=1)
        await Session.find(Session.session_id == session.session_id).update(
            {"$set": {f"participants.{idle.user_id}": {"user_id": idle.user_id}}}
        )
        await ops.join_stream(session.session_id, actor_of(member))

        # Act
        result = await ops.get_stream_participants(session.session_id, actor_of(trainer))

        # Assert
        assert result.total_count == 1
        assert result.active_count == 1
        assert result.participants[0].user_id == member.user_id
        assert result.participants[0].name == "Test User"

    async def test_rtc_membership_decides_active(self, beanie_db, ops, booking, fake_rtc):
        trainer, member, session = await _live_session_with_member(ops, booking)
        await ops.join_stream(session.session_id, actor_of(member))
        fake_rtc.is_configured = True
        fake_rtc.list_channel_members.return_value = [ChannelMember(uid=trainer.user_id)]

        result = await ops.get_stream_participants(session.session_id, actor_of(trainer))

        assert result.total_count == 1
        assert result.active_count == 0

    async def test_rtc_failure_falls_back_to_roster(self, beanie_db, ops, booking, fake_rtc):
        trainer, member, session = await _live_session_with_member(ops, booking)
        await ops.join_stream(session.session_id, actor_of(member))
        fake_rtc.is_configured = True
        fake_rtc.list_channel_members.side_effect = RuntimeError("rtc down")

        result = await ops.get_stream_participants(session.session_id, actor_of(trainer))

        assert result.active_count == 1

    async def test_member_cannot_list(self, beanie_db, ops, booking):
        _, member, session = await _live_session_with_member(ops, booking)

        with pytest.raises(AppError) as exc_info:
            await ops.get_stream_participants(session.session_id, actor_of(member))

        assert exc_info.value.errmesg == "Not authorized to view participant details"


@pytest.mark.usefixtures("clear_collections")
class TestEngagement:
    async def test_message_bumps_counter(self, beanie_db, ops, booking):
        # Arrange
        _, member, session = await _live_session_with_member(ops, booking)

        # Act
        result = await ops.send_message(session.session_id, actor_of(member), "  Any modifications?  ")

        # Assert
        assert result.message == "Any modifications?"
        assert result.message_id.startswith("ms_")
        saved = await Session.find_one(Session.session_id == session.session_id)
        assert len(saved.messages) == 1
        assert saved.participants[member.user_id].messages == 1

    async def test_empty_message(self, beanie_db, ops):
        member = await create_user()

        with pytest.raises(AppError) as exc_info:
            await ops.send_message("se_any", actor_of(member), "   ")

        assert exc_info.value.errmesg == "Message content is required"

    async def test_reaction_bumps_counter(self, beanie_db, ops, booking):
        _, member, session = await _live_session_with_member(ops, booking)

        result = await ops.send_reaction(session.session_id, actor_of(member), "fire")

        assert result.type == ReactionType.FIRE
        saved = await Session.find_one(Session.session_id == session.session_id)
        assert saved.participants[member.user_id].reactions == 1

    @pytest.mark.parametrize("value", [None, "", "boo"])
    async def test_invalid_reaction(self, beanie_db, ops, value):
        member = await create_user()

        with pytest.raises(AppError) as exc_info:
            await ops.send_reaction("se_any", actor_of(member), value)

        assert exc_info.value.errmesg == "Valid reaction type is required"

    async def test_outsider_cannot_message(self, beanie_db, ops, booking):
        _, _, session = await _live_session_with_member(ops, booking)
        outsider = await create_user()

        with pytest.raises(AppError) as exc_info:
            await ops.send_message(session.session_id, actor_of(outsider), "hi")

        assert exc_info.value.errmesg == "You must book this session to participate"

    async def test_message_requires_live(self, beanie_db, ops, booking):
        trainer = await create_trainer()
        session = await create_session(trainer.user_id)

        with pytest.raises(AppError) as exc_info:
            await ops.send_message(session.session_id, actor_of(trainer), "hello")

        assert exc_info.value.errmesg == "Session is not currently live"
