"""Booking, refund and rating operations."""

from beanie.odm.operators.update.array import Pull, Push
from beanie.odm.operators.update.general import Inc, Set
from loguru import logger

from app.schemas import Session, SessionState, User
from app.schemas.session import Participant, SessionRating
from app.schemas.user import BookedSession, CompletedSession
from app.shared.utils import round_half_up, utc_now
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode, bad_request

from ._base import BaseService
from .session_models import BookingResponse, RateSessionResponse


def average_rating(ratings: list[int]) -> float:
    """Arithmetic mean rounded half-up to one decimal; 0 when there are no ratings."""
    if not ratings:
        return 0
    return round_half_up(sum(ratings) / len(ratings), 1)


class BookingOperations(BaseService):
    """Token debit against session capacity, refunds and ratings."""

    async def book_session(
        self,
        session_id: str,
        user_id: str,
    ) -> BookingResponse:
        """
        Book a session for a user, debiting the session's token cost.

        The user debit is a single conditional update (enough tokens and no
        existing booking). The roster append that follows runs under the
        session version check; if it fails, the debit is reversed before the
        error is raised.

        Returns BookingResponse with the remaining token balance.
        Raises AppError when the booking is not allowed.
        """
        session = await self._require_session(session_id)
        user = await self._require_user(user_id)

        now = utc_now()
        if session.scheduled_at < now or session.status == SessionState.COMPLETED:
            raise bad_request(AppErrorCode.E_INVALID_STATE, "Cannot book past sessions")

        if session.status == SessionState.CANCELLED:
            raise bad_request(AppErrorCode.E_INVALID_STATE, "This session has been cancelled")

        if user.has_booked(session_id):
            raise bad_request(AppErrorCode.E_SESSION_ALREADY_BOOKED, "Session already booked")

        if session.is_full():
            raise bad_request(AppErrorCode.E_SESSION_FULL, "Session is full")

        cost = session.token_cost
        if user.tokens < cost:
            raise bad_request(AppErrorCode.E_INSUFFICIENT_TOKENS, "Insufficient tokens")

        booking = BookedSession(session_id=session_id, booked_at=now)
        result = await User.find(
            User.user_id == user_id,
            User.tokens >= cost,
            {"booked_sessions.session_id": {"$ne": session_id}},
        ).update(
            Inc({User.tokens: -cost}),
            Push({User.booked_sessions: booking.model_dump()}),
            Set({User.updated_at: now}),
        )

        if not result or result.modified_count == 0:
            # Lost a race against another booking or token mutation
            fresh_user = await self._require_user(user_id)
            if fresh_user.has_booked(session_id):
                raise bad_request(AppErrorCode.E_SESSION_ALREADY_BOOKED, "Session already booked")
            raise bad_request(AppErrorCode.E_INSUFFICIENT_TOKENS, "Insufficient tokens")

        def add_participant(s: Session) -> None:
            if user_id in s.participants:
                return
            if s.status == SessionState.CANCELLED:
                raise bad_request(AppErrorCode.E_INVALID_STATE, "This session has been cancelled")
            if s.is_full():
                raise bad_request(AppErrorCode.E_SESSION_FULL, "Session is full")
            s.participants[user_id] = Participant(user_id=user_id)
            s.updated_at = now

        try:
            await session.mutate_with_version_check(add_participant, fields=["participants", "updated_at"])
        except AppError:
            logger.warning(f"Roster append failed for {user_id} on {session_id}, reverting token debit")
            await self._credit_booking(user_id, session_id, cost)
            raise

        fresh_user = await self._require_user(user_id)
        logger.info(f"User {user_id} booked session {session_id} for {cost} tokens")

        return BookingResponse(session_id=session_id, tokens=fresh_user.tokens)

    async def _credit_booking(self, user_id: str, session_id: str, amount: int) -> bool:
        """Give back `amount` tokens and drop the booking, if the booking still exists."""
        result = await User.find(
            User.user_id == user_id,
            {"booked_sessions.session_id": session_id},
        ).update(
            Inc({User.tokens: amount}),
            Pull({User.booked_sessions: {"session_id": session_id}}),
            Set({User.updated_at: utc_now()}),
        )
        return bool(result and result.modified_count > 0)

    async def refund_bookings(self, session: Session) -> int:
        """
        Credit the token cost back to every user holding a booking for the session.

        Each credit is conditional on the booking still being present, so
        running the refund twice never pays a user twice.

        Returns the number of users refunded.
        """
        holders = await User.find({"booked_sessions.session_id": session.session_id}).to_list()

        refunded = 0
        for holder in holders:
            if await self._credit_booking(holder.user_id, session.session_id, session.token_cost):
                refunded += 1

        logger.info(
            f"Refunded {refunded} booking(s) of {session.token_cost} token(s) for session {session.session_id}"
        )
        return refunded

    async def rate_session(
        self,
        session_id: str,
        user_id: str,
        rating: int | None,
        feedback: str | None = None,
    ) -> RateSessionResponse:
        """
        Rate a completed session. Resubmission overwrites the user's previous rating.

        Recomputes the session average and the trainer's aggregate rating.
        """
        if rating is None or not 1 <= rating <= 5:
            raise bad_request(AppErrorCode.E_INVALID_REQUEST, "Rating must be between 1 and 5")

        session = await self._require_session(session_id)
        await self._require_user(user_id)

        if session.status != SessionState.COMPLETED:
            raise bad_request(AppErrorCode.E_INVALID_STATE, "Can only rate completed sessions")

        if user_id not in session.participants:
            raise AppError(
                errcode=AppErrorCode.E_SESSION_FORBIDDEN,
                errmesg="You must participate in the session to rate it",
                status_code=HttpStatusCode.FORBIDDEN,
            )

        now = utc_now()

        def apply_rating(s: Session) -> bool:
            existing = s.ratings.get(user_id)
            if existing:
                existing.rating = rating
                if feedback:
                    existing.feedback = feedback
                existing.created_at = now
            else:
                s.ratings[user_id] = SessionRating(
                    user_id=user_id,
                    rating=rating,
                    feedback=feedback,
                    created_at=now,
                )
            s.average_rating = average_rating([r.rating for r in s.ratings.values()])
            s.updated_at = now
            return existing is None

        is_first = await session.mutate_with_version_check(
            apply_rating,
            fields=["ratings", "average_rating", "updated_at"],
        )

        if is_first:
            completed = CompletedSession(
                session_id=session_id,
                completed_at=now,
                rating=rating,
                feedback=feedback,
            )
            await User.find(
                User.user_id == user_id,
                {"completed_sessions.session_id": {"$ne": session_id}},
            ).update(
                Push({User.completed_sessions: completed.model_dump()}),
                Set({User.updated_at: now}),
            )

        await self._recompute_trainer_rating(session.trainer_id)

        logger.info(f"User {user_id} rated session {session_id}: {rating}")

        return RateSessionResponse(
            session_id=session_id,
            rating=rating,
            session_rating=session.average_rating,
        )

    async def _recompute_trainer_rating(self, trainer_id: str) -> None:
        """Full rescan of the trainer's sessions; writes rating and total_ratings."""
        sessions = await Session.find(Session.trainer_id == trainer_id).to_list()

        values = [r.rating for s in sessions for r in s.ratings.values()]
        if not values:
            return

        await User.find(
            User.user_id == trainer_id,
            {"trainer_profile": {"$ne": None}},
        ).update(
            Set(
                {
                    "trainer_profile.rating": average_rating(values),
                    "trainer_profile.total_ratings": len(values),
                    User.updated_at: utc_now(),
                }
            )
        )
