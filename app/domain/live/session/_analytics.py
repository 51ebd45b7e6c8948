"""Session analytics derived from the stored roster, ratings and engagement records."""

import math
from collections import Counter

from app.schemas import Session
from app.shared.utils import round_half_up

from ...utils.actor import Actor
from ._base import BaseService
from .session_models import (
    DropoffPoint,
    EngagementStats,
    ParticipantStats,
    RatingStats,
    SessionAnalytics,
    SessionAnalyticsResponse,
    TimeAnalytics,
)

# Attendees who watched at least this share of the scheduled duration count as completed
COMPLETION_RATIO = 0.8
# Minimum share of attendees (percent) whose recorded duration ends in a minute to flag it
DROPOFF_THRESHOLD_PERCENT = 5


def _minutes_label(minutes: int) -> str:
    return f"{minutes} minutes"


def compute_session_analytics(session: Session) -> SessionAnalytics:
    """
    Aggregate a loaded session into participant, rating, time and engagement figures.

    Dropoff minutes are bucketed from each participant's accumulated watch
    duration, not from the minute of the session at which they left.
    """
    participants = list(session.participants.values())
    attended = [p for p in participants if p.has_joined]
    completion_seconds = session.duration * 60 * COMPLETION_RATIO
    completed = [p for p in attended if p.duration and p.duration >= completion_seconds]

    distribution = {str(value): 0 for value in range(1, 6)}
    for entry in session.ratings.values():
        bucket = math.floor(entry.rating)
        if 1 <= bucket <= 5:
            distribution[str(bucket)] += 1

    messages = session.messages
    engagement = EngagementStats(
        chat_messages=len(messages),
        questions=sum(1 for m in messages if "?" in m.message),
        reactions=len(session.reactions),
    )

    buckets = Counter(p.duration // 60 for p in attended if p.duration)
    dropoff_points: list[DropoffPoint] = []
    for minute in range(1, session.duration + 1):
        left = buckets.get(minute, 0)
        if not left:
            continue
        percentage = int(round_half_up(left / len(attended) * 100))
        if percentage >= DROPOFF_THRESHOLD_PERCENT:
            dropoff_points.append(
                DropoffPoint(minute=minute, time=_minutes_label(minute), percentage=percentage)
            )

    watched_minutes = [p.duration / 60 for p in participants if p.duration]
    average_view = int(round_half_up(sum(watched_minutes) / len(watched_minutes))) if watched_minutes else 0
    peak = int(round_half_up(session.duration / 3))

    return SessionAnalytics(
        participants=ParticipantStats(
            registered=len(participants),
            attended=len(attended),
            completed=len(completed),
        ),
        ratings=RatingStats(
            average=session.average_rating,
            total=len(session.ratings),
            distribution=distribution,
        ),
        time_analytics=TimeAnalytics(
            peak_attendance_minutes=peak,
            peak_attendance=_minutes_label(peak),
            average_view_time_minutes=average_view,
            average_view_time=_minutes_label(average_view),
            dropoff_points=dropoff_points,
        ),
        engagement=engagement,
    )


class AnalyticsOperations(BaseService):
    """Read-side analytics for session owners."""

    async def get_session_analytics(
        self,
        session_id: str,
        actor: Actor,
    ) -> SessionAnalyticsResponse:
        session = await self._require_session(session_id)
        self._ensure_owner_or_admin(session, actor, "Not authorized to view analytics for this session")

        return SessionAnalyticsResponse(
            session=await self._to_response(session),
            analytics=compute_session_analytics(session),
        )
