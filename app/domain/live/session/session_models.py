"""Session domain models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from app.schemas import Difficulty, ReactionType, SessionState
from app.schemas.session import StreamingDetails


class TrainerSummary(BaseModel):
    user_id: str
    first_name: str
    last_name: str
    profile_picture: str | None = None


class ParticipantResponse(BaseModel):
    user_id: str
    joined_at: datetime | None = None
    leave_at: datetime | None = None
    duration: int = 0
    messages: int = 0
    reactions: int = 0


class RatingResponse(BaseModel):
    user_id: str
    rating: int
    feedback: str | None = None
    created_at: datetime


class SessionResponse(BaseModel):
    """Session response model."""

    session_id: str
    trainer_id: str
    trainer: TrainerSummary | None = None

    # Session descriptor fields
    title: str
    description: str
    category: str
    difficulty: Difficulty
    scheduled_at: datetime
    duration: int
    token_cost: int
    max_participants: int
    thumbnail: str | None = None
    equipment_required: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)

    status: SessionState

    participants: list[ParticipantResponse] = Field(default_factory=list)
    ratings: list[RatingResponse] = Field(default_factory=list)
    average_rating: float = 0
    streaming: StreamingDetails = Field(default_factory=StreamingDetails)

    # Timestamps
    created_at: datetime
    updated_at: datetime

    @field_validator("participants", "ratings", mode="before")
    @classmethod
    def _mapping_to_list(cls, v: Any) -> Any:
        # Stored keyed by user_id; exposed in insertion order
        if isinstance(v, dict):
            return list(v.values())
        return v

    @property
    def participant_count(self) -> int:
        return len(self.participants)


class SessionListResponse(BaseModel):
    sessions: list[SessionResponse]


class SessionCreateParams(BaseModel):
    """Parameters for creating a session."""

    trainer_id: str
    title: str
    description: str
    category: str
    difficulty: Difficulty
    scheduled_at: datetime
    duration: int = Field(gt=0)
    token_cost: int = Field(default=1, ge=0)
    max_participants: int = Field(default=0, ge=0)
    thumbnail: str | None = None
    equipment_required: list[str] | None = None
    tags: list[str] | None = None


class SessionUpdateParams(BaseModel):
    """Parameters for updating a session. Status is changed through update_status."""

    title: str | None = None
    description: str | None = None
    category: str | None = None
    difficulty: Difficulty | None = None
    scheduled_at: datetime | None = None
    duration: int | None = Field(default=None, gt=0)
    token_cost: int | None = Field(default=None, ge=0)
    max_participants: int | None = Field(default=None, ge=0)
    thumbnail: str | None = None
    equipment_required: list[str] | None = None
    tags: list[str] | None = None


class SessionListFilters(BaseModel):
    category: str | None = None
    difficulty: Difficulty | None = None
    trainer_id: str | None = None
    status: SessionState | None = None
    search: str | None = None
    upcoming: bool = False


class SessionStatusResponse(BaseModel):
    session: SessionResponse
    refunded_count: int = 0


class BookingResponse(BaseModel):
    session_id: str
    tokens: int


class RatingParams(BaseModel):
    rating: int
    feedback: str | None = None


class RateSessionResponse(BaseModel):
    session_id: str
    rating: int
    session_rating: float


# ==================== STREAM ====================


class StreamSessionData(BaseModel):
    title: str
    trainer: str | None = None
    duration: int
    started_at: datetime | None = None


class StreamCredential(BaseModel):
    app_id: str | None = None
    channel_name: str
    token: str
    uid: str


class StreamDetailsResponse(BaseModel):
    """Payload returned by get_stream_details / start_stream / join_stream."""

    status: SessionState
    is_host: bool = False
    can_start: bool = False
    scheduled_at: datetime | None = None
    session_data: StreamSessionData | None = None
    stream_data: StreamCredential | None = None


class StreamEndResponse(BaseModel):
    session_id: str
    status: SessionState
    ended_at: datetime


class StreamLeaveResponse(BaseModel):
    session_id: str
    left_at: datetime | None = None
    duration: int = 0  # accumulated seconds


class StreamParticipantResponse(BaseModel):
    user_id: str
    name: str | None = None
    email: str | None = None
    profile_picture: str | None = None
    joined_at: datetime | None = None
    duration: int = 0
    active: bool = False


class StreamParticipantsResponse(BaseModel):
    participants: list[StreamParticipantResponse]
    total_count: int
    active_count: int


class ChatMessageResponse(BaseModel):
    message_id: str
    user_id: str
    message: str
    timestamp: datetime


class ReactionResponse(BaseModel):
    reaction_id: str
    user_id: str
    type: ReactionType
    timestamp: datetime


# ==================== ANALYTICS ====================


class ParticipantStats(BaseModel):
    registered: int
    attended: int
    completed: int


class RatingStats(BaseModel):
    average: float
    total: int
    distribution: dict[str, int]  # "1".."5"


class DropoffPoint(BaseModel):
    minute: int
    time: str
    percentage: int


class TimeAnalytics(BaseModel):
    peak_attendance_minutes: int
    peak_attendance: str
    average_view_time_minutes: int
    average_view_time: str
    dropoff_points: list[DropoffPoint]


class EngagementStats(BaseModel):
    chat_messages: int
    questions: int
    reactions: int


class SessionAnalytics(BaseModel):
    participants: ParticipantStats
    ratings: RatingStats
    time_analytics: TimeAnalytics
    engagement: EngagementStats


class SessionAnalyticsResponse(BaseModel):
    session: SessionResponse
    analytics: SessionAnalytics
