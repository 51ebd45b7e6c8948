from pydantic import BaseModel, Field

from app.domain.live.session.session_models import SessionAnalytics
from app.schemas import Difficulty, SessionState

from .serializers import UtcDatetime


class CreateSessionIn(BaseModel):
    title: str = Field(min_length=1, description="Title of the session")
    description: str = Field(description="Description of the session")
    category: str = Field(description="Workout category, e.g. Yoga, HIIT")
    difficulty: Difficulty = Field(description="Beginner, Intermediate, Advanced or All Levels")
    scheduled_at: UtcDatetime = Field(description="Start time (ISO 8601)")
    duration: int = Field(gt=0, description="Duration in minutes")
    token_cost: int = Field(default=1, ge=0, description="Tokens debited per booking")
    max_participants: int = Field(default=0, ge=0, description="Capacity, 0 means unlimited")
    thumbnail: str | None = Field(default=None, description="URL of the thumbnail image")
    equipment_required: list[str] | None = None
    tags: list[str] | None = None


class UpdateSessionIn(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    category: str | None = None
    difficulty: Difficulty | None = None
    scheduled_at: UtcDatetime | None = None
    duration: int | None = Field(default=None, gt=0)
    token_cost: int | None = Field(default=None, ge=0)
    max_participants: int | None = Field(default=None, ge=0)
    thumbnail: str | None = None
    equipment_required: list[str] | None = None
    tags: list[str] | None = None


class UpdateSessionStatusIn(BaseModel):
    status: str = Field(description="Target status: scheduled or cancelled")


class RateSessionIn(BaseModel):
    rating: int | None = Field(default=None, description="1 to 5")
    feedback: str | None = None


class TrainerOut(BaseModel):
    user_id: str
    first_name: str
    last_name: str
    profile_picture: str | None = None


class ParticipantOut(BaseModel):
    user_id: str
    joined_at: UtcDatetime | None = None
    leave_at: UtcDatetime | None = None
    duration: int = 0
    messages: int = 0
    reactions: int = 0


class RatingOut(BaseModel):
    user_id: str
    rating: int
    feedback: str | None = None
    created_at: UtcDatetime


class SessionOut(BaseModel):
    session_id: str
    trainer_id: str
    trainer: TrainerOut | None = None
    title: str
    description: str
    category: str
    difficulty: Difficulty
    scheduled_at: UtcDatetime
    duration: int
    token_cost: int
    max_participants: int
    thumbnail: str | None = None
    equipment_required: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    status: SessionState
    participants: list[ParticipantOut] = Field(default_factory=list)
    ratings: list[RatingOut] = Field(default_factory=list)
    average_rating: float = 0
    started_at: UtcDatetime | None = None
    ended_at: UtcDatetime | None = None
    created_at: UtcDatetime
    updated_at: UtcDatetime


class ListSessionsOut(BaseModel):
    sessions: list[SessionOut]


class SessionStatusOut(BaseModel):
    session: SessionOut
    refunded_count: int


class DeleteSessionOut(BaseModel):
    session_id: str
    refunded_count: int


class BookSessionOut(BaseModel):
    session_id: str
    tokens: int = Field(description="Remaining token balance")


class RateSessionOut(BaseModel):
    session_id: str
    rating: int
    session_rating: float


class SessionAnalyticsOut(BaseModel):
    session: SessionOut
    analytics: SessionAnalytics
