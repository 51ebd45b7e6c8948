"""User ODM schema."""

from datetime import datetime
from typing import Any

from beanie import Document, Indexed
from pydantic import BaseModel, Field, field_validator

from .schema_utils import parse_mongo_datetime
from .session_state import UserRole


class BookedSession(BaseModel):
    session_id: str
    booked_at: datetime

    @field_validator("booked_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)


class CompletedSession(BaseModel):
    session_id: str
    completed_at: datetime
    rating: int | None = None
    feedback: str | None = None

    @field_validator("completed_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)


class NotificationPreferences(BaseModel):
    email: bool = True
    session_reminders: bool = True
    promotions: bool = True


class UserPreferences(BaseModel):
    categories: list[str] = Field(default_factory=list)
    difficulty: str | None = None
    preferred_trainers: list[str] = Field(default_factory=list)
    notifications: NotificationPreferences = Field(default_factory=NotificationPreferences)


class TrainerProfile(BaseModel):
    bio: str | None = None
    specialties: list[str] = Field(default_factory=list)
    experience: int | None = None  # years
    hourly_rate: float | None = None
    rating: float = 0
    total_ratings: int = 0
    verified: bool = False


class User(Document):
    """User account, token ledger and booking history."""

    user_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    email: Indexed(str, unique=True)  # type: ignore[valid-type]
    password_hash: str

    first_name: str
    last_name: str
    profile_picture: str | None = None
    phone_number: str | None = None

    role: UserRole = UserRole.USER
    tokens: int = Field(default=0, ge=0)

    booked_sessions: list[BookedSession] = Field(default_factory=list)
    completed_sessions: list[CompletedSession] = Field(default_factory=list)
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    trainer_profile: TrainerProfile | None = None

    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def has_booked(self, session_id: str) -> bool:
        return any(b.session_id == session_id for b in self.booked_sessions)

    class Settings:
        name = "user"
        indexes = [
            [("user_id", 1)],  # unique handled by Indexed
            [("email", 1)],  # unique handled by Indexed
            [("booked_sessions.session_id", 1)],
        ]
