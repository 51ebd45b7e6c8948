"""Account domain models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.schemas import SessionState, UserRole
from app.schemas.user import (
    BookedSession,
    CompletedSession,
    TrainerProfile,
    UserPreferences,
)


class UserProfileResponse(BaseModel):
    """Public profile; never carries the password hash."""

    user_id: str
    email: str
    first_name: str
    last_name: str
    profile_picture: str | None = None
    phone_number: str | None = None
    role: UserRole
    tokens: int
    booked_sessions: list[BookedSession] = Field(default_factory=list)
    completed_sessions: list[CompletedSession] = Field(default_factory=list)
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    trainer_profile: TrainerProfile | None = None
    created_at: datetime
    updated_at: datetime


class UserListResponse(BaseModel):
    users: list[UserProfileResponse]


class RegisterParams(BaseModel):
    """Parameters for registering an account. Only user/trainer roles are accepted."""

    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    role: UserRole | None = None

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class LoginParams(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class AuthResponse(BaseModel):
    token: str
    user: UserProfileResponse


class TrainerProfileUpdateParams(BaseModel):
    bio: str | None = None
    specialties: list[str] | None = None
    experience: int | None = Field(default=None, ge=0)
    hourly_rate: float | None = Field(default=None, ge=0)


class UserUpdateParams(BaseModel):
    """Partial profile update. The trainer profile is merged only for trainers."""

    first_name: str | None = None
    last_name: str | None = None
    email: EmailStr | None = None
    profile_picture: str | None = None
    phone_number: str | None = None
    trainer_profile: TrainerProfileUpdateParams | None = None

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, v: str | None) -> str | None:
        return v.strip().lower() if v else v


class TokenOperation(str, Enum):
    ADD = "add"
    SUBTRACT = "subtract"
    SET = "set"


class TokenUpdateResponse(BaseModel):
    user_id: str
    tokens: int


class BookedSessionView(BaseModel):
    """A booking joined with its session and trainer name."""

    session_id: str
    title: str
    trainer: str | None = None
    scheduled_at: datetime
    duration: int
    status: SessionState
    booked_at: datetime


class UserSessionsResponse(BaseModel):
    sessions: list[BookedSessionView]


class NotificationPreferencesUpdate(BaseModel):
    email: bool | None = None
    session_reminders: bool | None = None
    promotions: bool | None = None


class PreferencesUpdateParams(BaseModel):
    categories: list[str] | None = None
    difficulty: str | None = None
    preferred_trainers: list[str] | None = None
    notifications: NotificationPreferencesUpdate | None = None


class PreferencesResponse(BaseModel):
    user_id: str
    preferences: UserPreferences
