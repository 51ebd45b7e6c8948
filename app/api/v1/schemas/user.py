from pydantic import BaseModel, EmailStr, Field

from app.schemas import SessionState, UserRole
from app.schemas.user import TrainerProfile, UserPreferences

from .serializers import UtcDatetime


class RegisterIn(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    role: str | None = Field(default=None, description="user or trainer; anything else registers a user")


class LoginIn(BaseModel):
    email: str
    password: str


class BookedSessionRefOut(BaseModel):
    session_id: str
    booked_at: UtcDatetime


class UserOut(BaseModel):
    user_id: str
    email: str
    first_name: str
    last_name: str
    profile_picture: str | None = None
    phone_number: str | None = None
    role: UserRole
    tokens: int
    booked_sessions: list[BookedSessionRefOut] = Field(default_factory=list)
    preferences: UserPreferences
    trainer_profile: TrainerProfile | None = None
    created_at: UtcDatetime


class AuthOut(BaseModel):
    token: str
    user: UserOut


class ListUsersOut(BaseModel):
    users: list[UserOut]


class TrainerProfileIn(BaseModel):
    bio: str | None = None
    specialties: list[str] | None = None
    experience: int | None = Field(default=None, ge=0)
    hourly_rate: float | None = Field(default=None, ge=0)


class UpdateUserIn(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    email: EmailStr | None = None
    profile_picture: str | None = None
    phone_number: str | None = None
    trainer_profile: TrainerProfileIn | None = None


class UpdateTokensIn(BaseModel):
    tokens: int | None = None
    operation: str | None = Field(default=None, description="add, subtract or set (default)")


class TokensOut(BaseModel):
    user_id: str
    tokens: int


class BookedSessionOut(BaseModel):
    session_id: str
    title: str
    trainer: str | None = None
    scheduled_at: UtcDatetime
    duration: int
    status: SessionState
    booked_at: UtcDatetime


class UserSessionsOut(BaseModel):
    sessions: list[BookedSessionOut]


class NotificationsIn(BaseModel):
    email: bool | None = None
    session_reminders: bool | None = None
    promotions: bool | None = None


class UpdatePreferencesIn(BaseModel):
    categories: list[str] | None = None
    difficulty: str | None = None
    preferred_trainers: list[str] | None = None
    notifications: NotificationsIn | None = None


class PreferencesOut(BaseModel):
    user_id: str
    preferences: UserPreferences
