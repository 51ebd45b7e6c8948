from pydantic import BaseModel, Field

from app.schemas import ReactionType, SessionState

from .serializers import UtcDatetime


class StreamSessionDataOut(BaseModel):
    title: str
    trainer: str | None = None
    duration: int
    started_at: UtcDatetime | None = None


class StreamCredentialOut(BaseModel):
    app_id: str | None = Field(default=None, description="RTC endpoint the client connects to")
    channel_name: str
    token: str
    uid: str


class StreamDetailsOut(BaseModel):
    status: SessionState
    is_host: bool
    can_start: bool = False
    scheduled_at: UtcDatetime | None = None
    session_data: StreamSessionDataOut | None = None
    stream_data: StreamCredentialOut | None = None


class StreamEndOut(BaseModel):
    session_id: str
    status: SessionState
    ended_at: UtcDatetime


class StreamLeaveOut(BaseModel):
    session_id: str
    left_at: UtcDatetime | None = None
    duration: int = Field(description="Accumulated watch time in seconds")


class StreamParticipantOut(BaseModel):
    user_id: str
    name: str | None = None
    email: str | None = None
    profile_picture: str | None = None
    joined_at: UtcDatetime | None = None
    duration: int = 0
    active: bool


class StreamParticipantsOut(BaseModel):
    participants: list[StreamParticipantOut]
    total_count: int
    active_count: int


class SendMessageIn(BaseModel):
    message: str | None = None


class ChatMessageOut(BaseModel):
    message_id: str
    user_id: str
    message: str
    timestamp: UtcDatetime


class SendReactionIn(BaseModel):
    type: str | None = Field(default=None, description="thumbsUp, heart, star, clap or fire")


class ReactionOut(BaseModel):
    reaction_id: str
    user_id: str
    type: ReactionType
    timestamp: UtcDatetime
