"""Session ODM schema."""

import inspect
from collections.abc import Awaitable, Callable, Iterable, Mapping
from datetime import datetime
from typing import Any, TypeVar

from beanie import Document, Indexed
from beanie.odm.fields import ExpressionField
from beanie.odm.operators.update.general import Set
from loguru import logger
from pydantic import BaseModel, Field, field_validator

from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from .schema_utils import parse_mongo_datetime
from .session_state import Difficulty, ReactionType, SessionState

T = TypeVar("T")

MAX_VERSION_CHECK_ATTEMPTS = 3


class Participant(BaseModel):
    """Roster entry for a user who booked and/or joined the session."""

    user_id: str
    joined_at: datetime | None = None
    leave_at: datetime | None = None
    duration: int = 0  # accumulated seconds across join/leave cycles
    messages: int = 0
    reactions: int = 0

    @field_validator("joined_at", "leave_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)

    @property
    def has_joined(self) -> bool:
        return self.joined_at is not None

    @property
    def is_active(self) -> bool:
        """Joined and not left since the latest join."""
        if self.joined_at is None:
            return False
        return self.leave_at is None or self.joined_at > self.leave_at


class SessionRating(BaseModel):
    user_id: str
    rating: int = Field(ge=1, le=5)
    feedback: str | None = None
    created_at: datetime

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)


class ChatMessage(BaseModel):
    message_id: str
    user_id: str
    message: str
    timestamp: datetime

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)


class Reaction(BaseModel):
    reaction_id: str
    user_id: str
    type: ReactionType
    timestamp: datetime

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)


class StreamingDetails(BaseModel):
    stream_id: str | None = None
    channel_name: str | None = None
    resource_id: str | None = None
    sid: str | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
    recording_url: str | None = None

    @field_validator("started_at", "ended_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)


class Session(Document):
    """Session document model."""

    session_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    trainer_id: str

    # Session descriptor fields
    title: str
    description: str
    category: str
    difficulty: Difficulty
    scheduled_at: datetime
    duration: int  # minutes
    token_cost: int = 1
    max_participants: int = 0  # 0 means unlimited
    thumbnail: str | None = None
    equipment_required: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)

    status: SessionState = SessionState.SCHEDULED

    # Embedded collections; participants and ratings keyed by user_id
    participants: dict[str, Participant] = Field(default_factory=dict)
    ratings: dict[str, SessionRating] = Field(default_factory=dict)
    average_rating: float = 0
    messages: list[ChatMessage] = Field(default_factory=list)
    reactions: list[Reaction] = Field(default_factory=list)

    streaming: StreamingDetails = Field(default_factory=StreamingDetails)

    # Timestamps
    created_at: datetime
    updated_at: datetime

    # Version control for optimistic locking
    version: int = Field(default=1)

    @field_validator("scheduled_at", "created_at", "updated_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        """Parse MongoDB Extended JSON datetime format."""
        return parse_mongo_datetime(v)

    @property
    def channel_name(self) -> str:
        return f"session_{self.session_id}"

    def is_full(self) -> bool:
        return self.max_participants > 0 and len(self.participants) >= self.max_participants

    def _build_update_fields(self, field_names: Iterable[str] | None = None) -> dict[ExpressionField, Any]:
        data = self.model_dump(include=set(field_names) if field_names is not None else None)
        data.pop("id", None)
        update_fields: dict[ExpressionField, Any] = {}
        for field_name, value in data.items():
            session_field = getattr(Session, field_name, None)
            if session_field is not None:
                update_fields[session_field] = value
        return update_fields

    async def _raise_version_conflict(self, current_version: int) -> None:
        fresh_session = await Session.get(self.id)
        error_msg = (
            f"Version conflict on session {self.session_id}\n"
            f"Expected version: {current_version}, Current version: "
            f"{fresh_session.version if fresh_session else 'N/A'}"
        )
        logger.warning(error_msg)
        raise AppError(
            errcode=AppErrorCode.E_SESSION_VERSION_CONFLICT,
            errmesg=error_msg,
            status_code=HttpStatusCode.CONFLICT,
        )

    async def _write_if_version(self, current_version: int, update_fields: dict[ExpressionField, Any]) -> bool:
        update_fields[Session.version] = current_version + 1  # type: ignore[index]
        result = await Session.find(
            Session.id == self.id,
            Session.version == current_version,
        ).update(Set(update_fields))  # type: ignore[arg-type]
        return bool(result and result.modified_count > 0)

    async def _refresh(self) -> bool:
        fresh_session = await Session.get(self.id)
        if fresh_session is None:
            return False
        for field_name in Session.model_fields:
            setattr(self, field_name, getattr(fresh_session, field_name))
        return True

    async def save_session_with_version_check(self) -> bool:
        """Save the whole session with optimistic locking using the version field.

        Raises:
            AppError: If a version conflict occurred (E_SESSION_VERSION_CONFLICT).
        """
        current_version = self.version
        update_fields = self._build_update_fields()

        if await self._write_if_version(current_version, update_fields):
            self.version = current_version + 1
            logger.debug(
                f"Session {self.session_id} saved successfully "
                f"(version {current_version} -> {self.version})"
            )
            return True

        await self._raise_version_conflict(current_version)
        return False

    async def partial_update_session_with_version_check(
        self,
        updates: Mapping[ExpressionField, Any],
    ) -> bool:
        """Atomically update select session fields with optimistic locking.

        No retry: used for status transitions, which must be decided against
        the state that was read.

        Args:
            updates: Mapping of Session field expressions to values.
                Example: {Session.status: SessionState.LIVE}

        Raises:
            AppError: If a version conflict occurred (E_SESSION_VERSION_CONFLICT),
                or if updates include Session.version (E_INVALID_REQUEST).
        """
        if Session.version in updates:
            raise AppError(
                AppErrorCode.E_INVALID_REQUEST,
                "updates must not include Session.version",
                HttpStatusCode.BAD_REQUEST,
            )

        current_version = self.version
        if await self._write_if_version(current_version, dict(updates)):
            for field, value in updates.items():
                setattr(self, str(field), value)
            self.version = current_version + 1
            logger.debug(
                f"Session {self.session_id} partially updated successfully "
                f"(version {current_version} -> {self.version})"
            )
            return True

        await self._raise_version_conflict(current_version)
        return False

    async def mutate_with_version_check(
        self,
        mutate: Callable[["Session"], T] | Callable[["Session"], Awaitable[T]],
        fields: Iterable[str],
        max_attempts: int = MAX_VERSION_CHECK_ATTEMPTS,
    ) -> T:
        """Apply an in-memory mutation and persist the given fields under the version check.

        On conflict the session is re-read and `mutate` is applied again to the
        fresh state, up to `max_attempts` times. `mutate` may raise AppError to
        abort (for example when a re-read shows the session is now full).

        Returns:
            Whatever `mutate` returned on the successful attempt.

        Raises:
            AppError: E_SESSION_VERSION_CONFLICT after the last failed attempt.
        """
        field_names = list(fields)
        if "version" in field_names:
            raise AppError(
                AppErrorCode.E_INVALID_REQUEST,
                "fields must not include version",
                HttpStatusCode.BAD_REQUEST,
            )

        attempts = 0
        while True:
            attempts += 1
            current_version = self.version

            outcome = mutate(self)
            if inspect.isawaitable(outcome):
                outcome = await outcome

            if await self._write_if_version(current_version, self._build_update_fields(field_names)):
                self.version = current_version + 1
                return outcome  # type: ignore[return-value]

            if attempts >= max_attempts:
                await self._raise_version_conflict(current_version)

            if not await self._refresh():
                await self._raise_version_conflict(current_version)

            logger.debug(
                f"Session {self.session_id} version conflict, retrying "
                f"(attempt {attempts}/{max_attempts}, refreshed version: {self.version})"
            )

    class Settings:
        name = "session"
        indexes = [
            [("session_id", 1)],  # unique handled by Indexed
            [("trainer_id", 1), ("scheduled_at", -1)],
            [("status", 1), ("scheduled_at", 1)],
        ]
