"""Common enums used across schemas."""

from enum import Enum


class SessionState(str, Enum):
    """Session lifecycle states.

    State Transition Flow:

    SCHEDULED → LIVE → COMPLETED
        ↓
    CANCELLED

    State Descriptions:
    - SCHEDULED: Session created by a trainer and open for booking. Set by create_session().
    - LIVE: Trainer started the stream. Set by start_stream().
    - COMPLETED: Trainer ended the stream. Set by end_stream().
    - CANCELLED: Session cancelled before going live; bookings are refunded. Set by update_status().

    Terminal states (no further transitions): COMPLETED, CANCELLED
    """

    SCHEDULED = "scheduled"
    LIVE = "live"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def locked_states(cls) -> list["SessionState"]:
        """States in which a session can no longer be edited, deleted or re-statused."""
        return [SessionState.LIVE, SessionState.COMPLETED]


class UserRole(str, Enum):
    USER = "user"
    TRAINER = "trainer"
    ADMIN = "admin"

    def __str__(self) -> str:
        return self.value


class Difficulty(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    ALL_LEVELS = "All Levels"


class ReactionType(str, Enum):
    THUMBS_UP = "thumbsUp"
    HEART = "heart"
    STAR = "star"
    CLAP = "clap"
    FIRE = "fire"


class PaymentMethod(str, Enum):
    CREDIT_CARD = "credit_card"
    PAYPAL = "paypal"
    STRIPE = "stripe"
    OTHER = "other"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


__all__ = [
    "Difficulty",
    "PaymentMethod",
    "ReactionType",
    "SessionState",
    "TransactionStatus",
    "UserRole",
]
