"""Beanie ODM schemas for MongoDB collections."""

from .init import BEANIE_MODELS, init_beanie_odm
from .package import Package
from .session import ChatMessage, Participant, Reaction, Session, SessionRating, StreamingDetails
from .session_state import (
    Difficulty,
    PaymentMethod,
    ReactionType,
    SessionState,
    TransactionStatus,
    UserRole,
)
from .transaction import PaymentDetails, Transaction
from .user import (
    BookedSession,
    CompletedSession,
    NotificationPreferences,
    TrainerProfile,
    User,
    UserPreferences,
)

__all__ = [
    "BEANIE_MODELS",
    "BookedSession",
    "ChatMessage",
    "CompletedSession",
    "Difficulty",
    "NotificationPreferences",
    "Package",
    "Participant",
    "PaymentDetails",
    "PaymentMethod",
    "Reaction",
    "ReactionType",
    "Session",
    "SessionRating",
    "SessionState",
    "StreamingDetails",
    "TrainerProfile",
    "Transaction",
    "TransactionStatus",
    "User",
    "UserPreferences",
    "UserRole",
    "init_beanie_odm",
]
