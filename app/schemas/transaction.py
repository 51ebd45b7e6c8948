"""Purchase transaction ODM schema."""

from datetime import datetime
from typing import Any

from beanie import Document, Indexed
from pydantic import BaseModel, field_validator

from .schema_utils import parse_mongo_datetime
from .session_state import PaymentMethod, TransactionStatus


class PaymentDetails(BaseModel):
    transaction_id: str | None = None
    payment_processor: str | None = None
    card_last4: str | None = None


class Transaction(Document):
    """Record of a token package purchase."""

    transaction_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    user_id: str
    package_id: str
    token_amount: int
    amount: float
    currency: str = "USD"
    payment_method: PaymentMethod
    status: TransactionStatus = TransactionStatus.PENDING
    payment_details: PaymentDetails | None = None

    created_at: datetime

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)

    class Settings:
        name = "transaction"
        indexes = [
            [("transaction_id", 1)],  # unique handled by Indexed
            [("user_id", 1), ("created_at", -1)],
        ]
