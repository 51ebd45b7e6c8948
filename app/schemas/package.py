"""Token package ODM schema."""

from datetime import datetime
from typing import Any

from beanie import Document, Indexed
from pydantic import Field, field_validator

from .schema_utils import parse_mongo_datetime


class Package(Document):
    """Purchasable token bundle. Deactivated rather than deleted."""

    package_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    name: str
    description: str | None = None
    token_amount: int = Field(gt=0)
    price: float = Field(ge=0)
    currency: str = "USD"

    is_promotion: bool = False
    discount_percentage: float = 0
    valid_until: datetime | None = None
    active: bool = True

    created_at: datetime
    updated_at: datetime

    @field_validator("valid_until", "created_at", "updated_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)

    def is_expired(self, now: datetime) -> bool:
        return self.is_promotion and self.valid_until is not None and self.valid_until < now

    class Settings:
        name = "package"
        indexes = [
            [("package_id", 1)],  # unique handled by Indexed
            [("active", 1), ("token_amount", 1)],
        ]
