"""Catalog domain models."""

from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas import PaymentMethod, TransactionStatus
from app.schemas.transaction import PaymentDetails


class PackageResponse(BaseModel):
    """Package response model."""

    package_id: str
    name: str
    description: str | None = None
    token_amount: int
    price: float
    currency: str
    is_promotion: bool
    discount_percentage: float
    valid_until: datetime | None = None
    active: bool
    created_at: datetime
    updated_at: datetime


class PackageListResponse(BaseModel):
    packages: list[PackageResponse]


class PackageCreateParams(BaseModel):
    """Parameters for creating a package."""

    name: str = Field(min_length=1)
    description: str | None = None
    token_amount: int = Field(gt=0)
    price: float = Field(gt=0)
    currency: str = "USD"
    is_promotion: bool = False
    discount_percentage: float = Field(default=0, ge=0, le=100)
    valid_until: datetime | None = None
    active: bool = True


class PackageUpdateParams(BaseModel):
    """Partial package update; `valid_until` may be cleared with null."""

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    token_amount: int | None = Field(default=None, gt=0)
    price: float | None = Field(default=None, gt=0)
    currency: str | None = None
    is_promotion: bool | None = None
    discount_percentage: float | None = Field(default=None, ge=0, le=100)
    valid_until: datetime | None = None
    active: bool | None = None


class TransactionResponse(BaseModel):
    transaction_id: str
    user_id: str
    package_id: str
    token_amount: int
    amount: float
    currency: str
    payment_method: PaymentMethod
    status: TransactionStatus
    payment_details: PaymentDetails | None = None
    created_at: datetime


class TransactionListResponse(BaseModel):
    transactions: list[TransactionResponse]


class PurchaseResponse(BaseModel):
    transaction: TransactionResponse
    tokens: int
