from pydantic import BaseModel, Field

from app.schemas import PaymentMethod, TransactionStatus

from .serializers import UtcDatetime


class CreatePackageIn(BaseModel):
    name: str = Field(min_length=1)
    description: str | None = None
    token_amount: int = Field(gt=0)
    price: float = Field(gt=0)
    currency: str = "USD"
    is_promotion: bool = False
    discount_percentage: float = Field(default=0, ge=0, le=100)
    valid_until: UtcDatetime | None = None
    active: bool = True


class UpdatePackageIn(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    token_amount: int | None = Field(default=None, gt=0)
    price: float | None = Field(default=None, gt=0)
    currency: str | None = None
    is_promotion: bool | None = None
    discount_percentage: float | None = Field(default=None, ge=0, le=100)
    valid_until: UtcDatetime | None = None
    active: bool | None = None


class PackageOut(BaseModel):
    package_id: str
    name: str
    description: str | None = None
    token_amount: int
    price: float
    currency: str
    is_promotion: bool
    discount_percentage: float
    valid_until: UtcDatetime | None = None
    active: bool
    created_at: UtcDatetime


class ListPackagesOut(BaseModel):
    packages: list[PackageOut]


class PaymentDetailsIn(BaseModel):
    transaction_id: str | None = None
    payment_processor: str | None = None
    card_last4: str | None = Field(default=None, max_length=4)


class PurchasePackageIn(BaseModel):
    payment_method: str | None = Field(default=None, description="credit_card, paypal, stripe or other")
    payment_details: PaymentDetailsIn | None = None


class TransactionOut(BaseModel):
    transaction_id: str
    package_id: str
    token_amount: int
    amount: float
    currency: str
    payment_method: PaymentMethod
    status: TransactionStatus
    created_at: UtcDatetime


class PurchaseOut(BaseModel):
    transaction: TransactionOut
    tokens: int = Field(description="Token balance after the purchase")


class ListTransactionsOut(BaseModel):
    transactions: list[TransactionOut]
