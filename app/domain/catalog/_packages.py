"""Package catalog and purchase operations."""

from typing import Any

from beanie.odm.operators.update.general import Inc, Set
from loguru import logger
from pymongo import ASCENDING, DESCENDING

from app.schemas import Package, PaymentMethod, Transaction, TransactionStatus, User
from app.schemas.transaction import PaymentDetails
from app.shared.utils import utc_now
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode, forbidden, invalid_request, not_found

from ..utils.actor import Actor
from ..utils.idgen import new_package_id, new_transaction_id
from .package_models import (
    PackageCreateParams,
    PackageListResponse,
    PackageResponse,
    PackageUpdateParams,
    PurchaseResponse,
    TransactionListResponse,
    TransactionResponse,
)


def _to_response(package: Package) -> PackageResponse:
    return PackageResponse(**package.model_dump(exclude={"id"}, mode="json"))


def _transaction_response(transaction: Transaction) -> TransactionResponse:
    return TransactionResponse(**transaction.model_dump(exclude={"id"}, mode="json"))


class PackageOperations:
    """Package-related operations."""

    @staticmethod
    def _ensure_admin(actor: Actor | None) -> None:
        if actor is None or not actor.is_admin:
            raise forbidden("Admin access required")

    async def _require_package(self, package_id: str) -> Package:
        package = await Package.find_one(Package.package_id == package_id)
        if not package:
            raise not_found(AppErrorCode.E_PACKAGE_NOT_FOUND, "Package")
        return package

    async def list_packages(self, actor: Actor | None = None) -> PackageListResponse:
        """Active packages by token amount; admins also see inactive ones."""
        query: list[Any] = []
        if not (actor and actor.is_admin):
            query.append(Package.active == True)  # noqa: E712

        packages = await Package.find(*query).sort([(Package.token_amount, ASCENDING)]).to_list()
        return PackageListResponse(packages=[_to_response(p) for p in packages])

    async def get_package(self, package_id: str, actor: Actor | None = None) -> PackageResponse:
        """Inactive packages are reported as not found to non-admins."""
        package = await self._require_package(package_id)
        if not package.active and not (actor and actor.is_admin):
            raise not_found(AppErrorCode.E_PACKAGE_NOT_FOUND, "Package")
        return _to_response(package)

    async def create_package(self, params: PackageCreateParams, actor: Actor) -> PackageResponse:
        self._ensure_admin(actor)
        now = utc_now()

        package = Package(
            package_id=new_package_id(),
            **params.model_dump(),
            created_at=now,
            updated_at=now,
        )
        await package.insert()
        logger.info(f"Created package {package.package_id} ({package.token_amount} tokens)")

        return _to_response(package)

    async def update_package(
        self,
        package_id: str,
        params: PackageUpdateParams,
        actor: Actor,
    ) -> PackageResponse:
        self._ensure_admin(actor)
        package = await self._require_package(package_id)

        # Unset fields are left alone; an explicit null clears valid_until
        changes = params.model_dump(exclude_unset=True)
        updates: dict[Any, Any] = {
            getattr(Package, field): value
            for field, value in changes.items()
            if value is not None or field == "valid_until"
        }
        if not updates:
            return _to_response(package)

        updates[Package.updated_at] = utc_now()
        await package.set(updates)

        return _to_response(package)

    async def deactivate_package(self, package_id: str, actor: Actor) -> PackageResponse:
        """Soft delete: packages are never removed."""
        self._ensure_admin(actor)
        package = await self._require_package(package_id)

        await package.set({Package.active: False, Package.updated_at: utc_now()})
        logger.info(f"Deactivated package {package_id}")

        return _to_response(package)

    async def purchase_package(
        self,
        package_id: str,
        user_id: str,
        payment_method: PaymentMethod | str | None,
        payment_details: PaymentDetails | None = None,
    ) -> PurchaseResponse:
        """
        Buy a package: record the transaction and credit its tokens.

        There is no payment gateway; the transaction is completed as soon as
        it is recorded.
        """
        if not payment_method:
            raise invalid_request("Payment method is required")
        try:
            method = PaymentMethod(payment_method)
        except ValueError:
            raise invalid_request("Invalid payment method")

        package = await self._require_package(package_id)

        if not package.active:
            raise invalid_request("This package is not available for purchase")

        now = utc_now()
        if package.is_expired(now):
            raise invalid_request("This promotion has expired")

        user = await User.find_one(User.user_id == user_id)
        if not user:
            raise AppError(
                errcode=AppErrorCode.E_USER_NOT_FOUND,
                errmesg="User not found",
                status_code=HttpStatusCode.NOT_FOUND,
            )

        transaction = Transaction(
            transaction_id=new_transaction_id(),
            user_id=user_id,
            package_id=package_id,
            token_amount=package.token_amount,
            amount=package.price,
            currency=package.currency,
            payment_method=method,
            status=TransactionStatus.PENDING,
            payment_details=payment_details,
            created_at=now,
        )
        await transaction.insert()

        # Payment is mocked as always succeeding
        await transaction.set({Transaction.status: TransactionStatus.COMPLETED})

        await User.find(User.user_id == user_id).update(
            Inc({User.tokens: package.token_amount}),
            Set({User.updated_at: now}),
        )

        fresh_user = await User.find_one(User.user_id == user_id)
        balance = fresh_user.tokens if fresh_user else user.tokens + package.token_amount

        logger.info(
            f"User {user_id} purchased package {package_id} via {method.value}: "
            f"+{package.token_amount} tokens (transaction {transaction.transaction_id})"
        )

        return PurchaseResponse(transaction=_transaction_response(transaction), tokens=balance)

    async def list_transactions(self, user_id: str, actor: Actor) -> TransactionListResponse:
        """Purchase history, newest first."""
        if not actor.can_access_user(user_id):
            raise forbidden("Access denied")

        transactions = (
            await Transaction.find(Transaction.user_id == user_id)
            .sort([(Transaction.created_at, DESCENDING)])
            .to_list()
        )
        return TransactionListResponse(transactions=[_transaction_response(t) for t in transactions])
