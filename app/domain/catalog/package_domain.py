"""Catalog domain service - token packages and purchases with Beanie ODM."""

from app.schemas import PaymentMethod
from app.schemas.transaction import PaymentDetails

from ..utils.actor import Actor
from ._packages import PackageOperations
from .package_models import (
    PackageCreateParams,
    PackageListResponse,
    PackageResponse,
    PackageUpdateParams,
    PurchaseResponse,
    TransactionListResponse,
)


class PackageService:
    """Token package service."""

    def __init__(self):
        self._packages = PackageOperations()

    # ==================== PACKAGES ====================

    async def list_packages(self, actor: Actor | None = None) -> PackageListResponse:
        return await self._packages.list_packages(actor=actor)

    async def get_package(self, package_id: str, actor: Actor | None = None) -> PackageResponse:
        """Raises AppError if the package is missing or hidden from the caller."""
        return await self._packages.get_package(package_id=package_id, actor=actor)

    async def create_package(self, params: PackageCreateParams, actor: Actor) -> PackageResponse:
        return await self._packages.create_package(params=params, actor=actor)

    async def update_package(
        self,
        package_id: str,
        params: PackageUpdateParams,
        actor: Actor,
    ) -> PackageResponse:
        return await self._packages.update_package(package_id=package_id, params=params, actor=actor)

    async def deactivate_package(self, package_id: str, actor: Actor) -> PackageResponse:
        return await self._packages.deactivate_package(package_id=package_id, actor=actor)

    # ==================== PURCHASES ====================

    async def purchase_package(
        self,
        package_id: str,
        user_id: str,
        payment_method: PaymentMethod | str | None,
        payment_details: PaymentDetails | None = None,
    ) -> PurchaseResponse:
        """Record a completed purchase and credit the package's tokens.

        Raises AppError if the package cannot be bought.
        """
        return await self._packages.purchase_package(
            package_id=package_id,
            user_id=user_id,
            payment_method=payment_method,
            payment_details=payment_details,
        )

    async def list_transactions(self, user_id: str, actor: Actor) -> TransactionListResponse:
        return await self._packages.list_transactions(user_id=user_id, actor=actor)
