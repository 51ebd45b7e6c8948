from fastapi import APIRouter, Depends, status

from app.api.v1.dependency import AdminUser, CurrentUser, OptionalUser
from app.api.v1.schemas.base import ApiOut
from app.api.v1.schemas.package import (
    CreatePackageIn,
    ListPackagesOut,
    PackageOut,
    PurchaseOut,
    PurchasePackageIn,
    UpdatePackageIn,
)
from app.domain.catalog.package_domain import PackageService
from app.domain.catalog.package_models import PackageCreateParams, PackageUpdateParams
from app.schemas.transaction import PaymentDetails

router = APIRouter(prefix="/packages", tags=["Packages"])

# Singleton instance
_package_service = PackageService()


def get_package_service() -> PackageService:
    """Get the singleton PackageService instance."""
    return _package_service


@router.get("")
async def list_packages(
    user: OptionalUser,
    service: PackageService = Depends(get_package_service),
) -> ApiOut[ListPackagesOut]:
    """Active packages, smallest first. Admins also see inactive ones."""
    result = await service.list_packages(actor=user)

    return ApiOut[ListPackagesOut](results=ListPackagesOut.model_validate(result.model_dump()))


@router.get("/{package_id}")
async def get_package(
    package_id: str,
    user: OptionalUser,
    service: PackageService = Depends(get_package_service),
) -> ApiOut[PackageOut]:
    result = await service.get_package(package_id=package_id, actor=user)

    return ApiOut[PackageOut](results=PackageOut.model_validate(result.model_dump()))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_package(
    body: CreatePackageIn,
    user: AdminUser,
    service: PackageService = Depends(get_package_service),
) -> ApiOut[PackageOut]:
    params = PackageCreateParams.model_validate(body.model_dump())

    result = await service.create_package(params=params, actor=user)

    return ApiOut[PackageOut](results=PackageOut.model_validate(result.model_dump()))


@router.put("/{package_id}")
async def update_package(
    package_id: str,
    body: UpdatePackageIn,
    user: AdminUser,
    service: PackageService = Depends(get_package_service),
) -> ApiOut[PackageOut]:
    # Only fields present in the request body are changed
    params = PackageUpdateParams.model_validate(body.model_dump(exclude_unset=True))

    result = await service.update_package(package_id=package_id, params=params, actor=user)

    return ApiOut[PackageOut](results=PackageOut.model_validate(result.model_dump()))


@router.delete("/{package_id}")
async def delete_package(
    package_id: str,
    user: AdminUser,
    service: PackageService = Depends(get_package_service),
) -> ApiOut[PackageOut]:
    """Soft delete: the package is deactivated, existing transactions keep referencing it."""
    result = await service.deactivate_package(package_id=package_id, actor=user)

    return ApiOut[PackageOut](results=PackageOut.model_validate(result.model_dump()))


@router.post("/{package_id}/purchase")
async def purchase_package(
    package_id: str,
    body: PurchasePackageIn,
    user: CurrentUser,
    service: PackageService = Depends(get_package_service),
) -> ApiOut[PurchaseOut]:
    """Buy a package; the token balance is credited once the payment is recorded."""
    details = PaymentDetails.model_validate(body.payment_details.model_dump()) if body.payment_details else None

    result = await service.purchase_package(
        package_id=package_id,
        user_id=user.user_id,
        payment_method=body.payment_method,
        payment_details=details,
    )

    return ApiOut[PurchaseOut](results=PurchaseOut.model_validate(result.model_dump()))
