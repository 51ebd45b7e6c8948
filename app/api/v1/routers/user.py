from fastapi import APIRouter, Depends

from app.api.v1.dependency import AdminUser, CurrentUser
from app.api.v1.routers.package import get_package_service
from app.api.v1.schemas.base import ApiOut, MessageOut
from app.api.v1.schemas.package import ListTransactionsOut
from app.api.v1.schemas.user import (
    ListUsersOut,
    PreferencesOut,
    TokensOut,
    UpdatePreferencesIn,
    UpdateTokensIn,
    UpdateUserIn,
    UserOut,
    UserSessionsOut,
)
from app.domain.account.user_domain import UserService
from app.domain.account.user_models import PreferencesUpdateParams, UserUpdateParams
from app.domain.catalog.package_domain import PackageService

router = APIRouter(prefix="/users", tags=["Users"])

# Singleton instance
_user_service = UserService()


def get_user_service() -> UserService:
    """Get the singleton UserService instance."""
    return _user_service


@router.get("")
async def list_users(
    user: AdminUser,
    service: UserService = Depends(get_user_service),
) -> ApiOut[ListUsersOut]:
    result = await service.list_users(actor=user)

    return ApiOut[ListUsersOut](results=ListUsersOut.model_validate(result.model_dump()))


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    user: CurrentUser,
    service: UserService = Depends(get_user_service),
) -> ApiOut[UserOut]:
    """Profile of a user; callers may only read their own unless they are admins."""
    result = await service.get_user(user_id=user_id, actor=user)

    return ApiOut[UserOut](results=UserOut.model_validate(result.model_dump()))


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    body: UpdateUserIn,
    user: CurrentUser,
    service: UserService = Depends(get_user_service),
) -> ApiOut[UserOut]:
    params = UserUpdateParams.model_validate(body.model_dump(exclude_none=True))

    result = await service.update_user(user_id=user_id, actor=user, params=params)

    return ApiOut[UserOut](results=UserOut.model_validate(result.model_dump()))


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    user: CurrentUser,
    service: UserService = Depends(get_user_service),
) -> ApiOut[MessageOut]:
    await service.delete_user(user_id=user_id, actor=user)

    return ApiOut[MessageOut](results=MessageOut(message="User removed"))


@router.put("/{user_id}/tokens")
async def update_tokens(
    user_id: str,
    body: UpdateTokensIn,
    user: CurrentUser,
    service: UserService = Depends(get_user_service),
) -> ApiOut[TokensOut]:
    """Add, subtract or set the token balance."""
    result = await service.update_tokens(
        user_id=user_id,
        actor=user,
        tokens=body.tokens,
        operation=body.operation,
    )

    return ApiOut[TokensOut](results=TokensOut(user_id=result.user_id, tokens=result.tokens))


@router.get("/{user_id}/sessions")
async def get_user_sessions(
    user_id: str,
    user: CurrentUser,
    service: UserService = Depends(get_user_service),
) -> ApiOut[UserSessionsOut]:
    """Sessions the user has booked, with trainer names."""
    result = await service.get_user_sessions(user_id=user_id, actor=user)

    return ApiOut[UserSessionsOut](results=UserSessionsOut.model_validate(result.model_dump()))


@router.put("/{user_id}/preferences")
async def update_preferences(
    user_id: str,
    body: UpdatePreferencesIn,
    user: CurrentUser,
    service: UserService = Depends(get_user_service),
) -> ApiOut[PreferencesOut]:
    params = PreferencesUpdateParams.model_validate(body.model_dump(exclude_none=True))

    result = await service.update_preferences(user_id=user_id, actor=user, params=params)

    return ApiOut[PreferencesOut](results=PreferencesOut.model_validate(result.model_dump()))


@router.get("/{user_id}/transactions")
async def list_user_transactions(
    user_id: str,
    user: CurrentUser,
    service: PackageService = Depends(get_package_service),
) -> ApiOut[ListTransactionsOut]:
    result = await service.list_transactions(user_id=user_id, actor=user)

    return ApiOut[ListTransactionsOut](results=ListTransactionsOut.model_validate(result.model_dump()))
