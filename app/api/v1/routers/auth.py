from fastapi import APIRouter, Depends, status

from app.api.v1.dependency import CurrentUser
from app.api.v1.schemas.base import ApiOut
from app.api.v1.schemas.user import AuthOut, LoginIn, RegisterIn, UserOut
from app.domain.account.user_domain import UserService
from app.domain.account.user_models import LoginParams, RegisterParams

router = APIRouter(prefix="/auth", tags=["Auth"])

# Singleton instance
_user_service = UserService()


def get_user_service() -> UserService:
    """Get the singleton UserService instance."""
    return _user_service


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterIn,
    service: UserService = Depends(get_user_service),
) -> ApiOut[AuthOut]:
    """Create an account and return a bearer token for it."""
    params = RegisterParams(
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
        password=body.password,
        role=body.role if body.role in ("user", "trainer") else None,
    )

    result = await service.register(params)

    return ApiOut[AuthOut](results=AuthOut.model_validate(result.model_dump()))


@router.post("/login")
async def login(
    body: LoginIn,
    service: UserService = Depends(get_user_service),
) -> ApiOut[AuthOut]:
    result = await service.login(LoginParams(email=body.email, password=body.password))

    return ApiOut[AuthOut](results=AuthOut.model_validate(result.model_dump()))


@router.get("/me")
async def me(
    user: CurrentUser,
    service: UserService = Depends(get_user_service),
) -> ApiOut[UserOut]:
    """Profile of the authenticated user."""
    result = await service.me(user.user_id)

    return ApiOut[UserOut](results=UserOut.model_validate(result.model_dump()))
