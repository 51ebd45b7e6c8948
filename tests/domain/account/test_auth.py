"""Tests for AuthOperations: registration, login and token issue."""

import pytest

from app.domain.account._auth import AuthOperations
from app.domain.account.user_models import LoginParams, RegisterParams
from app.schemas import User, UserRole
from app.shared.auth.tokens import decode_token
from app.utils.app_errors import AppError, AppErrorCode
from tests.fixtures.factories import DEFAULT_PASSWORD, create_user


@pytest.fixture
def ops() -> AuthOperations:
    return AuthOperations()


def _register(role: UserRole | None = None, email: str = "Jo.Runner@FitStream.io") -> RegisterParams:
    return RegisterParams(
        first_name="Jo",
        last_name="Runner",
        email=email,
        password="s3cret!",
        role=role,
    )


@pytest.mark.usefixtures("clear_collections")
class TestRegister:
    """Tests for AuthOperations.register method."""

    async def test_register_user(self, beanie_db, ops):
        # Act
        result = await ops.register(_register())

        # Assert
        assert result.user.email == "jo.runner@fitstream.io"
        assert result.user.role == UserRole.USER
        assert result.user.tokens == 0
        assert result.user.trainer_profile is None

        payload = decode_token(result.token)
        assert payload["id"] == result.user.user_id
        assert payload["role"] == "user"

        saved = await User.find_one(User.user_id == result.user.user_id)
        assert saved.password_hash != "s3cret!"

    async def test_register_trainer_gets_profile(self, beanie_db, ops):
        result = await ops.register(_register(role=UserRole.TRAINER))

        assert result.user.role == UserRole.TRAINER
        assert result.user.trainer_profile is not None
        assert result.user.trainer_profile.total_ratings == 0

    async def test_admin_role_is_not_self_service(self, beanie_db, ops):
        result = await ops.register(_register(role=UserRole.ADMIN))

        assert result.user.role == UserRole.USER

    async def test_duplicate_email_case_insensitive(self, beanie_db, ops):
        # Arrange
        await ops.register(_register())

        # Act
        with pytest.raises(AppError) as exc_info:
            await ops.register(_register(email="jo.runner@fitstream.io"))

        # Assert
        assert exc_info.value.errcode == AppErrorCode.E_USER_EXISTS
        assert exc_info.value.errmesg == "User already exists"
        assert exc_info.value.status_code == 400


@pytest.mark.usefixtures("clear_collections")
class TestLogin:
    async def test_login_success(self, beanie_db, ops):
        user = await create_user(email="member@fitstream.io")

        result = await ops.login(LoginParams(email="MEMBER@fitstream.io", password=DEFAULT_PASSWORD))

        assert result.user.user_id == user.user_id
        assert decode_token(result.token)["id"] == user.user_id

    async def test_wrong_password(self, beanie_db, ops):
        await create_user(email="member@fitstream.io")

        with pytest.raises(AppError) as exc_info:
            await ops.login(LoginParams(email="member@fitstream.io", password="nope"))

        assert exc_info.value.errcode == AppErrorCode.E_INVALID_CREDENTIALS
        assert exc_info.value.errmesg == "Invalid credentials"

    async def test_unknown_email_same_error(self, beanie_db, ops):
        with pytest.raises(AppError) as exc_info:
            await ops.login(LoginParams(email="ghost@fitstream.io", password="whatever"))

        assert exc_info.value.errmesg == "Invalid credentials"

    async def test_me(self, beanie_db, ops):
        user = await create_user()

        result = await ops.me(user.user_id)

        assert result.email == user.email
        assert not hasattr(result, "password_hash")
