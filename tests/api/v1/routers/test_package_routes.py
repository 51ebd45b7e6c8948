"""Unit tests for package router endpoints."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.v1.dependency import get_current_user, get_optional_user
from app.api.v1.errors import app_error_handler
from app.api.v1.routers.package import get_package_service, router
from app.domain.catalog.package_domain import PackageService
from app.domain.catalog.package_models import (
    PackageListResponse,
    PackageResponse,
    PackageUpdateParams,
    PurchaseResponse,
    TransactionResponse,
)
from app.domain.utils.actor import Actor
from app.schemas import PaymentMethod, TransactionStatus, UserRole
from app.schemas.transaction import PaymentDetails
from app.utils.app_errors import AppError, invalid_request

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _package(**overrides) -> PackageResponse:
    data = dict(
        package_id="pk_starter",
        name="Starter",
        token_amount=10,
        price=19.99,
        currency="USD",
        is_promotion=False,
        discount_percentage=0,
        active=True,
        created_at=NOW,
        updated_at=NOW,
    )
    data.update(overrides)
    return PackageResponse(**data)


@pytest.fixture
def actor() -> Actor:
    return Actor(user_id="us_admin", role=UserRole.ADMIN)


@pytest.fixture
def mock_package_service() -> AsyncMock:
    return AsyncMock(spec=PackageService)


@pytest.fixture
def client(actor: Actor, mock_package_service: AsyncMock) -> TestClient:
    app = FastAPI()
    app.dependency_overrides[get_current_user] = lambda: actor
    app.dependency_overrides[get_optional_user] = lambda: actor
    app.dependency_overrides[get_package_service] = lambda: mock_package_service
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.include_router(router)
    return TestClient(app)


class TestCatalog:
    def test_list_packages(self, client: TestClient, mock_package_service: AsyncMock):
        # Arrange
        mock_package_service.list_packages.return_value = PackageListResponse(
            packages=[_package(), _package(package_id="pk_pro", token_amount=50, active=False)]
        )

        # Act
        response = client.get("/packages")

        # Assert
        assert response.status_code == 200
        packages = response.json()["results"]["packages"]
        assert [p["package_id"] for p in packages] == ["pk_starter", "pk_pro"]
        assert packages[0]["created_at"] == "2026-03-01T12:00:00+00:00"
        assert mock_package_service.list_packages.call_args.kwargs["actor"].is_admin

    def test_anonymous_list(self, mock_package_service: AsyncMock):
        # Arrange: no bearer token and no identity override
        app = FastAPI()
        app.dependency_overrides[get_package_service] = lambda: mock_package_service
        app.include_router(router)
        mock_package_service.list_packages.return_value = PackageListResponse(packages=[])

        # Act
        response = TestClient(app).get("/packages")

        # Assert
        assert response.status_code == 200
        mock_package_service.list_packages.assert_called_once_with(actor=None)


class TestAdminRoutes:
    """Create, update and delete require the admin role."""

    def test_create(self, client: TestClient, mock_package_service: AsyncMock):
        mock_package_service.create_package.return_value = _package(package_id="pk_new")

        response = client.post("/packages", json={"name": "Starter", "token_amount": 10, "price": 19.99})

        assert response.status_code == 201
        assert response.json()["results"]["package_id"] == "pk_new"

    @pytest.mark.parametrize("role", [UserRole.USER, UserRole.TRAINER])
    def test_non_admin_forbidden(self, client: TestClient, actor: Actor, mock_package_service: AsyncMock, role):
        actor.role = role

        response = client.post("/packages", json={"name": "Starter", "token_amount": 10, "price": 19.99})

        assert response.status_code == 403
        assert response.json()["errmesg"] == "Admin access required"
        mock_package_service.create_package.assert_not_called()

    def test_update_forwards_only_sent_fields(self, client: TestClient, mock_package_service: AsyncMock):
        # Arrange
        mock_package_service.update_package.return_value = _package(price=14.99)

        # Act
        response = client.put("/packages/pk_starter", json={"price": 14.99, "valid_until": None})

        # Assert
        assert response.status_code == 200
        params: PackageUpdateParams = mock_package_service.update_package.call_args.kwargs["params"]
        assert params.model_fields_set == {"price", "valid_until"}
        assert params.valid_until is None

    def test_delete_deactivates(self, client: TestClient, mock_package_service: AsyncMock):
        mock_package_service.deactivate_package.return_value = _package(active=False)

        response = client.delete("/packages/pk_starter")

        assert response.status_code == 200
        assert response.json()["results"]["active"] is False


class TestPurchase:
    """Tests for POST /packages/{id}/purchase endpoint."""

    def test_purchase(self, client: TestClient, actor: Actor, mock_package_service: AsyncMock):
        # Arrange
        actor.role = UserRole.USER
        mock_package_service.purchase_package.return_value = PurchaseResponse(
            transaction=TransactionResponse(
                transaction_id="tx_1",
                user_id="us_admin",
                package_id="pk_starter",
                token_amount=10,
                amount=19.99,
                currency="USD",
                payment_method=PaymentMethod.PAYPAL,
                status=TransactionStatus.COMPLETED,
                created_at=NOW,
            ),
            tokens=15,
        )

        # Act
        response = client.post(
            "/packages/pk_starter/purchase",
            json={"payment_method": "paypal", "payment_details": {"transaction_id": "PP-123"}},
        )

        # Assert
        assert response.status_code == 200
        results = response.json()["results"]
        assert results["tokens"] == 15
        assert results["transaction"]["status"] == "completed"

        kwargs = mock_package_service.purchase_package.call_args.kwargs
        assert kwargs["user_id"] == "us_admin"
        assert kwargs["payment_method"] == "paypal"
        assert kwargs["payment_details"] == PaymentDetails(transaction_id="PP-123")

    def test_missing_payment_method(self, client: TestClient, mock_package_service: AsyncMock):
        mock_package_service.purchase_package.side_effect = invalid_request("Payment method is required")

        response = client.post("/packages/pk_starter/purchase", json={})

        assert response.status_code == 400
        assert response.json()["errmesg"] == "Payment method is required"
        assert mock_package_service.purchase_package.call_args.kwargs["payment_details"] is None
