"""Unit tests for session router endpoints."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.v1.dependency import get_current_user
from app.api.v1.errors import app_error_handler
from app.api.v1.routers.session import get_session_service, router
from app.domain.live.session.session_domain import SessionService
from app.domain.live.session.session_models import (
    BookingResponse,
    SessionCreateParams,
    SessionListFilters,
    SessionListResponse,
    SessionResponse,
    SessionStatusResponse,
)
from app.domain.utils.actor import Actor
from app.schemas import Difficulty, SessionState, UserRole
from app.schemas.session import StreamingDetails
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


def _session_response(**overrides) -> SessionResponse:
    now = datetime.now(timezone.utc)
    data = dict(
        session_id="se_test_123",
        trainer_id="us_trainer",
        title="Morning Flow",
        description="Gentle vinyasa",
        category="Yoga",
        difficulty=Difficulty.BEGINNER,
        scheduled_at=now + timedelta(days=1),
        duration=45,
        token_cost=2,
        max_participants=10,
        status=SessionState.SCHEDULED,
        created_at=now,
        updated_at=now,
    )
    data.update(overrides)
    return SessionResponse(**data)


@pytest.fixture
def actor() -> Actor:
    return Actor(user_id="us_trainer", role=UserRole.TRAINER)


@pytest.fixture
def mock_session_service() -> AsyncMock:
    """Create a mock SessionService."""
    return AsyncMock(spec=SessionService)


@pytest.fixture
def test_app(actor: Actor, mock_session_service: AsyncMock) -> FastAPI:
    """Create FastAPI test app with dependency overrides."""
    app = FastAPI()

    # Trainer/admin guards resolve through get_current_user
    app.dependency_overrides[get_current_user] = lambda: actor
    app.dependency_overrides[get_session_service] = lambda: mock_session_service

    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]

    app.include_router(router)
    return app


@pytest.fixture
def client(test_app: FastAPI) -> TestClient:
    return TestClient(test_app)


class TestListSessions:
    """Tests for GET /sessions endpoint."""

    def test_filters_are_forwarded(self, client: TestClient, mock_session_service: AsyncMock):
        # Arrange
        mock_session_service.list_sessions.return_value = SessionListResponse(sessions=[_session_response()])

        # Act
        response = client.get(
            "/sessions",
            params={"category": "Yoga", "difficulty": "Beginner", "status": "scheduled", "upcoming": "true"},
        )

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert [s["session_id"] for s in data["results"]["sessions"]] == ["se_test_123"]

        filters = mock_session_service.list_sessions.call_args.args[0]
        assert filters == SessionListFilters(
            category="Yoga",
            difficulty=Difficulty.BEGINNER,
            status=SessionState.SCHEDULED,
            upcoming=True,
        )

    def test_invalid_status_filter(self, client: TestClient, mock_session_service: AsyncMock):
        response = client.get("/sessions", params={"status": "paused"})

        assert response.status_code == 422
        mock_session_service.list_sessions.assert_not_called()


class TestGetSession:
    def test_streaming_times_are_flattened(self, client: TestClient, mock_session_service: AsyncMock):
        # Arrange
        started = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
        mock_session_service.get_session.return_value = _session_response(
            status=SessionState.LIVE,
            streaming=StreamingDetails(channel_name="session_se_test_123", started_at=started),
        )

        # Act
        response = client.get("/sessions/se_test_123")

        # Assert
        assert response.status_code == 200
        results = response.json()["results"]
        assert results["status"] == "live"
        assert results["started_at"].startswith("2026-03-01T09:00:00")
        assert results["ended_at"] is None
        assert "streaming" not in results

    def test_not_found(self, client: TestClient, mock_session_service: AsyncMock):
        # Arrange
        mock_session_service.get_session.side_effect = AppError(
            errcode=AppErrorCode.E_SESSION_NOT_FOUND,
            errmesg="Session not found",
            status_code=HttpStatusCode.NOT_FOUND,
        )

        # Act
        response = client.get("/sessions/se_missing")

        # Assert
        assert response.status_code == 404
        data = response.json()
        assert data["success"] is False
        assert data["errcode"] == "E_SESSION_NOT_FOUND"
        assert data["errmesg"] == "Session not found"


class TestCreateSession:
    """Tests for POST /sessions endpoint."""

    def test_trainer_creates_session(self, client: TestClient, mock_session_service: AsyncMock):
        # Arrange
        mock_session_service.create_session.return_value = _session_response()
        body = {
            "title": "Morning Flow",
            "description": "Gentle vinyasa",
            "category": "Yoga",
            "difficulty": "Beginner",
            "scheduled_at": "2030-01-01T08:00:00Z",
            "duration": 45,
            "token_cost": 2,
        }

        # Act
        response = client.post("/sessions", json=body)

        # Assert
        assert response.status_code == 201
        params: SessionCreateParams = mock_session_service.create_session.call_args.args[0]
        assert params.trainer_id == "us_trainer"
        assert params.scheduled_at == datetime(2030, 1, 1, 8, 0, tzinfo=timezone.utc)
        assert params.max_participants == 0

    def test_member_forbidden(self, client: TestClient, actor: Actor, mock_session_service: AsyncMock):
        # Arrange
        actor.role = UserRole.USER

        # Act
        response = client.post(
            "/sessions",
            json={
                "title": "x",
                "description": "y",
                "category": "Yoga",
                "difficulty": "Beginner",
                "scheduled_at": "2030-01-01T08:00:00Z",
                "duration": 30,
            },
        )

        # Assert
        assert response.status_code == 403
        assert response.json()["errmesg"] == "Trainer access required"
        mock_session_service.create_session.assert_not_called()

    def test_invalid_duration(self, client: TestClient, mock_session_service: AsyncMock):
        response = client.post(
            "/sessions",
            json={
                "title": "x",
                "description": "y",
                "category": "Yoga",
                "difficulty": "Beginner",
                "scheduled_at": "2030-01-01T08:00:00Z",
                "duration": 0,
            },
        )

        assert response.status_code == 422


class TestStatusAndDelete:
    def test_cancel_reports_refunds(self, client: TestClient, mock_session_service: AsyncMock):
        # Arrange
        mock_session_service.update_status.return_value = SessionStatusResponse(
            session=_session_response(status=SessionState.CANCELLED),
            refunded_count=3,
        )

        # Act
        response = client.put("/sessions/se_test_123/status", json={"status": "cancelled"})

        # Assert
        assert response.status_code == 200
        results = response.json()["results"]
        assert results["refunded_count"] == 3
        assert results["session"]["status"] == "cancelled"
        kwargs = mock_session_service.update_status.call_args.kwargs
        assert kwargs["status"] == "cancelled"
        assert kwargs["actor"].user_id == "us_trainer"

    def test_delete(self, client: TestClient, mock_session_service: AsyncMock):
        mock_session_service.delete_session.return_value = 2

        response = client.delete("/sessions/se_test_123")

        assert response.status_code == 200
        assert response.json()["results"] == {"session_id": "se_test_123", "refunded_count": 2}


class TestBookSession:
    def test_member_books(self, client: TestClient, actor: Actor, mock_session_service: AsyncMock):
        # Arrange
        actor.role = UserRole.USER
        mock_session_service.book_session.return_value = BookingResponse(session_id="se_test_123", tokens=4)

        # Act
        response = client.post("/sessions/se_test_123/book")

        # Assert
        assert response.status_code == 200
        assert response.json()["results"] == {"session_id": "se_test_123", "tokens": 4}
        mock_session_service.book_session.assert_called_once_with(session_id="se_test_123", user_id="us_trainer")

    def test_insufficient_tokens(self, client: TestClient, mock_session_service: AsyncMock):
        mock_session_service.book_session.side_effect = AppError(
            errcode=AppErrorCode.E_INSUFFICIENT_TOKENS,
            errmesg="Insufficient tokens",
        )

        response = client.post("/sessions/se_test_123/book")

        assert response.status_code == 400
        assert response.json()["errcode"] == "E_INSUFFICIENT_TOKENS"


class TestAuthRequired:
    def test_missing_bearer_token(self, mock_session_service: AsyncMock):
        # Arrange: no identity override
        app = FastAPI()
        app.dependency_overrides[get_session_service] = lambda: mock_session_service
        app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
        app.include_router(router)

        # Act
        response = TestClient(app).post("/sessions/se_test_123/book")

        # Assert
        assert response.status_code == 401
        assert response.json()["errcode"] == "E_BAD_TOKEN"
        mock_session_service.book_session.assert_not_called()
