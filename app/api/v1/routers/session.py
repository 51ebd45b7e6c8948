from fastapi import APIRouter, Depends, Query, status

from app.api.v1.dependency import CurrentUser, TrainerUser
from app.api.v1.schemas.base import ApiOut
from app.api.v1.schemas.session import (
    BookSessionOut,
    CreateSessionIn,
    DeleteSessionOut,
    ListSessionsOut,
    RateSessionIn,
    RateSessionOut,
    SessionAnalyticsOut,
    SessionOut,
    SessionStatusOut,
    UpdateSessionIn,
    UpdateSessionStatusIn,
)
from app.domain.live.session.session_domain import SessionService
from app.domain.live.session.session_models import (
    SessionCreateParams,
    SessionListFilters,
    SessionResponse,
    SessionUpdateParams,
)
from app.schemas import Difficulty, SessionState

router = APIRouter(prefix="/sessions", tags=["Sessions"])

# Singleton instance
_session_service = SessionService()


def get_session_service() -> SessionService:
    """Get the singleton SessionService instance."""
    return _session_service


def _session_out(session: SessionResponse) -> SessionOut:
    data = session.model_dump(exclude={"streaming"})
    data["started_at"] = session.streaming.started_at
    data["ended_at"] = session.streaming.ended_at
    return SessionOut.model_validate(data)


@router.get("")
async def list_sessions(
    service: SessionService = Depends(get_session_service),
    category: str | None = Query(None, description="Workout category"),
    difficulty: Difficulty | None = Query(None),
    trainer: str | None = Query(None, description="Trainer user_id"),
    session_status: SessionState | None = Query(None, alias="status"),
    search: str | None = Query(None, description="Case-insensitive match on title, description or tags"),
    upcoming: bool = Query(False, description="Only sessions scheduled in the future"),
) -> ApiOut[ListSessionsOut]:
    """Public session catalog, soonest first."""
    filters = SessionListFilters(
        category=category,
        difficulty=difficulty,
        trainer_id=trainer,
        status=session_status,
        search=search,
        upcoming=upcoming,
    )

    result = await service.list_sessions(filters)

    return ApiOut[ListSessionsOut](results=ListSessionsOut(sessions=[_session_out(s) for s in result.sessions]))


@router.get("/trainer/{trainer_id}")
async def list_trainer_sessions(
    trainer_id: str,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[ListSessionsOut]:
    """All sessions of one trainer, most recent first."""
    result = await service.list_sessions_by_trainer(trainer_id)

    return ApiOut[ListSessionsOut](results=ListSessionsOut(sessions=[_session_out(s) for s in result.sessions]))


@router.get("/{session_id}")
async def get_session(
    session_id: str,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[SessionOut]:
    result = await service.get_session(session_id)

    return ApiOut[SessionOut](results=_session_out(result))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_session(
    body: CreateSessionIn,
    user: TrainerUser,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[SessionOut]:
    """Schedule a new session owned by the authenticated trainer."""
    params = SessionCreateParams(trainer_id=user.user_id, **body.model_dump())

    result = await service.create_session(params)

    return ApiOut[SessionOut](results=_session_out(result))


@router.put("/{session_id}")
async def update_session(
    session_id: str,
    body: UpdateSessionIn,
    user: TrainerUser,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[SessionOut]:
    params = SessionUpdateParams(**body.model_dump(exclude_none=True))

    result = await service.update_session(session_id=session_id, actor=user, params=params)

    return ApiOut[SessionOut](results=_session_out(result))


@router.delete("/{session_id}")
async def delete_session(
    session_id: str,
    user: TrainerUser,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[DeleteSessionOut]:
    """Delete a scheduled or cancelled session, refunding its bookings."""
    refunded = await service.delete_session(session_id=session_id, actor=user)

    return ApiOut[DeleteSessionOut](results=DeleteSessionOut(session_id=session_id, refunded_count=refunded))


@router.put("/{session_id}/status")
async def update_session_status(
    session_id: str,
    body: UpdateSessionStatusIn,
    user: TrainerUser,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[SessionStatusOut]:
    result = await service.update_status(session_id=session_id, actor=user, status=body.status)

    return ApiOut[SessionStatusOut](
        results=SessionStatusOut(session=_session_out(result.session), refunded_count=result.refunded_count)
    )


@router.post("/{session_id}/book")
async def book_session(
    session_id: str,
    user: CurrentUser,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[BookSessionOut]:
    """Book a session for the authenticated user, debiting its token cost."""
    result = await service.book_session(session_id=session_id, user_id=user.user_id)

    return ApiOut[BookSessionOut](results=BookSessionOut(session_id=result.session_id, tokens=result.tokens))


@router.post("/{session_id}/rate")
async def rate_session(
    session_id: str,
    body: RateSessionIn,
    user: CurrentUser,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[RateSessionOut]:
    result = await service.rate_session(
        session_id=session_id,
        user_id=user.user_id,
        rating=body.rating,
        feedback=body.feedback,
    )

    return ApiOut[RateSessionOut](results=RateSessionOut.model_validate(result.model_dump()))


@router.get("/{session_id}/analytics")
async def get_session_analytics(
    session_id: str,
    user: TrainerUser,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[SessionAnalyticsOut]:
    result = await service.get_session_analytics(session_id=session_id, actor=user)

    return ApiOut[SessionAnalyticsOut](
        results=SessionAnalyticsOut(session=_session_out(result.session), analytics=result.analytics)
    )
