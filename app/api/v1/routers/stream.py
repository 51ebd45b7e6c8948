from fastapi import APIRouter, Depends, status

from app.api.v1.dependency import CurrentUser, TrainerUser
from app.api.v1.routers.session import get_session_service
from app.api.v1.schemas.base import ApiOut
from app.api.v1.schemas.stream import (
    ChatMessageOut,
    ReactionOut,
    SendMessageIn,
    SendReactionIn,
    StreamDetailsOut,
    StreamEndOut,
    StreamLeaveOut,
    StreamParticipantsOut,
)
from app.domain.live.session.session_domain import SessionService

router = APIRouter(prefix="/stream", tags=["Stream"])


@router.get("/{session_id}")
async def get_stream_details(
    session_id: str,
    user: CurrentUser,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[StreamDetailsOut]:
    """Stream state for the caller: a host credential, a viewer credential or a start hint."""
    result = await service.get_stream_details(session_id=session_id, actor=user)

    return ApiOut[StreamDetailsOut](results=StreamDetailsOut.model_validate(result.model_dump()))


@router.post("/{session_id}/start")
async def start_stream(
    session_id: str,
    user: TrainerUser,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[StreamDetailsOut]:
    result = await service.start_stream(session_id=session_id, actor=user)

    return ApiOut[StreamDetailsOut](results=StreamDetailsOut.model_validate(result.model_dump()))


@router.post("/{session_id}/end")
async def end_stream(
    session_id: str,
    user: TrainerUser,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[StreamEndOut]:
    result = await service.end_stream(session_id=session_id, actor=user)

    return ApiOut[StreamEndOut](results=StreamEndOut.model_validate(result.model_dump()))


@router.post("/{session_id}/join")
async def join_stream(
    session_id: str,
    user: CurrentUser,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[StreamDetailsOut]:
    result = await service.join_stream(session_id=session_id, actor=user)

    return ApiOut[StreamDetailsOut](results=StreamDetailsOut.model_validate(result.model_dump()))


@router.post("/{session_id}/leave")
async def leave_stream(
    session_id: str,
    user: CurrentUser,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[StreamLeaveOut]:
    result = await service.leave_stream(session_id=session_id, actor=user)

    return ApiOut[StreamLeaveOut](results=StreamLeaveOut.model_validate(result.model_dump()))


@router.get("/{session_id}/participants")
async def get_stream_participants(
    session_id: str,
    user: TrainerUser,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[StreamParticipantsOut]:
    result = await service.get_stream_participants(session_id=session_id, actor=user)

    return ApiOut[StreamParticipantsOut](results=StreamParticipantsOut.model_validate(result.model_dump()))


@router.post("/{session_id}/message", status_code=status.HTTP_201_CREATED)
async def send_message(
    session_id: str,
    body: SendMessageIn,
    user: CurrentUser,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[ChatMessageOut]:
    result = await service.send_message(session_id=session_id, actor=user, message=body.message)

    return ApiOut[ChatMessageOut](results=ChatMessageOut.model_validate(result.model_dump()))


@router.post("/{session_id}/reaction", status_code=status.HTTP_201_CREATED)
async def send_reaction(
    session_id: str,
    body: SendReactionIn,
    user: CurrentUser,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[ReactionOut]:
    result = await service.send_reaction(session_id=session_id, actor=user, reaction_type=body.type)

    return ApiOut[ReactionOut](results=ReactionOut.model_validate(result.model_dump()))
