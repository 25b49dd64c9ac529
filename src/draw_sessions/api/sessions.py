"""Session API endpoints."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request, status
from fastapi.responses import StreamingResponse

from draw_sessions.api.errors import ApiError, session_not_found
from draw_sessions.api.models import (
    CreateSessionRequest,
    JoinSessionRequest,
    ReadyRequest,
)
from draw_sessions.api.stream import STREAM_HEADERS, SessionEventStream
from draw_sessions.domain.records import session_view
from draw_sessions.domain.sessions import SessionJoinError

if TYPE_CHECKING:
    from draw_sessions.containers import AppContainer
    from draw_sessions.services.sessions import SessionManager

router = APIRouter(prefix="/session", tags=["session"])


def _manager(request: Request) -> SessionManager:
    container: AppContainer = request.app.state.container
    return container.session_manager


@router.post("/create")
async def create_session(
    payload: CreateSessionRequest, request: Request
) -> dict[str, object]:
    """Create a draw session."""
    try:
        session_id = await _manager(request).create_session(
            payload.participant_count, payload.title or ""
        )
    except ValueError as exc:
        raise ApiError(
            status.HTTP_400_BAD_REQUEST,
            "Invalid participant count",
            "INVALID_PARTICIPANT_COUNT",
        ) from exc
    return {"sessionId": session_id}


@router.get("/{session_id}")
async def get_session(session_id: str, request: Request) -> dict[str, object]:
    """Return the current state of a session."""
    session = await _manager(request).get_session(session_id)
    if session is None:
        raise session_not_found()
    return session_view(session)


@router.delete("/{session_id}")
async def delete_session(session_id: str, request: Request) -> dict[str, object]:
    """Remove a session from memory and persistence."""
    if not await _manager(request).delete_session(session_id):
        raise session_not_found()
    return {"success": True}


@router.post("/{session_id}/join")
async def join_session(
    session_id: str, payload: JoinSessionRequest, request: Request
) -> dict[str, object]:
    """Join a session at the chosen position."""
    if not payload.name.strip():
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Invalid name", "INVALID_NAME")
    try:
        participant_id = await _manager(request).join_session(
            session_id, payload.name, payload.position
        )
    except SessionJoinError as exc:
        raise ApiError(
            status.HTTP_400_BAD_REQUEST, "Failed to join session", exc.code.value
        ) from exc
    return {"participantId": participant_id}


@router.post("/{session_id}/ready")
async def mark_ready(
    session_id: str, payload: ReadyRequest, request: Request
) -> dict[str, object]:
    """Mark a participant as ready."""
    manager = _manager(request)
    session = await manager.get_session(session_id)
    if session is None:
        raise session_not_found()
    if payload.participant_id not in session.participants:
        raise ApiError(
            status.HTTP_404_NOT_FOUND,
            "Participant not found",
            "PARTICIPANT_NOT_FOUND",
        )
    if not await manager.mark_participant_ready(session_id, payload.participant_id):
        raise ApiError(
            status.HTTP_400_BAD_REQUEST,
            "Failed to mark as ready",
            "SESSION_ALREADY_STARTED",
        )
    return {"success": True}


@router.post("/{session_id}/start")
async def start_session(session_id: str, request: Request) -> dict[str, object]:
    """Run the draw."""
    manager = _manager(request)
    session = await manager.get_session(session_id)
    if session is None:
        raise session_not_found()
    if session.started:
        raise ApiError(
            status.HTTP_400_BAD_REQUEST,
            "Session already started",
            "SESSION_ALREADY_STARTED",
        )
    if not await manager.start_session(session_id):
        raise ApiError(
            status.HTTP_400_BAD_REQUEST,
            "Cannot start session. Not all participants are ready.",
            "NOT_ALL_READY",
        )
    return {"success": True}


@router.post("/{session_id}/heartbeat")
async def heartbeat(session_id: str, request: Request) -> dict[str, object]:
    """Keep a session alive. Unknown sessions still get a 200."""
    touched_at = await _manager(request).heartbeat(session_id)
    timestamp = touched_at or datetime.now(tz=UTC)
    return {
        "success": touched_at is not None,
        "sessionId": session_id,
        "timestamp": timestamp.isoformat(),
    }


@router.get("/{session_id}/stream")
async def stream_session(session_id: str, request: Request) -> StreamingResponse:
    """Stream session events as server-sent events."""
    container: AppContainer = request.app.state.container
    session = await container.session_manager.get_session(session_id)
    if session is None:
        raise session_not_found()
    stream = SessionEventStream(
        manager=container.session_manager,
        session=session,
        is_disconnected=request.is_disconnected,
        poll_interval_seconds=container.settings.stream_poll_seconds,
    )
    return StreamingResponse(
        stream.events(),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
    )
