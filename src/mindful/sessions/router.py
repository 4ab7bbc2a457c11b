"""Watch-session API endpoints — 8 routes for progress, skips, and playback events."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from mindful.auth.dependencies import Identity, get_current_identity
from mindful.dependencies import get_seek_detector, get_session_manager
from mindful.sessions.detector import SeekDetector
from mindful.sessions.manager import Outcome, WatchSessionManager
from mindful.sessions.schemas import (
    EventBatchRequest,
    EventBatchResponse,
    ReflectionRequest,
    SessionEnvelope,
    SessionListResponse,
    SessionOpenRequest,
    SessionUpdateRequest,
    TechniquesRequest,
    WatchSessionResponse,
)
from mindful.sessions.state import Program
from mindful.sessions.store import StoreUnavailable
from mindful.sessions.tracker import PlaybackTracker

router = APIRouter(prefix="/api/v1/sessions", tags=["Sessions"])

_NOT_FOUND = "Session not found"
_UNAVAILABLE = "Session store unavailable"


def _check(outcome: Outcome) -> None:
    if outcome is Outcome.NOT_FOUND:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    if outcome is Outcome.UNAVAILABLE:
        raise HTTPException(status_code=503, detail=_UNAVAILABLE)


def _envelope(session) -> SessionEnvelope:
    if session is None:
        return SessionEnvelope(session=None)
    return SessionEnvelope(session=WatchSessionResponse.model_validate(session))


@router.get("", response_model=SessionListResponse)
async def list_sessions(
    program: Program | None = Query(default=None),
    identity: Identity = Depends(get_current_identity),
    manager: WatchSessionManager = Depends(get_session_manager),
) -> SessionListResponse:
    """All of the caller's sessions, most recently updated first."""
    sessions = await manager.list_sessions(identity, program)
    return SessionListResponse(
        sessions=[WatchSessionResponse.model_validate(s) for s in sessions],
        total=len(sessions),
    )


@router.post("/{content_id}", response_model=SessionEnvelope)
async def open_session(
    content_id: str,
    body: SessionOpenRequest,
    identity: Identity = Depends(get_current_identity),
    manager: WatchSessionManager = Depends(get_session_manager),
) -> SessionEnvelope:
    """Get or create the caller's session for a content item."""
    try:
        session = await manager.get_or_create(identity, content_id, body.title, body.program)
    except StoreUnavailable:
        return SessionEnvelope(session=None)
    return _envelope(session)


@router.patch("/{content_id}", response_model=SessionEnvelope)
async def update_session(
    content_id: str,
    body: SessionUpdateRequest,
    identity: Identity = Depends(get_current_identity),
    manager: WatchSessionManager = Depends(get_session_manager),
) -> SessionEnvelope:
    fields = body.model_dump(exclude_unset=True, exclude={"title"})
    session = await manager.update(identity, content_id, body.title, fields)
    if session is None:
        raise HTTPException(status_code=503, detail=_UNAVAILABLE)
    return _envelope(session)


@router.post("/{content_id}/skip")
async def record_skip(
    content_id: str,
    identity: Identity = Depends(get_current_identity),
    manager: WatchSessionManager = Depends(get_session_manager),
) -> dict:
    _check(await manager.record_skip(identity, content_id))
    return {"recorded": True}


@router.post("/{content_id}/restart", response_model=SessionEnvelope)
async def restart_session(
    content_id: str,
    identity: Identity = Depends(get_current_identity),
    manager: WatchSessionManager = Depends(get_session_manager),
) -> SessionEnvelope:
    """Watch again: position and completion reset, view_count + 1."""
    _check(await manager.restart_session(identity, content_id))
    return _envelope(await manager.get(identity, content_id))


@router.put("/{content_id}/reflection")
async def save_reflection(
    content_id: str,
    body: ReflectionRequest,
    identity: Identity = Depends(get_current_identity),
    manager: WatchSessionManager = Depends(get_session_manager),
) -> dict:
    _check(await manager.save_reflection(identity, content_id, body.text))
    return {"saved": True}


@router.put("/{content_id}/techniques")
async def save_techniques(
    content_id: str,
    body: TechniquesRequest,
    identity: Identity = Depends(get_current_identity),
    manager: WatchSessionManager = Depends(get_session_manager),
) -> dict:
    _check(await manager.save_techniques(identity, content_id, body.techniques))
    return {"saved": True}


@router.post("/{content_id}/events", response_model=EventBatchResponse)
async def process_events(
    content_id: str,
    body: EventBatchRequest,
    identity: Identity = Depends(get_current_identity),
    manager: WatchSessionManager = Depends(get_session_manager),
    detector: SeekDetector = Depends(get_seek_detector),
) -> EventBatchResponse:
    """Apply a batch of playback events in order.

    Skip writes run in the background while events are processed and are
    awaited before responding.
    """
    try:
        session = await manager.get_or_create(identity, content_id, body.title, body.program)
    except StoreUnavailable:
        session = None

    tracker = PlaybackTracker(manager, detector, identity, content_id, body.title, session)
    await tracker.handle_all(body.events)
    session = await tracker.finish()

    envelope = _envelope(session)
    return EventBatchResponse(
        session=envelope.session,
        state=tracker.state,
        skips_detected=tracker.skips_detected,
    )
