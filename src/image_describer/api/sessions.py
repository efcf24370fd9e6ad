"""Session and upload endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, File, Request, UploadFile, status

from image_describer.api.models import (
    BatchSummaryOut,
    CreateSessionRequest,
    ImageRecordOut,
    SessionListOut,
    SessionOut,
    WorkingViewOut,
)
from image_describer.domain.errors import NoActiveSessionError
from image_describer.domain.sessions import ImageUpload

if TYPE_CHECKING:
    from image_describer.containers import AppContainer
    from image_describer.services.sessions import SessionManager

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _manager(request: Request) -> SessionManager:
    container: AppContainer = request.app.state.container
    return container.session_manager


def _session_list(manager: SessionManager) -> SessionListOut:
    return SessionListOut(
        sessions=[SessionOut.from_session(session) for session in manager.sessions],
        active_session_id=manager.active_session_id,
    )


def _working_view(manager: SessionManager) -> WorkingViewOut:
    session = manager.active_session
    return WorkingViewOut(
        session_id=session.id if session else "",
        images=[
            ImageRecordOut.from_record(record) for record in manager.working_view()
        ],
        is_submitting=manager.is_submitting,
    )


@router.get("")
async def list_sessions(request: Request) -> SessionListOut:
    """Return every session and the active session id."""
    return _session_list(_manager(request))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_session(payload: CreateSessionRequest, request: Request) -> SessionOut:
    """Create a session and make it active."""
    session = _manager(request).create_session(payload.name)
    return SessionOut.from_session(session)


@router.post("/{session_id}/select")
async def select_session(session_id: str, request: Request) -> SessionListOut:
    """Make a session active; unknown ids leave the state unchanged."""
    manager = _manager(request)
    manager.select_session(session_id)
    return _session_list(manager)


@router.delete("/{session_id}")
async def delete_session(session_id: str, request: Request) -> SessionListOut:
    """Delete a session."""
    manager = _manager(request)
    manager.delete_session(session_id)
    return _session_list(manager)


@router.get("/active/images")
async def active_images(request: Request) -> WorkingViewOut:
    """Return the working view of the active session."""
    manager = _manager(request)
    if manager.active_session is None:
        raise NoActiveSessionError()
    return _working_view(manager)


@router.post("/active/images")
async def submit_images(
    request: Request, images: list[UploadFile] = File(...)
) -> BatchSummaryOut:
    """Describe uploaded images in order and append them to the active session."""
    uploads = [
        ImageUpload(
            filename=upload.filename or "image",
            content=await upload.read(),
            content_type=upload.content_type,
        )
        for upload in images
    ]
    summary = await _manager(request).submit_images(uploads)
    return BatchSummaryOut.from_summary(summary)


@router.delete("/active/images/{index}")
async def remove_image(index: int, request: Request) -> WorkingViewOut:
    """Remove one image from the active session."""
    manager = _manager(request)
    manager.remove_image(index)
    return _working_view(manager)
