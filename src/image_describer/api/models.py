"""Pydantic models for the HTTP API."""

from pydantic import BaseModel

from image_describer.domain.errors import RequestError
from image_describer.domain.sessions import ImageRecord, Session
from image_describer.services.sessions import BatchSummary


class CreateSessionRequest(BaseModel):
    """Payload for creating a session."""

    name: str


class DescriptionResponse(BaseModel):
    """Description provider response."""

    description: str


class ImageRecordOut(BaseModel):
    """One row of the working view."""

    id: str
    filename: str
    content_type: str | None = None
    size_bytes: int
    description: str
    status: str
    is_loading: bool

    @classmethod
    def from_record(cls, record: ImageRecord) -> "ImageRecordOut":
        return cls(
            id=record.id,
            filename=record.filename,
            content_type=record.content_type,
            size_bytes=record.size_bytes,
            description=record.description,
            status=record.status,
            is_loading=record.is_loading,
        )


class SessionOut(BaseModel):
    """Session summary for the session list."""

    id: str
    name: str
    image_count: int

    @classmethod
    def from_session(cls, session: Session) -> "SessionOut":
        return cls(id=session.id, name=session.name, image_count=len(session.images))


class SessionListOut(BaseModel):
    """All sessions plus the active marker."""

    sessions: list[SessionOut]
    active_session_id: str | None = None


class WorkingViewOut(BaseModel):
    """Images of the active session, including pending uploads."""

    session_id: str
    images: list[ImageRecordOut]
    is_submitting: bool


class FailureOut(BaseModel):
    """A single failed description request."""

    filename: str
    message: str

    @classmethod
    def from_error(cls, error: RequestError) -> "FailureOut":
        return cls(filename=error.filename, message=str(error))


class BatchSummaryOut(BaseModel):
    """Result of submitting a batch of images."""

    session_id: str
    images: list[ImageRecordOut]
    failures: list[FailureOut]
    described_count: int

    @classmethod
    def from_summary(cls, summary: BatchSummary) -> "BatchSummaryOut":
        return cls(
            session_id=summary.session_id,
            images=[ImageRecordOut.from_record(record) for record in summary.records],
            failures=[FailureOut.from_error(error) for error in summary.failures],
            described_count=summary.described_count,
        )
