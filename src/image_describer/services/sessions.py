"""Session and upload state manager."""

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from functools import partial
from typing import Protocol
from uuid import uuid4

from image_describer.domain.errors import (
    NoActiveSessionError,
    RequestError,
    SubmissionInProgressError,
    ValidationError,
)
from image_describer.domain.sessions import (
    FAILURE_PLACEHOLDER,
    STATUS_DESCRIBED,
    STATUS_FAILED,
    ImageRecord,
    ImageUpload,
    Session,
)
from image_describer.services.descriptions import DescriptionService
from image_describer.services.queue import (
    DescriptionJob,
    DescriptionQueue,
    SequentialDescriptionQueue,
)

logger = logging.getLogger(__name__)

EVENT_SESSIONS_CHANGED = "SESSIONS_CHANGED"
EVENT_SESSION_SELECTED = "SESSION_SELECTED"
EVENT_IMAGES_CHANGED = "IMAGES_CHANGED"
EVENT_DESCRIPTION_FAILED = "DESCRIPTION_FAILED"
EVENT_BATCH_COMPLETED = "BATCH_COMPLETED"


class SessionStore(Protocol):
    """Persistence interface for the full set of sessions."""

    def load(self) -> list[Session]:
        """Return every stored session, or an empty list."""

    def save_all(self, sessions: Sequence[Session]) -> None:
        """Overwrite the stored state with the given sessions."""


@dataclass(frozen=True)
class SessionEvent:
    """State change or user-facing notice emitted by the manager."""

    kind: str
    session_id: str | None
    message: str | None = None
    level: str = "info"


SessionListener = Callable[[SessionEvent], None]


@dataclass(frozen=True)
class BatchSummary:
    """Outcome of one submit_images call."""

    session_id: str
    records: tuple[ImageRecord, ...]
    failures: tuple[RequestError, ...]

    @property
    def described_count(self) -> int:
        return sum(1 for record in self.records if record.status == STATUS_DESCRIBED)


@dataclass
class _Batch:
    session_id: str
    records: dict[str, ImageRecord]
    discarded: set[str] = field(default_factory=set)
    failures: list[RequestError] = field(default_factory=list)

    def visible_records(self) -> list[ImageRecord]:
        return [
            record
            for record_id, record in self.records.items()
            if record_id not in self.discarded
        ]


@dataclass
class SessionManager:
    """Owns the active session, the working view and description sequencing.

    The working view is the active session's persisted images followed by the
    records of an in-flight batch. Batch outcomes are matched to records by id,
    so removing an image mid-flight never shifts a result into another row.
    """

    store: SessionStore
    description_service: DescriptionService
    queue: DescriptionQueue = field(default_factory=SequentialDescriptionQueue)
    clock: Callable[[], float] = time.time
    _sessions: list[Session] = field(default_factory=list, init=False)
    _active_session_id: str | None = field(default=None, init=False)
    _batch: _Batch | None = field(default=None, init=False)
    _listeners: list[SessionListener] = field(default_factory=list, init=False)
    _last_issued_id: int = field(default=0, init=False)

    @property
    def sessions(self) -> tuple[Session, ...]:
        return tuple(self._sessions)

    @property
    def active_session_id(self) -> str | None:
        return self._active_session_id

    @property
    def active_session(self) -> Session | None:
        if self._active_session_id is None:
            return None
        index = self._index_of(self._active_session_id)
        return self._sessions[index] if index is not None else None

    @property
    def is_submitting(self) -> bool:
        return self._batch is not None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener and return a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            self._listeners = [
                item for item in self._listeners if item is not listener
            ]

        return unsubscribe

    def load(self) -> None:
        """Replace in-memory state with the sessions held by the store."""
        sessions: list[Session] = []
        seen: set[str] = set()
        for session in self.store.load():
            if session.id in seen:
                logger.warning(
                    "Skipping duplicate stored session",
                    extra={"session_id": session.id},
                )
                continue
            seen.add(session.id)
            sessions.append(session)
        self._sessions = sessions
        self._active_session_id = None
        logger.info("Loaded %d sessions", len(sessions))
        self._notify(SessionEvent(EVENT_SESSIONS_CHANGED, None))

    def working_view(self) -> list[ImageRecord]:
        """Return the active session's images including pending uploads."""
        session = self.active_session
        if session is None:
            return []
        view = list(session.images)
        if self._batch is not None and self._batch.session_id == session.id:
            view.extend(self._batch.visible_records())
        return view

    def create_session(self, name: str) -> Session:
        """Create an empty session, persist it and make it active."""
        cleaned = name.strip()
        if not cleaned:
            raise ValidationError("Session name cannot be empty")
        session = Session(id=self._next_session_id(), name=cleaned)
        self._sessions.append(session)
        self._active_session_id = session.id
        self._persist()
        logger.info("Created session", extra={"session_id": session.id})
        self._notify(SessionEvent(EVENT_SESSIONS_CHANGED, session.id))
        self._notify(SessionEvent(EVENT_SESSION_SELECTED, session.id))
        return session

    def delete_session(self, session_id: str) -> None:
        """Delete a session, moving the active marker to the first remaining one."""
        index = self._index_of(session_id)
        if index is None:
            logger.debug("Ignoring delete of unknown session %s", session_id)
            return
        del self._sessions[index]
        was_active = self._active_session_id == session_id
        if was_active:
            self._active_session_id = self._sessions[0].id if self._sessions else None
        self._persist()
        logger.info("Deleted session", extra={"session_id": session_id})
        self._notify(SessionEvent(EVENT_SESSIONS_CHANGED, session_id))
        if was_active:
            self._notify(SessionEvent(EVENT_SESSION_SELECTED, self._active_session_id))

    def select_session(self, session_id: str) -> None:
        """Make an existing session active; unknown ids are ignored."""
        if session_id == self._active_session_id:
            return
        if self._index_of(session_id) is None:
            logger.debug("Ignoring select of unknown session %s", session_id)
            return
        self._active_session_id = session_id
        self._notify(SessionEvent(EVENT_SESSION_SELECTED, session_id))

    async def submit_images(self, images: Sequence[ImageUpload]) -> BatchSummary:
        """Describe images one by one and append them to the active session."""
        session = self._require_active_session()
        if self._batch is not None:
            raise SubmissionInProgressError()
        if not images:
            raise ValidationError("At least one image is required")

        records: dict[str, ImageRecord] = {}
        jobs: list[DescriptionJob] = []
        for image in images:
            record = ImageRecord(
                id=uuid4().hex,
                filename=image.filename,
                content_type=image.content_type,
                size_bytes=len(image.content),
            )
            records[record.id] = record
            jobs.append(DescriptionJob(record_id=record.id, image=image))

        batch = _Batch(session_id=session.id, records=records)
        self._batch = batch
        try:
            self._notify(SessionEvent(EVENT_IMAGES_CHANGED, session.id))
            await self.queue.run(jobs, partial(self._describe, batch))
        finally:
            self._batch = None
        return self._merge_batch(batch)

    def remove_image(self, index: int) -> ImageRecord | None:
        """Remove the working-view entry at index; out-of-range is a no-op."""
        session = self._require_active_session()
        if 0 <= index < len(session.images):
            images = list(session.images)
            removed = images.pop(index)
            self._replace_session(replace(session, images=tuple(images)))
            self._persist()
            self._notify(SessionEvent(EVENT_IMAGES_CHANGED, session.id))
            return removed

        pending: list[ImageRecord] = []
        if self._batch is not None and self._batch.session_id == session.id:
            pending = self._batch.visible_records()
        pending_index = index - len(session.images)
        if self._batch is not None and 0 <= pending_index < len(pending):
            removed = pending[pending_index]
            self._batch.discarded.add(removed.id)
            self._notify(SessionEvent(EVENT_IMAGES_CHANGED, session.id))
            return removed

        logger.debug("Ignoring out-of-range image index %d", index)
        return None

    async def _describe(self, batch: _Batch, job: DescriptionJob) -> None:
        if job.record_id in batch.discarded:
            logger.debug("Skipping removed image", extra={"record_id": job.record_id})
            return
        try:
            description = await self.description_service.describe(job.image)
        except RequestError as exc:
            self._resolve(batch, job.record_id, FAILURE_PLACEHOLDER, STATUS_FAILED)
            if job.record_id in batch.discarded:
                return
            batch.failures.append(exc)
            self._notify(
                SessionEvent(
                    EVENT_DESCRIPTION_FAILED,
                    batch.session_id,
                    message=str(exc),
                    level="error",
                )
            )
            return
        self._resolve(batch, job.record_id, description, STATUS_DESCRIBED)

    def _resolve(
        self, batch: _Batch, record_id: str, description: str, status: str
    ) -> None:
        record = batch.records[record_id]
        batch.records[record_id] = replace(
            record, description=description, status=status
        )
        if record_id in batch.discarded:
            logger.debug("Dropping outcome for removed image %s", record_id)
            return
        self._notify(SessionEvent(EVENT_IMAGES_CHANGED, batch.session_id))

    def _merge_batch(self, batch: _Batch) -> BatchSummary:
        new_records = tuple(batch.visible_records())
        index = self._index_of(batch.session_id)
        if index is None:
            logger.warning(
                "Session deleted before descriptions finished",
                extra={"session_id": batch.session_id},
            )
        else:
            session = self._sessions[index]
            self._sessions[index] = replace(
                session, images=session.images + new_records
            )
            self._persist()
            self._notify(SessionEvent(EVENT_IMAGES_CHANGED, batch.session_id))

        if batch.failures:
            total = len(new_records)
            message = f"{len(batch.failures)} of {total} descriptions failed."
            level = "warning"
        else:
            message = "All descriptions generated successfully."
            level = "info"
        self._notify(
            SessionEvent(EVENT_BATCH_COMPLETED, batch.session_id, message, level)
        )
        return BatchSummary(
            session_id=batch.session_id,
            records=new_records,
            failures=tuple(batch.failures),
        )

    def _require_active_session(self) -> Session:
        session = self.active_session
        if session is None:
            raise NoActiveSessionError()
        return session

    def _replace_session(self, session: Session) -> None:
        index = self._index_of(session.id)
        if index is not None:
            self._sessions[index] = session

    def _index_of(self, session_id: str) -> int | None:
        for index, session in enumerate(self._sessions):
            if session.id == session_id:
                return index
        return None

    def _next_session_id(self) -> str:
        """Allocate a millisecond timestamp id that no session has used."""
        candidate = max(int(self.clock() * 1000), self._last_issued_id + 1)
        existing = {session.id for session in self._sessions}
        while str(candidate) in existing:
            candidate += 1
        self._last_issued_id = candidate
        return str(candidate)

    def _persist(self) -> None:
        self.store.save_all(list(self._sessions))

    def _notify(self, event: SessionEvent) -> None:
        for listener in list(self._listeners):
            listener(event)
