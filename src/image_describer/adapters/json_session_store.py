"""JSON file session store for the local device."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from image_describer.domain.sessions import STATUS_DESCRIBED, ImageRecord, Session
from image_describer.services.sessions import SessionStore

logger = logging.getLogger(__name__)

STORE_KEY = "imageSessions"


class StoredImage(BaseModel):
    """Persisted image metadata; raw bytes are not stored."""

    id: str
    filename: str
    content_type: str | None = None
    size_bytes: int = Field(default=0, ge=0)
    description: str = ""
    status: str = STATUS_DESCRIBED


class StoredSession(BaseModel):
    """Persisted session record."""

    id: str
    name: str
    images: list[StoredImage] = Field(default_factory=list)


class StoredState(BaseModel):
    """Top-level document holding every session under one named record."""

    model_config = ConfigDict(populate_by_name=True)

    sessions: list[StoredSession] = Field(default_factory=list, alias=STORE_KEY)


@dataclass
class JsonFileSessionStore(SessionStore):
    """Session store that rewrites a single JSON document on every save."""

    path: Path

    def load(self) -> list[Session]:
        """Read sessions from disk, treating missing or malformed data as empty."""
        if not self.path.exists():
            return []
        try:
            state = StoredState.model_validate_json(
                self.path.read_text(encoding="utf-8")
            )
        except (OSError, ValueError):
            logger.warning(
                "Ignoring unreadable session store", extra={"path": str(self.path)}
            )
            return []
        return [_to_session(stored) for stored in state.sessions]

    def save_all(self, sessions: Sequence[Session]) -> None:
        """Overwrite the JSON document with the given sessions."""
        state = StoredState(sessions=[_from_session(session) for session in sessions])
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        tmp_path.write_text(
            state.model_dump_json(by_alias=True, indent=2), encoding="utf-8"
        )
        tmp_path.replace(self.path)


def _to_session(stored: StoredSession) -> Session:
    return Session(
        id=stored.id,
        name=stored.name,
        images=tuple(
            ImageRecord(
                id=image.id,
                filename=image.filename,
                content_type=image.content_type,
                size_bytes=image.size_bytes,
                description=image.description,
                status=image.status,
            )
            for image in stored.images
        ),
    )


def _from_session(session: Session) -> StoredSession:
    return StoredSession(
        id=session.id,
        name=session.name,
        images=[
            StoredImage(
                id=image.id,
                filename=image.filename,
                content_type=image.content_type,
                size_bytes=image.size_bytes,
                description=image.description,
                status=image.status,
            )
            for image in session.images
        ],
    )
