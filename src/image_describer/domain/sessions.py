"""Domain models for image sessions."""

from dataclasses import dataclass, field

STATUS_PENDING = "PENDING"
STATUS_DESCRIBED = "DESCRIBED"
STATUS_FAILED = "FAILED"

FAILURE_PLACEHOLDER = "Failed to generate description"


@dataclass(frozen=True)
class ImageUpload:
    """Raw payload of one file selected for upload."""

    filename: str
    content: bytes
    content_type: str | None = None


@dataclass(frozen=True)
class ImageRecord:
    """One uploaded image paired with its (possibly pending) description."""

    id: str
    filename: str
    content_type: str | None
    size_bytes: int
    description: str = ""
    status: str = STATUS_PENDING

    @property
    def is_loading(self) -> bool:
        return self.status == STATUS_PENDING


@dataclass(frozen=True)
class Session:
    """A named grouping of images and their descriptions."""

    id: str
    name: str
    images: tuple[ImageRecord, ...] = field(default_factory=tuple)
