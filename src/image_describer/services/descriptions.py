"""Image description service backed by a multimodal provider."""

import asyncio
import base64
import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError as PydanticValidationError

from image_describer.domain.descriptions import DescriptionResult
from image_describer.domain.errors import RequestError
from image_describer.domain.sessions import ImageUpload

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = (
    "Describe this image in a few sentences. "
    "Mention the main subject, the setting and any visible text."
)

DESCRIPTION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {"description": {"type": "string"}},
    "required": ["description"],
    "additionalProperties": False,
}


class DescriptionClient(Protocol):
    """Interface for a provider that turns one image into text."""

    async def describe(self, *, image: ImageUpload, prompt: str) -> dict[str, object]:
        """Return the raw provider payload for a single image."""


@dataclass
class DescriptionService:
    """Service that issues one description request and validates the result."""

    client: DescriptionClient
    prompt: str = DEFAULT_PROMPT
    timeout_seconds: float | None = None

    async def describe(self, image: ImageUpload) -> str:
        """Describe a single image, raising RequestError on any failure."""
        try:
            raw = await asyncio.wait_for(
                self.client.describe(image=image, prompt=self.prompt),
                timeout=self.timeout_seconds,
            )
            result = DescriptionResult.model_validate(raw)
        except TimeoutError as exc:
            logger.warning(
                "Description request timed out",
                extra={"image_filename": image.filename},
            )
            raise RequestError(image.filename, "timed out") from exc
        except PydanticValidationError as exc:
            logger.warning(
                "Description provider returned an invalid payload",
                extra={"image_filename": image.filename},
            )
            raise RequestError(image.filename, "invalid response") from exc
        except Exception as exc:
            logger.exception(
                "Description request failed",
                extra={"image_filename": image.filename},
            )
            detail = f"{type(exc).__name__}: {exc}"
            raise RequestError(image.filename, detail) from exc
        return result.description


def to_data_url(image: ImageUpload) -> str:
    """Convert an upload to a base64 data URL for image input."""
    mime_type = image.content_type or detect_mime_type(image.content)
    if not mime_type.startswith("image/"):
        mime_type = detect_mime_type(image.content)
    encoded = base64.b64encode(image.content).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:6] in {b"GIF87a", b"GIF89a"}:
        return "image/gif"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
