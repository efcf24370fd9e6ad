"""HTTP description provider client."""

from dataclasses import dataclass

import httpx

from image_describer.domain.sessions import ImageUpload
from image_describer.services.descriptions import DescriptionClient, detect_mime_type


@dataclass
class HttpxDescriptionClient(DescriptionClient):
    """Posts one image as a single-field multipart form to a provider endpoint.

    The provider owns its prompt, so the prompt argument is not sent.
    """

    endpoint_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 60.0

    @classmethod
    def create(
        cls, endpoint_url: str, timeout_seconds: float = 60.0
    ) -> "HttpxDescriptionClient":
        """Create a description client with a managed httpx session."""
        return cls(
            endpoint_url=endpoint_url,
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
        )

    async def describe(self, *, image: ImageUpload, prompt: str) -> dict[str, object]:
        """Upload the image and return the provider's JSON payload."""
        content_type = image.content_type or detect_mime_type(image.content)
        response = await self.http_client.post(
            self.endpoint_url,
            files={"image": (image.filename, image.content, content_type)},
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
