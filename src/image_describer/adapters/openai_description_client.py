"""OpenAI Responses API client for image descriptions."""

import json
from dataclasses import dataclass

from openai import AsyncOpenAI

from image_describer.domain.sessions import ImageUpload
from image_describer.services.descriptions import (
    DESCRIPTION_SCHEMA,
    DescriptionClient,
    to_data_url,
)


@dataclass
class OpenAIDescriptionClient(DescriptionClient):
    """Description client backed by OpenAI Responses API."""

    client: AsyncOpenAI
    model: str
    reasoning_effort: str | None = None
    store: bool = False

    @classmethod
    def create(
        cls,
        api_key: str,
        model: str,
        reasoning_effort: str | None = None,
        store: bool = False,
    ) -> "OpenAIDescriptionClient":
        """Create an OpenAI description client."""
        return cls(
            client=AsyncOpenAI(api_key=api_key),
            model=model,
            reasoning_effort=reasoning_effort,
            store=store,
        )

    async def describe(self, *, image: ImageUpload, prompt: str) -> dict[str, object]:
        """Call OpenAI Responses API with structured outputs."""
        request_payload: dict[str, object] = {
            "model": self.model,
            "input": [
                {
                    "role": "user",
                    "content": [
                        {"type": "input_text", "text": prompt},
                        {"type": "input_image", "image_url": to_data_url(image)},
                    ],
                }
            ],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": "image_description",
                    "strict": True,
                    "schema": DESCRIPTION_SCHEMA,
                }
            },
            "store": self.store,
        }
        if self.reasoning_effort:
            request_payload["reasoning"] = {"effort": self.reasoning_effort}

        response = await self.client.responses.create(**request_payload)
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return json.loads(output_text)

    async def close(self) -> None:
        """Close the underlying OpenAI client."""
        await self.client.close()
