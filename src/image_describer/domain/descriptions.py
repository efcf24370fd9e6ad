"""Models for description provider results."""

from pydantic import BaseModel, ConfigDict, Field


class DescriptionResult(BaseModel):
    """Structured output returned by a description provider."""

    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(min_length=1)
