"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from image_describer.adapters.http_description_client import HttpxDescriptionClient
from image_describer.adapters.json_session_store import JsonFileSessionStore
from image_describer.adapters.openai_description_client import (
    OpenAIDescriptionClient,
)
from image_describer.config import BACKEND_HTTP, Settings, parse_description_backend
from image_describer.services.descriptions import DescriptionService
from image_describer.services.queue import SequentialDescriptionQueue
from image_describer.services.sessions import SessionManager


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    description_service: DescriptionService
    session_manager: SessionManager
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    backend = parse_description_backend(resolved_settings.description_backend)
    client: HttpxDescriptionClient | OpenAIDescriptionClient
    if backend == BACKEND_HTTP:
        if not resolved_settings.description_endpoint_url:
            raise ValueError("description_endpoint_url is required for http backend")
        client = HttpxDescriptionClient.create(
            endpoint_url=resolved_settings.description_endpoint_url,
            timeout_seconds=resolved_settings.description_timeout_seconds,
        )
    else:
        if not resolved_settings.openai_api_key:
            raise ValueError("openai_api_key is required for openai backend")
        client = OpenAIDescriptionClient.create(
            api_key=resolved_settings.openai_api_key,
            model=resolved_settings.openai_model,
            reasoning_effort=resolved_settings.openai_reasoning_effort,
            store=resolved_settings.openai_store,
        )
    description_service = DescriptionService(
        client=client,
        prompt=resolved_settings.description_prompt,
        timeout_seconds=resolved_settings.description_timeout_seconds,
    )
    session_manager = SessionManager(
        store=JsonFileSessionStore(resolved_settings.sessions_path),
        description_service=description_service,
        queue=SequentialDescriptionQueue(),
    )
    session_manager.load()

    async def close_resources() -> None:
        await client.close()

    return AppContainer(
        settings=resolved_settings,
        description_service=description_service,
        session_manager=session_manager,
        close_resources=close_resources,
    )
