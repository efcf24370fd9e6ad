"""Shared test fixtures."""

import asyncio
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from image_describer.config import Settings
from image_describer.containers import AppContainer
from image_describer.domain.sessions import ImageUpload, Session
from image_describer.services.descriptions import DescriptionClient, DescriptionService
from image_describer.services.sessions import SessionEvent, SessionManager, SessionStore

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"fake-image-bytes"


@dataclass
class InMemorySessionStore(SessionStore):
    """In-memory session store for tests."""

    stored: list[Session] = field(default_factory=list)
    save_calls: int = 0

    def load(self) -> list[Session]:
        return list(self.stored)

    def save_all(self, sessions: Sequence[Session]) -> None:
        self.stored = list(sessions)
        self.save_calls += 1


@dataclass
class FakeDescriptionClient(DescriptionClient):
    """Fake description client that records the order of calls."""

    failing: set[str] = field(default_factory=set)
    delays: dict[str, float] = field(default_factory=dict)
    on_call: Callable[[ImageUpload], Awaitable[None]] | None = None
    events: list[str] = field(default_factory=list)
    calls: list[tuple[str, float, float]] = field(default_factory=list)

    async def describe(self, *, image: ImageUpload, prompt: str) -> dict[str, object]:
        started = time.monotonic()
        self.events.append(f"start:{image.filename}")
        if self.on_call is not None:
            await self.on_call(image)
        await asyncio.sleep(self.delays.get(image.filename, 0.001))
        self.events.append(f"end:{image.filename}")
        self.calls.append((image.filename, started, time.monotonic()))
        if image.filename in self.failing:
            raise RuntimeError("provider unavailable")
        return {"description": f"A photo named {image.filename}"}

    @property
    def called_filenames(self) -> list[str]:
        return [filename for filename, _, _ in self.calls]


@dataclass
class RecordingListener:
    """Listener that keeps every session event."""

    events: list[SessionEvent] = field(default_factory=list)

    def __call__(self, event: SessionEvent) -> None:
        self.events.append(event)

    def of_kind(self, kind: str) -> list[SessionEvent]:
        return [event for event in self.events if event.kind == kind]


@dataclass
class FakeClock:
    """Clock returning a fixed timestamp in seconds."""

    value: float = 1_700_000_000.0

    def __call__(self) -> float:
        return self.value


def make_upload(filename: str, content: bytes = PNG_BYTES) -> ImageUpload:
    return ImageUpload(filename=filename, content=content, content_type="image/png")


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        openai_api_key="openai-key",
        sessions_path=tmp_path / "sessions.json",
        environment="local",
    )


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def description_client() -> FakeDescriptionClient:
    return FakeDescriptionClient()


@pytest.fixture
def description_service(
    description_client: FakeDescriptionClient,
) -> DescriptionService:
    return DescriptionService(client=description_client, timeout_seconds=5)


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def manager(
    store: InMemorySessionStore,
    description_service: DescriptionService,
    listener: RecordingListener,
) -> SessionManager:
    session_manager = SessionManager(
        store=store,
        description_service=description_service,
        clock=FakeClock(),
    )
    session_manager.load()
    session_manager.subscribe(listener)
    return session_manager


@pytest.fixture
def container(
    settings: Settings,
    description_service: DescriptionService,
    manager: SessionManager,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        description_service=description_service,
        session_manager=manager,
        close_resources=close_resources,
    )
