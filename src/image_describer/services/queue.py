"""Task queue abstraction for description requests."""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Protocol

from image_describer.domain.sessions import ImageUpload


@dataclass(frozen=True)
class DescriptionJob:
    """One queued description request for a submitted record."""

    record_id: str
    image: ImageUpload


JobWorker = Callable[[DescriptionJob], Awaitable[None]]


class DescriptionQueue(Protocol):
    """Interface for scheduling description jobs."""

    async def run(self, jobs: Sequence[DescriptionJob], worker: JobWorker) -> None:
        """Run every job through the worker and return once all have finished."""


@dataclass
class SequentialDescriptionQueue(DescriptionQueue):
    """Runs jobs one at a time in submission order.

    Job ``i + 1`` starts only after the worker has returned for job ``i``,
    which includes applying its outcome.
    """

    async def run(self, jobs: Sequence[DescriptionJob], worker: JobWorker) -> None:
        """Await the worker for each job in order."""
        for job in jobs:
            await worker(job)
