"""Pipeline dispatcher interface."""

from abc import ABC, abstractmethod


class DispatcherBusy(Exception):
    """The dispatcher cannot take more work right now."""


class DuplicateSubmission(Exception):
    """A pipeline run for this story is already queued or running."""


class PipelineDispatcher(ABC):
    """Abstract interface for running story pipelines in the background."""

    @abstractmethod
    async def submit(self, story_id: int) -> None:
        """Queue a pipeline run for a story without waiting for it.

        Raises DispatcherBusy when full and DuplicateSubmission when the
        story already has a run in flight.
        """
        ...

    @abstractmethod
    def is_full(self) -> bool:
        """True when submit() would be rejected for capacity."""
        ...

    @abstractmethod
    def in_flight(self) -> int:
        """Number of stories queued or running."""
        ...

    @abstractmethod
    async def start(self) -> None:
        """Start the dispatcher (e.g., start worker loops)."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop the dispatcher gracefully."""
        ...
