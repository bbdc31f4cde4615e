"""Legal processing-status transitions and the named operations that apply them.

Status order: pending/processing < generating_audio < completed. ``error`` is
reachable from any non-terminal status. Nothing leaves a terminal status.
"""

from typing import TYPE_CHECKING, Optional

from storylens.stories.models import (
    ERROR_CONTENT,
    ERROR_TITLE,
    ProcessingStatus,
    StoryRecord,
)

if TYPE_CHECKING:
    from storylens.stories.store import StoryStore


_RANK = {
    ProcessingStatus.PENDING: 0,
    ProcessingStatus.PROCESSING: 0,
    ProcessingStatus.GENERATING_AUDIO: 1,
    ProcessingStatus.COMPLETED: 2,
}


class InvalidTransition(ValueError):
    """Raised when a status change would move a record backward or out of a terminal status."""

    def __init__(self, story_id: int, current: ProcessingStatus, target: ProcessingStatus):
        self.story_id = story_id
        self.current = current
        self.target = target
        super().__init__(
            f"Story {story_id}: illegal transition {current.value} -> {target.value}"
        )


def can_transition(current: ProcessingStatus, target: ProcessingStatus) -> bool:
    if current.is_terminal or current == target:
        return False
    if target == ProcessingStatus.ERROR:
        return True
    return _RANK[target] > _RANK[current]


def mark_generating_audio(
    store: "StoryStore", story_id: int, title: str, content: str
) -> Optional[StoryRecord]:
    """Record the generated story text and advance to the audio stage."""
    return store.transition(
        story_id,
        ProcessingStatus.GENERATING_AUDIO,
        title=title,
        content=content,
    )


def mark_completed(
    store: "StoryStore", story_id: int, audio_url: Optional[str] = None
) -> Optional[StoryRecord]:
    """Finish the record. An empty narration result leaves audio_url unset."""
    if audio_url:
        return store.transition(story_id, ProcessingStatus.COMPLETED, audio_url=audio_url)
    return store.transition(story_id, ProcessingStatus.COMPLETED)


def mark_error(store: "StoryStore", story_id: int) -> Optional[StoryRecord]:
    """Fail the record with user-safe placeholder text."""
    return store.transition(
        story_id,
        ProcessingStatus.ERROR,
        title=ERROR_TITLE,
        content=ERROR_CONTENT,
    )
