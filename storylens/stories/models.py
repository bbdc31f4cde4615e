"""Story record data model for async generation."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


PLACEHOLDER_TITLE = "Generating..."
PLACEHOLDER_CONTENT = "AI is crafting your story..."

ERROR_TITLE = "Generation Error"
ERROR_CONTENT = (
    "Sorry, we encountered an error while generating your story. "
    "Please try again."
)


class ProcessingStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    GENERATING_AUDIO = "generating_audio"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (ProcessingStatus.COMPLETED, ProcessingStatus.ERROR)

    @property
    def step(self) -> int:
        """Progress step shown to users: 1 analyzing, 2 narrating, 3 done, 0 failed."""
        return _STEPS[self]

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_STEPS = {
    ProcessingStatus.PENDING: 1,
    ProcessingStatus.PROCESSING: 1,
    ProcessingStatus.GENERATING_AUDIO: 2,
    ProcessingStatus.COMPLETED: 3,
    ProcessingStatus.ERROR: 0,
}

_MESSAGES = {
    ProcessingStatus.PENDING: "Queued for processing…",
    ProcessingStatus.PROCESSING: "Generating creative story…",
    ProcessingStatus.GENERATING_AUDIO: "Creating audio narration…",
    ProcessingStatus.COMPLETED: "Story complete",
    ProcessingStatus.ERROR: "Story generation failed",
}


class StoryRecord(BaseModel):
    """Tracks one upload from acceptance to a finished story.

    Instances are treated as immutable snapshots: the store replaces a record
    with an updated copy instead of mutating it in place.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    id: int
    image_url: str
    title: str = PLACEHOLDER_TITLE
    content: str = PLACEHOLDER_CONTENT
    audio_url: Optional[str] = None
    processing_status: ProcessingStatus = ProcessingStatus.PENDING
    created_at: datetime


class StoryProgress(BaseModel):
    """Compact view of a record for pollers."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    processing_status: ProcessingStatus
    step: int
    message: str
    terminal: bool
