"""Client-side polling: derive the UI phase from processingStatus and decide when to stop.

The server offers no push channel, so a client learns about progress only by
re-fetching the record. Polling continues while the status is non-terminal
and stops on the first ``completed`` or ``error`` it sees.
"""

import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional

from storylens.stories.models import ProcessingStatus

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 2.0


class Phase(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class PollTimeout(Exception):
    """No terminal status was observed before the deadline."""

    def __init__(self, story_id: int, last_status: Optional[str]):
        self.story_id = story_id
        self.last_status = last_status
        super().__init__(f"Story {story_id} still '{last_status}' after polling timed out")


def _status(value: str) -> ProcessingStatus:
    try:
        return ProcessingStatus(value)
    except ValueError:
        raise ValueError(f"Unknown processingStatus '{value}'")


def ui_phase(status: str) -> Phase:
    parsed = _status(status)
    if parsed == ProcessingStatus.COMPLETED:
        return Phase.COMPLETED
    if parsed == ProcessingStatus.ERROR:
        return Phase.ERROR
    return Phase.PROCESSING


def processing_step(status: str) -> int:
    """Step number for the progress indicator (1-3, 0 once failed)."""
    return _status(status).step


def should_keep_polling(status: str) -> bool:
    return not _status(status).is_terminal


def poll_story(
    fetch: Callable[[int], Dict[str, Any]],
    story_id: int,
    interval: float = DEFAULT_POLL_INTERVAL,
    on_update: Optional[Callable[[Dict[str, Any]], None]] = None,
    timeout: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> Dict[str, Any]:
    """Fetch a story until it reaches a terminal status and return that record.

    fetch: callable(story_id) -> record dict (camelCase keys, as served)
    on_update: called with every fetched record, including repeats of the
        same status; it must tolerate being re-run with unchanged data.
    timeout: seconds before giving up with PollTimeout (None waits forever)
    """
    deadline = None if timeout is None else clock() + timeout
    while True:
        record = fetch(story_id)
        status = record["processingStatus"]
        if on_update is not None:
            on_update(record)

        if not should_keep_polling(status):
            logger.debug(f"Story {story_id} reached {status}")
            return record

        if deadline is not None and clock() + interval > deadline:
            raise PollTimeout(story_id, status)
        sleep(interval)
