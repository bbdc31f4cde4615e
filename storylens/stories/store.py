"""In-memory story record store."""

import itertools
import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from storylens.stories.models import (
    PLACEHOLDER_CONTENT,
    PLACEHOLDER_TITLE,
    ProcessingStatus,
    StoryRecord,
)
from storylens.stories.transitions import InvalidTransition, can_transition


class StoryStore:
    """Holds story records keyed by id.

    - Ids are assigned from 1 upward and never reused
    - Every read-modify-write runs under one lock
    - Stored records are frozen; updates swap in a modified copy
    """

    def __init__(self):
        self._records: Dict[int, StoryRecord] = {}
        self._ids = itertools.count(1)
        self._lock = threading.RLock()

    def get(self, story_id: int) -> Optional[StoryRecord]:
        with self._lock:
            return self._records.get(story_id)

    def create(
        self,
        image_url: str,
        title: str = PLACEHOLDER_TITLE,
        content: str = PLACEHOLDER_CONTENT,
        processing_status: Optional[ProcessingStatus] = None,
    ) -> StoryRecord:
        with self._lock:
            record = StoryRecord(
                id=next(self._ids),
                image_url=image_url,
                title=title,
                content=content,
                processing_status=processing_status or ProcessingStatus.PENDING,
                created_at=datetime.now(timezone.utc),
            )
            self._records[record.id] = record
            return record

    def update(self, story_id: int, **fields) -> Optional[StoryRecord]:
        """Merge fields into a record without checking status legality."""
        with self._lock:
            record = self._records.get(story_id)
            if record is None:
                return None
            updated = record.model_copy(update=fields)
            self._records[story_id] = updated
            return updated

    def transition(
        self, story_id: int, status: ProcessingStatus, **fields
    ) -> Optional[StoryRecord]:
        """Move a record to ``status`` and merge fields, atomically.

        Raises InvalidTransition if the move is not allowed from the
        record's current status.
        """
        with self._lock:
            record = self._records.get(story_id)
            if record is None:
                return None
            if not can_transition(record.processing_status, status):
                raise InvalidTransition(story_id, record.processing_status, status)
            return self.update(story_id, processing_status=status, **fields)

    def list(self) -> List[StoryRecord]:
        """All records, newest first."""
        with self._lock:
            records = list(self._records.values())
        return sorted(records, key=lambda r: (r.created_at, r.id), reverse=True)

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def prune(self, max_age: timedelta) -> int:
        """Drop terminal records older than max_age. Returns count removed."""
        cutoff = datetime.now(timezone.utc) - max_age
        with self._lock:
            expired = [
                story_id
                for story_id, record in self._records.items()
                if record.processing_status.is_terminal and record.created_at < cutoff
            ]
            for story_id in expired:
                del self._records[story_id]
        return len(expired)
