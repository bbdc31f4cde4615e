"""Periodic expiry of finished stories and their uploaded images."""

import asyncio
import logging
import os
from datetime import timedelta

from storylens.storage.uploads import UploadStore
from storylens.stories.store import StoryStore

logger = logging.getLogger(__name__)


def purge_expired(store: StoryStore, uploads: UploadStore, ttl_hours: float) -> int:
    """Remove terminal records and upload files older than ttl_hours.

    Images of stories that are still generating are kept.
    """
    removed = store.prune(timedelta(hours=ttl_hours))
    running = [
        os.path.basename(record.image_url)
        for record in store.list()
        if not record.processing_status.is_terminal
    ]
    files = uploads.cleanup_expired(ttl_hours * 3600, keep=running)
    if removed or files:
        logger.info(f"Expired {removed} stories and {files} uploaded files")
    return removed


async def janitor_loop(
    store: StoryStore,
    uploads: UploadStore,
    ttl_hours: float,
    interval_seconds: float,
) -> None:
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            purge_expired(store, uploads, ttl_hours)
        except OSError:
            logger.exception("Upload cleanup failed")
