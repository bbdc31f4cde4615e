"""Story generation pipeline: drives one record from upload to a terminal status.

Stages run strictly in order for a record:
1. story    - image -> title/content, then processing -> generating_audio
2. audio    - title/content -> narration URL, then generating_audio -> completed

Any failure, timeout or cancellation inside a stage moves the record to
``error``; the exception never leaves the pipeline.
"""

import asyncio
import functools
import logging
import os
from typing import Any, Callable, Optional

from storylens.generators.base import GeneratedStory, Narrator, StoryGenerator
from storylens.storage.uploads import UploadStore
from storylens.stories.models import ProcessingStatus
from storylens.stories.store import StoryStore
from storylens.stories.transitions import (
    InvalidTransition,
    mark_completed,
    mark_error,
    mark_generating_audio,
)

logger = logging.getLogger(__name__)


class StageTimeout(Exception):
    """A generation capability did not answer within its time budget."""


class StoryPipeline:
    """Runs the background stages for a story record.

    Holds no per-story state: every run starts by reading the record, so a
    record left in an intermediate status can be inspected or resubmitted.
    A resubmitted record already in generating_audio skips straight to narration.
    """

    def __init__(
        self,
        store: StoryStore,
        uploads: UploadStore,
        story_generator: StoryGenerator,
        narrator: Narrator,
        story_timeout: Optional[float] = 60.0,
        audio_timeout: Optional[float] = 120.0,
    ):
        self._store = store
        self._uploads = uploads
        self._story_generator = story_generator
        self._narrator = narrator
        self._story_timeout = story_timeout
        self._audio_timeout = audio_timeout

    async def run(self, story_id: int) -> None:
        record = self._store.get(story_id)
        if record is None:
            logger.warning(f"Story {story_id} vanished before generation started")
            return
        if record.processing_status.is_terminal:
            logger.info(f"Story {story_id} already {record.processing_status.value}, skipping")
            return

        if record.processing_status == ProcessingStatus.GENERATING_AUDIO:
            # Story text is already stored; resume at narration
            logger.info(f"Story {story_id}: resuming at narration")
            story = GeneratedStory(title=record.title, content=record.content)
        else:
            story = await self._story_stage(story_id, record.image_url)
            if story is None:
                return
            if not self._apply(mark_generating_audio, story_id, story.title, story.content):
                return
            logger.info(f"Story {story_id}: story generated, starting narration")

        # Audio stage
        try:
            audio_url = await self._call(
                self._narrator.narrate, f"{story.title}. {story.content}", story_id,
                timeout=self._audio_timeout,
                stage="audio",
            )
        except asyncio.CancelledError:
            self._fail(story_id, "audio stage cancelled")
            raise
        except Exception as exc:
            logger.exception(f"Story {story_id}: audio generation failed")
            self._fail(story_id, f"{type(exc).__name__}: {exc}")
            return

        if not self._apply(mark_completed, story_id, audio_url or None):
            return
        if audio_url:
            logger.info(f"Story {story_id}: completed with narration {audio_url}")
        else:
            logger.info(f"Story {story_id}: completed without narration")

    async def _story_stage(self, story_id: int, image_url: str) -> Optional[GeneratedStory]:
        """Run the story generator. None means the record was marked as error."""
        image_path = self._uploads.get_path(os.path.basename(image_url))
        try:
            return await self._call(
                self._story_generator.generate, image_path,
                timeout=self._story_timeout,
                stage="story",
            )
        except asyncio.CancelledError:
            self._fail(story_id, "story stage cancelled")
            raise
        except Exception as exc:
            logger.exception(f"Story {story_id}: story generation failed")
            self._fail(story_id, f"{type(exc).__name__}: {exc}")
            return None

    async def _call(self, fn: Callable, *args: Any, timeout: Optional[float], stage: str) -> Any:
        """Run a blocking capability in the default executor, bounded by timeout."""
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(None, functools.partial(fn, *args))
        try:
            return await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError:
            raise StageTimeout(f"{stage} stage exceeded {timeout}s")

    def _apply(self, transition: Callable, story_id: int, *args: Any) -> bool:
        """Apply a named transition. False means the run should stop."""
        try:
            record = transition(self._store, story_id, *args)
        except InvalidTransition as exc:
            logger.warning(str(exc))
            return False
        if record is None:
            logger.warning(f"Story {story_id} vanished during generation")
            return False
        return True

    def _fail(self, story_id: int, reason: str) -> None:
        logger.error(f"Story {story_id} marked as error: {reason}")
        try:
            mark_error(self._store, story_id)
        except InvalidTransition as exc:
            logger.warning(str(exc))
