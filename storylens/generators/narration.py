"""Narrators that turn story text into audio."""

import logging
from typing import Optional

from storylens.generators.base import Narrator

logger = logging.getLogger(__name__)


class SilentNarrator(Narrator):
    """Placeholder used until a text-to-speech backend is configured."""

    name = "silent"

    def narrate(self, text: str, story_id: int) -> Optional[str]:
        logger.info(f"Audio generation skipped for story {story_id} - no TTS backend configured")
        return ""
