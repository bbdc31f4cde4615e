"""Generation capability interfaces.

To plug in a real model:
1. Subclass StoryGenerator or Narrator in a new module under storylens/generators/
2. Implement generate() / narrate()
3. Add it to the name table in storylens/generators/registry.py
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class GeneratedStory:
    title: str
    content: str


class StoryGenerator(ABC):
    """Turns a stored image into a short story.

    Called from a worker thread; implementations may block.
    """

    name: str = "base"

    @abstractmethod
    def generate(self, image_path: str) -> GeneratedStory:
        """Return the story for the image. Raise on failure."""
        ...


class Narrator(ABC):
    """Turns story text into an audio narration."""

    name: str = "base"

    @abstractmethod
    def narrate(self, text: str, story_id: int) -> Optional[str]:
        """Return a URL for the narration, or an empty value when unavailable.

        An empty result is not a failure. Raise only when narration was
        attempted and broke.
        """
        ...
