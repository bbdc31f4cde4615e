"""Template-based story generator.

Stands in for a vision/LLM model: checks that the upload decodes as an image,
then picks a random title and story from fixed templates.
"""

import logging
import random
from typing import Optional, Sequence

from PIL import Image

from storylens.generators.base import GeneratedStory, StoryGenerator

logger = logging.getLogger(__name__)

TITLES = [
    "A Captured Moment",
    "Memories in Frame",
    "Through the Lens",
    "A Story Unfolds",
    "Whispers of Time",
    "Fragments of Life",
    "The Story Behind",
    "Echoes of Yesterday",
    "A Window to Wonder",
    "Tales of Light and Shadow",
]

STORY_TEMPLATES = [
    (
        "In this captured moment, time stands still. Every detail speaks of journeys "
        "taken, dreams pursued, and memories cherished. The light and shadows dance "
        "together, creating a narrative that invites us to imagine the life and "
        "experiences that led to this precious instant. What stories might unfold "
        "from this single frame of time?"
    ),
    (
        "This photograph reveals a world frozen in time, where every element tells "
        "its own tale. Behind this scene lies endless possibility - the laughter that "
        "might have echoed here, the conversations that took place, the emotions that "
        "filled this space. It's a window into a moment that will never come again, "
        "yet lives forever in this frame."
    ),
    (
        "Here we discover beauty in the everyday, a testament to the extraordinary "
        "found within ordinary moments. This image speaks without words, touching our "
        "hearts with its quiet eloquence. Each detail invites contemplation, each "
        "shadow and highlight weaving together a story of human experience and the "
        "precious nature of captured time."
    ),
    (
        "Through the photographer's eye, we glimpse a story waiting to be told. The "
        "composition whispers of untold adventures, of quiet moments and grand "
        "gestures alike. In the interplay of light and form, we find reflections of "
        "our own experiences, our own memories, our own dreams taking shape."
    ),
    (
        "This moment, suspended between past and future, holds within it the essence "
        "of storytelling itself. Every line, every texture, every subtle nuance "
        "contributes to a narrative that transcends the boundaries of the frame. It "
        "speaks of resilience, beauty, and the infinite capacity for wonder that "
        "exists in every captured instant."
    ),
]


class TemplateStoryGenerator(StoryGenerator):
    name = "template"

    def __init__(
        self,
        titles: Sequence[str] = TITLES,
        templates: Sequence[str] = STORY_TEMPLATES,
        seed: Optional[int] = None,
    ):
        self._titles = list(titles)
        self._templates = list(templates)
        self._rng = random.Random(seed)

    def generate(self, image_path: str) -> GeneratedStory:
        # Raises for missing or undecodable files; the pipeline records that as an error
        with Image.open(image_path) as img:
            img.verify()
            width, height = img.size
            fmt = img.format
        logger.info(f"Story source {image_path}: {fmt} {width}x{height}")

        return GeneratedStory(
            title=self._rng.choice(self._titles),
            content=self._rng.choice(self._templates),
        )
