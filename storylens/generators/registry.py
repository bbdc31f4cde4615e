"""Lookup of generation capabilities by configured name."""

from typing import Callable, Dict, List

from storylens.generators.base import Narrator, StoryGenerator
from storylens.generators.narration import SilentNarrator
from storylens.generators.template_story import TemplateStoryGenerator


_STORY_GENERATORS: Dict[str, Callable[[], StoryGenerator]] = {
    TemplateStoryGenerator.name: TemplateStoryGenerator,
}

_NARRATORS: Dict[str, Callable[[], Narrator]] = {
    SilentNarrator.name: SilentNarrator,
}


def get_story_generator(name: str) -> StoryGenerator:
    factory = _STORY_GENERATORS.get(name)
    if factory is None:
        raise ValueError(
            f"Unknown story generator '{name}'. "
            f"Available: {list_story_generators()}"
        )
    return factory()


def get_narrator(name: str) -> Narrator:
    factory = _NARRATORS.get(name)
    if factory is None:
        raise ValueError(
            f"Unknown narrator '{name}'. Available: {list_narrators()}"
        )
    return factory()


def list_story_generators() -> List[str]:
    return sorted(_STORY_GENERATORS)


def list_narrators() -> List[str]:
    return sorted(_NARRATORS)
