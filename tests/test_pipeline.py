import asyncio

import pytest

from conftest import FakeNarrator, FakeStoryGenerator
from storylens.jobs.pipeline import StoryPipeline
from storylens.storage.uploads import UploadStore
from storylens.stories.models import (
    ERROR_TITLE,
    PLACEHOLDER_TITLE,
    ProcessingStatus,
)
from storylens.stories.store import StoryStore
from storylens.stories.transitions import mark_error


class RecordingStore(StoryStore):
    """Keeps every status a record passes through."""

    def __init__(self):
        super().__init__()
        self.history = []

    def transition(self, story_id, status, **fields):
        record = super().transition(story_id, status, **fields)
        self.history.append((status, record.title if record else None))
        return record


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def uploads(tmp_path):
    return UploadStore(str(tmp_path / "uploads"))


def build(store, uploads, story_generator=None, narrator=None, **kwargs):
    return StoryPipeline(
        store,
        uploads,
        story_generator or FakeStoryGenerator(),
        narrator or FakeNarrator(),
        **kwargs,
    )


def new_story(store):
    return store.create(
        image_url="/uploads/123-456.jpg",
        processing_status=ProcessingStatus.PROCESSING,
    )


def test_stages_apply_in_order(store, uploads):
    generator = FakeStoryGenerator()
    narrator = FakeNarrator(result="/audio/1.mp3")
    story = new_story(store)

    asyncio.run(build(store, uploads, generator, narrator).run(story.id))

    assert store.history == [
        (ProcessingStatus.GENERATING_AUDIO, "The Lighthouse"),
        (ProcessingStatus.COMPLETED, "The Lighthouse"),
    ]
    assert generator.calls == [uploads.get_path("123-456.jpg")]
    assert narrator.calls == [("The Lighthouse. A keeper climbs the stairs.", story.id)]
    assert store.get(story.id).audio_url == "/audio/1.mp3"


def test_none_narration_is_degraded_success(store, uploads):
    story = new_story(store)

    asyncio.run(build(store, uploads, narrator=FakeNarrator(result=None)).run(story.id))

    done = store.get(story.id)
    assert done.processing_status == ProcessingStatus.COMPLETED
    assert done.audio_url is None


def test_story_failure_stops_before_audio(store, uploads):
    narrator = FakeNarrator()
    story = new_story(store)

    asyncio.run(
        build(store, uploads, FakeStoryGenerator(error=ValueError("bad image")), narrator).run(story.id)
    )

    assert store.history == [(ProcessingStatus.ERROR, ERROR_TITLE)]
    assert narrator.calls == []


def test_story_timeout_marks_error(store, uploads):
    story = new_story(store)
    pipeline = build(store, uploads, FakeStoryGenerator(delay=0.3), story_timeout=0.05)

    asyncio.run(pipeline.run(story.id))

    assert store.get(story.id).processing_status == ProcessingStatus.ERROR


def test_audio_timeout_marks_error(store, uploads):
    story = new_story(store)
    pipeline = build(store, uploads, narrator=FakeNarrator(delay=0.3), audio_timeout=0.05)

    asyncio.run(pipeline.run(story.id))

    assert [status for status, _ in store.history] == [
        ProcessingStatus.GENERATING_AUDIO,
        ProcessingStatus.ERROR,
    ]


def test_terminal_record_is_skipped(store, uploads):
    generator = FakeStoryGenerator()
    story = new_story(store)
    mark_error(store, story.id)
    store.history.clear()

    asyncio.run(build(store, uploads, generator).run(story.id))

    assert generator.calls == []
    assert store.history == []


def test_missing_record_is_ignored(store, uploads):
    generator = FakeStoryGenerator()

    asyncio.run(build(store, uploads, generator).run(404))

    assert generator.calls == []


def test_record_failed_elsewhere_is_not_resurrected(store, uploads):
    story = new_story(store)

    class FailsRecordMidway(FakeStoryGenerator):
        def generate(self, image_path):
            mark_error(store, story.id)
            return super().generate(image_path)

    asyncio.run(build(store, uploads, FailsRecordMidway()).run(story.id))

    record = store.get(story.id)
    assert record.processing_status == ProcessingStatus.ERROR
    assert record.title == ERROR_TITLE


def test_cancellation_marks_error(store, uploads):
    story = new_story(store)
    pipeline = build(store, uploads, FakeStoryGenerator(delay=0.3))

    async def scenario():
        task = asyncio.create_task(pipeline.run(story.id))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())

    record = store.get(story.id)
    assert record.processing_status == ProcessingStatus.ERROR
    assert record.title != PLACEHOLDER_TITLE


def test_resubmitted_audio_stage_record_resumes_at_narration(store, uploads):
    generator = FakeStoryGenerator()
    narrator = FakeNarrator(result="/audio/7.mp3")
    story = new_story(store)
    store.transition(story.id, ProcessingStatus.GENERATING_AUDIO, title="Kept", content="Stored text.")
    store.history.clear()

    asyncio.run(build(store, uploads, generator, narrator).run(story.id))

    record = store.get(story.id)
    assert record.processing_status == ProcessingStatus.COMPLETED
    assert record.audio_url == "/audio/7.mp3"
    assert record.title == "Kept"
    assert generator.calls == []
    assert narrator.calls == [("Kept. Stored text.", story.id)]
