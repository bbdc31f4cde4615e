import io
import threading
import time
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from storylens.config import Settings
from storylens.generators.base import GeneratedStory, Narrator, StoryGenerator
from storylens.main import create_app


class FakeStoryGenerator(StoryGenerator):
    name = "fake"

    def __init__(self, title="The Lighthouse", content="A keeper climbs the stairs.",
                 error: Optional[Exception] = None, gate: Optional[threading.Event] = None,
                 delay: float = 0.0):
        self.title = title
        self.content = content
        self.error = error
        self.gate = gate
        self.delay = delay
        self.calls: List[str] = []

    def generate(self, image_path: str) -> GeneratedStory:
        self.calls.append(image_path)
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return GeneratedStory(title=self.title, content=self.content)


class FakeNarrator(Narrator):
    name = "fake"

    def __init__(self, result: Optional[str] = "", error: Optional[Exception] = None,
                 gate: Optional[threading.Event] = None, delay: float = 0.0):
        self.result = result
        self.error = error
        self.gate = gate
        self.delay = delay
        self.calls: List[tuple] = []

    def narrate(self, text: str, story_id: int) -> Optional[str]:
        self.calls.append((text, story_id))
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


def jpeg_bytes(size: Optional[int] = None) -> bytes:
    """A real JPEG, padded after the end marker to ``size`` bytes when given."""
    buf = io.BytesIO()
    Image.new("RGB", (64, 48), (200, 120, 40)).save(buf, format="JPEG")
    data = buf.getvalue()
    if size is not None and size > len(data):
        data += b"\0" * (size - len(data))
    return data


def wait_for_status(client: TestClient, story_id: int, statuses, timeout: float = 5.0) -> dict:
    deadline = time.monotonic() + timeout
    while True:
        story = client.get(f"/api/stories/{story_id}").json()
        if story["processingStatus"] in statuses:
            return story
        if time.monotonic() > deadline:
            raise AssertionError(f"story {story_id} stuck in {story['processingStatus']}")
        time.sleep(0.01)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        upload_dir=str(tmp_path / "uploads"),
        pipeline_workers=2,
        story_timeout_seconds=5,
        audio_timeout_seconds=5,
        log_level="DEBUG",
    )


@pytest.fixture
def story_generator():
    return FakeStoryGenerator()


@pytest.fixture
def narrator():
    return FakeNarrator()


@pytest.fixture
def app(settings, story_generator, narrator):
    return create_app(settings, story_generator=story_generator, narrator=narrator)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def upload(client):
    def _upload(data: Optional[bytes] = None, content_type: str = "image/jpeg",
                filename: str = "photo.jpg"):
        if data is None:
            data = jpeg_bytes()
        return client.post(
            "/api/stories/generate",
            files={"image": (filename, data, content_type)},
        )
    return _upload
