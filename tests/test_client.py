import httpx
import pytest

from conftest import jpeg_bytes
from storylens.cli import main, parse_args
from storylens.client.http import StoryLensAPIError, StoryLensClient
from storylens.client.poller import PollTimeout


@pytest.fixture
def api(client):
    return StoryLensClient(http=client)


@pytest.fixture
def photo(tmp_path):
    path = tmp_path / "harbour.jpg"
    path.write_bytes(jpeg_bytes())
    return path


def test_generate_and_wait(api, photo):
    seen = []
    story = api.generate(str(photo))
    assert story["processingStatus"] == "processing"

    done = api.wait_for_story(story["id"], interval=0.01, timeout=5,
                              on_update=lambda r: seen.append(r["processingStatus"]))

    assert done["processingStatus"] == "completed"
    assert seen[-1] == "completed"
    assert "completed" not in seen[:-1]
    assert api.list_stories()[0]["id"] == story["id"]
    assert api.get_status(story["id"])["terminal"] is True
    assert api.download(story["id"]).endswith("Generated by StoryLens AI")


def test_missing_story_raises_api_error(api):
    with pytest.raises(StoryLensAPIError) as excinfo:
        api.get_story(999999)

    assert excinfo.value.status_code == 404
    assert excinfo.value.detail == "Story not found"


def test_non_image_rejected(api, tmp_path):
    notes = tmp_path / "notes.txt"
    notes.write_text("hello")

    with pytest.raises(StoryLensAPIError) as excinfo:
        api.generate(str(notes))

    assert excinfo.value.status_code == 400
    assert api.list_stories() == []


def test_cli_parses_generate():
    args = parse_args(["--url", "http://example:9000", "generate", "a.jpg", "--wait", "--interval", "0.5"])

    assert args.command == "generate"
    assert args.url == "http://example:9000"
    assert args.wait is True
    assert args.interval == 0.5


def test_cli_generate_missing_file(tmp_path, capsys):
    code = main(["generate", str(tmp_path / "nope.jpg")])

    assert code == 1
    assert "does not exist" in capsys.readouterr().out


def test_cli_wait_timeout_reports_error(tmp_path, capsys, monkeypatch):
    photo = tmp_path / "harbour.jpg"
    photo.write_bytes(jpeg_bytes())

    def fake_generate(self, image_path, content_type=None):
        return {"id": 1, "processingStatus": "processing"}

    def fake_wait(self, story_id, **kwargs):
        raise PollTimeout(story_id, "processing")

    monkeypatch.setattr(StoryLensClient, "generate", fake_generate)
    monkeypatch.setattr(StoryLensClient, "wait_for_story", fake_wait)

    code = main(["generate", str(photo), "--wait", "--timeout", "1"])

    assert code == 1
    assert "ERROR: Story 1 still 'processing'" in capsys.readouterr().out


def test_cli_unreachable_server_reports_error(capsys, monkeypatch):
    def refuse(self, story_id):
        raise httpx.ConnectError("Connection refused")

    monkeypatch.setattr(StoryLensClient, "get_story", refuse)

    code = main(["--url", "http://127.0.0.1:9", "get", "1"])

    assert code == 1
    assert "ERROR: Could not reach StoryLens at http://127.0.0.1:9" in capsys.readouterr().out
