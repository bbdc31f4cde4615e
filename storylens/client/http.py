"""HTTP client for the StoryLens API."""

import mimetypes
import os
from typing import Any, Callable, Dict, List, Optional

import httpx

from storylens.client.poller import DEFAULT_POLL_INTERVAL, poll_story


class StoryLensAPIError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"HTTP {status_code}: {detail}")


class StoryLensClient:
    """Thin wrapper over the /api/stories endpoints.

    Usage:
        client = StoryLensClient("http://localhost:5000")
        story = client.generate("beach.jpg")
        story = client.wait_for_story(story["id"])
        print(story["title"])

    Pass ``http`` to reuse an existing httpx.Client (for example FastAPI's
    TestClient).
    """

    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        http: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ):
        self._http = http or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def generate(self, image_path: str, content_type: Optional[str] = None) -> Dict[str, Any]:
        """Upload an image and return the freshly created record."""
        if content_type is None:
            content_type = mimetypes.guess_type(image_path)[0] or "application/octet-stream"
        with open(image_path, "rb") as fh:
            files = {"image": (os.path.basename(image_path), fh, content_type)}
            response = self._http.post("/api/stories/generate", files=files)
        return self._json(response)

    def get_story(self, story_id: int) -> Dict[str, Any]:
        return self._json(self._http.get(f"/api/stories/{story_id}"))

    def get_status(self, story_id: int) -> Dict[str, Any]:
        return self._json(self._http.get(f"/api/stories/{story_id}/status"))

    def list_stories(self) -> List[Dict[str, Any]]:
        return self._json(self._http.get("/api/stories"))

    def download(self, story_id: int) -> str:
        response = self._http.get(f"/api/stories/{story_id}/download")
        self._raise_for_status(response)
        return response.text

    def wait_for_story(
        self,
        story_id: int,
        interval: float = DEFAULT_POLL_INTERVAL,
        timeout: Optional[float] = None,
        on_update: Optional[Callable[[Dict[str, Any]], None]] = None,
    ) -> Dict[str, Any]:
        """Poll until the story is completed or failed and return it."""
        return poll_story(
            self.get_story,
            story_id,
            interval=interval,
            on_update=on_update,
            timeout=timeout,
        )

    def _json(self, response: httpx.Response) -> Any:
        self._raise_for_status(response)
        return response.json()

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return
        try:
            detail = response.json().get("detail", response.text)
        except (ValueError, AttributeError):
            detail = response.text
        raise StoryLensAPIError(response.status_code, str(detail))
