"""Request dependencies resolving the per-application services."""

from fastapi import HTTPException, Request

from storylens.jobs.dispatcher import PipelineDispatcher
from storylens.storage.uploads import UploadStore
from storylens.stories.store import StoryStore


def get_store(request: Request) -> StoryStore:
    return request.app.state.store


def get_uploads(request: Request) -> UploadStore:
    return request.app.state.uploads


def get_dispatcher(request: Request) -> PipelineDispatcher:
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        raise HTTPException(status_code=503, detail="Pipeline dispatcher not initialized")
    return dispatcher
