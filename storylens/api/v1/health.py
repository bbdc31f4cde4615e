"""Health check endpoint."""

from fastapi import APIRouter, Request
import platform
import sys

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Service health, pipeline load, and system info."""
    state = request.app.state
    dispatcher = getattr(state, "dispatcher", None)

    return {
        "status": "healthy" if dispatcher is not None else "starting",
        "stories": state.store.count(),
        "pipelines_in_flight": dispatcher.in_flight() if dispatcher else 0,
        "queue_full": dispatcher.is_full() if dispatcher else False,
        "story_generator": state.story_generator.name,
        "narrator": state.narrator.name,
        "python_version": sys.version,
        "platform": platform.platform(),
    }
