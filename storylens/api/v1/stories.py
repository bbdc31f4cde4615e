"""Story API: upload an image, poll generation progress, list and download stories.

  POST /stories/generate          - accept an image, start generation, return the record
  GET  /stories                   - all stories, newest first
  GET  /stories/{id}              - current record (the polling endpoint)
  GET  /stories/{id}/status       - compact progress view of the same record
  GET  /stories/{id}/download     - title + content as a text attachment
"""

import logging
import os
import re
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import PlainTextResponse

from storylens.api.v1.deps import get_dispatcher, get_store, get_uploads
from storylens.jobs.dispatcher import DispatcherBusy, PipelineDispatcher
from storylens.storage.uploads import UploadRejected, UploadStore
from storylens.stories.models import ProcessingStatus, StoryProgress, StoryRecord
from storylens.stories.store import StoryStore
from storylens.stories.transitions import mark_error

logger = logging.getLogger(__name__)

router = APIRouter()

DOWNLOAD_FOOTER = "Generated by StoryLens AI"


# ---------------------------------------------------------------------------
# POST /stories/generate
# ---------------------------------------------------------------------------

@router.post(
    "/stories/generate",
    response_model=StoryRecord,
    response_model_exclude_none=True,
)
async def generate_story(
    image: Optional[UploadFile] = File(None),
    store: StoryStore = Depends(get_store),
    uploads: UploadStore = Depends(get_uploads),
    dispatcher: PipelineDispatcher = Depends(get_dispatcher),
):
    """Accept an image upload and start story generation in the background.

    Returns the new record right away with processingStatus "processing";
    poll GET /stories/{id} until it is "completed" or "error".
    """
    if dispatcher.is_full():
        raise HTTPException(status_code=503, detail="Story generation is busy, try again shortly")

    try:
        saved = await uploads.save(image)
    except UploadRejected as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)
    except Exception:
        logger.exception("Upload error")
        raise HTTPException(status_code=500, detail="Failed to process image upload")

    # The queue may have filled while the file was being written
    if dispatcher.is_full():
        os.remove(saved.path)
        raise HTTPException(status_code=503, detail="Story generation is busy, try again shortly")

    story = store.create(
        image_url=saved.url,
        processing_status=ProcessingStatus.PROCESSING,
    )
    try:
        await dispatcher.submit(story.id)
    except DispatcherBusy:
        # The record exists but will never run; fail it so pollers see a terminal status
        logger.error(f"Story {story.id} could not be queued")
        mark_error(store, story.id)
        raise HTTPException(status_code=503, detail="Story generation is busy, try again shortly")

    logger.info(f"Accepted story {story.id} ({saved.size} bytes)")
    return story


# ---------------------------------------------------------------------------
# GET /stories
# ---------------------------------------------------------------------------

@router.get(
    "/stories",
    response_model=List[StoryRecord],
    response_model_exclude_none=True,
)
async def list_stories(store: StoryStore = Depends(get_store)):
    return store.list()


# ---------------------------------------------------------------------------
# GET /stories/{id}
# ---------------------------------------------------------------------------

@router.get(
    "/stories/{story_id}",
    response_model=StoryRecord,
    response_model_exclude_none=True,
)
async def get_story(story_id: int, store: StoryStore = Depends(get_store)):
    """Return the record as currently stored. This is the polling endpoint."""
    story = store.get(story_id)
    if story is None:
        raise HTTPException(status_code=404, detail="Story not found")
    return story


@router.get("/stories/{story_id}/status", response_model=StoryProgress)
async def get_story_status(story_id: int, store: StoryStore = Depends(get_store)):
    """Return only the progress fields of a record."""
    story = store.get(story_id)
    if story is None:
        raise HTTPException(status_code=404, detail="Story not found")

    status = story.processing_status
    return StoryProgress(
        id=story.id,
        processing_status=status,
        step=status.step,
        message=status.message,
        terminal=status.is_terminal,
    )


# ---------------------------------------------------------------------------
# GET /stories/{id}/download
# ---------------------------------------------------------------------------

@router.get("/stories/{story_id}/download")
async def download_story(story_id: int, store: StoryStore = Depends(get_store)):
    """Stream the story text back as a .txt attachment."""
    story = store.get(story_id)
    if story is None:
        raise HTTPException(status_code=404, detail="Story not found")

    body = format_story_text(story)
    return PlainTextResponse(
        body,
        headers={
            "Content-Disposition": f'attachment; filename="{download_filename(story.title)}"',
        },
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def format_story_text(story: StoryRecord) -> str:
    return f"{story.title}\n\n{story.content}\n\n{DOWNLOAD_FOOTER}"


def download_filename(title: str) -> str:
    return re.sub(r"[^a-z0-9]", "_", title, flags=re.IGNORECASE | re.ASCII).lower() + ".txt"
