"""StoryLens API - FastAPI application."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from storylens.api.v1.health import router as health_root_router
from storylens.api.v1.router import api_router
from storylens.config import Settings
from storylens.generators.base import Narrator, StoryGenerator
from storylens.generators.registry import get_narrator, get_story_generator
from storylens.jobs.in_process_queue import InProcessQueue
from storylens.jobs.janitor import janitor_loop
from storylens.jobs.pipeline import StoryPipeline
from storylens.storage.uploads import UploadStore
from storylens.stories.store import StoryStore

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    story_generator: Optional[StoryGenerator] = None,
    narrator: Optional[Narrator] = None,
) -> FastAPI:
    """Build the application with its own store, upload directory and pipeline.

    Capabilities default to the ones named in settings; pass instances to
    swap in other implementations.
    """
    settings = settings or Settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    store = StoryStore()
    uploads = UploadStore(settings.upload_dir, max_bytes=settings.max_upload_bytes)
    story_generator = story_generator or get_story_generator(settings.story_generator)
    narrator = narrator or get_narrator(settings.narrator)
    pipeline = StoryPipeline(
        store,
        uploads,
        story_generator,
        narrator,
        story_timeout=settings.story_timeout_seconds,
        audio_timeout=settings.audio_timeout_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown logic."""
        logger.info(f"Starting StoryLens on port {settings.port}")
        logger.info(f"Upload dir: {uploads.base_dir}")
        logger.info(f"Story generator: {story_generator.name}, narrator: {narrator.name}")

        dispatcher = InProcessQueue(
            pipeline.run,
            workers=settings.pipeline_workers,
            maxsize=settings.pipeline_queue_size,
        )
        await dispatcher.start()
        app.state.dispatcher = dispatcher
        logger.info(f"Pipeline dispatcher started with {settings.pipeline_workers} worker(s)")

        janitor = None
        if settings.story_ttl_hours > 0:
            janitor = asyncio.create_task(
                janitor_loop(
                    store,
                    uploads,
                    settings.story_ttl_hours,
                    settings.janitor_interval_seconds,
                )
            )

        yield

        logger.info("Shutting down StoryLens")
        if janitor is not None:
            janitor.cancel()
            await asyncio.gather(janitor, return_exceptions=True)
        await dispatcher.stop()
        app.state.dispatcher = None

    app = FastAPI(
        title="StoryLens",
        description="Turn photos into short stories with optional narration",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.uploads = uploads
    app.state.pipeline = pipeline
    app.state.story_generator = story_generator
    app.state.narrator = narrator
    app.state.dispatcher = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_root_router, tags=["health"])  # GET /health at root
    app.include_router(api_router)  # All /api/* endpoints
    app.mount("/uploads", StaticFiles(directory=uploads.base_dir), name="uploads")

    return app
