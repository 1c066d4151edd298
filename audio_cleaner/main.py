"""Recording audio-cleaning service - FastAPI application."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from audio_cleaner.config import settings
from audio_cleaner.logger import get_logger
from audio_cleaner.api.errors import add_exception_handlers
from audio_cleaner.api.v1.router import v1_router
from audio_cleaner.api.v1.health import router as health_root_router
from audio_cleaner.api.v1 import recordings as recordings_api
from audio_cleaner.processor.audo_client import AudoClient
from audio_cleaner.recordings.coordinator import CleaningCoordinator
from audio_cleaner.recordings.poller import CleaningPoller
from audio_cleaner.store.base import RecordingStore

logger = get_logger(__name__)


def build_store() -> RecordingStore:
    if settings.store_backend == "supabase":
        from audio_cleaner.store.supabase_store import SupabaseRecordingStore
        return SupabaseRecordingStore()
    if settings.store_backend == "memory":
        from audio_cleaner.store.memory_store import InMemoryRecordingStore
        return InMemoryRecordingStore()
    raise ValueError(f"Unknown store backend: {settings.store_backend}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic."""
    logger.info(f"Starting audio cleaning service on port {settings.service_port}")
    logger.info(f"Store backend: {settings.store_backend}")
    logger.info(f"Processor: {settings.processor_base_url}")
    if settings.webhook_url:
        logger.info(f"Push notifications to: {settings.webhook_url}")
    else:
        logger.info("No webhook configured; polling only")

    processor = AudoClient()
    coordinator = CleaningCoordinator(
        build_store(), processor, callback_uri=settings.webhook_url
    )
    poller = CleaningPoller(coordinator)

    recordings_api.set_coordinator(coordinator)
    recordings_api.set_poller(poller)

    if settings.auto_poll:
        await poller.resume_in_flight()

    yield

    logger.info("Shutting down audio cleaning service")
    await poller.shutdown()
    await processor.aclose()
    recordings_api.set_poller(None)
    recordings_api.set_coordinator(None)


app = FastAPI(
    title="Recording Cleaning Service",
    description="Noise-reduction job coordination for actor recordings",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000", "*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

add_exception_handlers(app)

# Mount routers
app.include_router(health_root_router, tags=["health"])  # GET /health at root
app.include_router(v1_router)  # All /api/v1/* endpoints
