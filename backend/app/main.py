from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from app.config import settings
from app.logging import configure_logging
from app.api.routes import (
    auth,
    conversations,
    invitations,
    live,
    profiles,
    teams,
)
from app.db.database import get_document_store, init_backend
from app.services.seed_service import SeedService


configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_backend()

    if settings.seed_demo_data:
        try:
            seeded = await SeedService.seed_demo_data(get_document_store())
            if seeded:
                logger.info("Seeded demo data into empty store")
        except Exception as e:
            logger.warning(f"Failed to seed demo data: {e}")

    logger.info("Application startup complete")
    yield
    logger.info("Application shutdown complete")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "backend"}


app.include_router(auth.router, prefix="/api/auth", tags=["authentication"])
app.include_router(profiles.router, prefix="/api/profiles", tags=["profiles"])
app.include_router(teams.router, prefix="/api/teams", tags=["teams"])
app.include_router(invitations.router, prefix="/api/invitations", tags=["invitations"])
app.include_router(
    conversations.router, prefix="/api/conversations", tags=["conversations"]
)
app.include_router(live.router, prefix="/api/live", tags=["live"])
