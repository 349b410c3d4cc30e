"""
Tribes Admin - FastAPI Application

Rights-management back office: registries, deals, song queue review,
approvals and disclosure exports.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tribes_admin import __version__
from tribes_admin.core.config import settings
from tribes_admin.core.database import engine, Base
from tribes_admin.routers.approvals import router as approvals_router
from tribes_admin.routers.clients import router as clients_router
from tribes_admin.routers.deals import router as deals_router
from tribes_admin.routers.disclosures import router as disclosures_router
from tribes_admin.routers.publishers import router as publishers_router
from tribes_admin.routers.reference import router as reference_router
from tribes_admin.routers.search_sync import router as search_sync_router
from tribes_admin.routers.song_queue import router as song_queue_router
from tribes_admin.routers.writers import router as writers_router
from tribes_admin.services.errors import ServiceError

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    # Create tables on startup (for development, migrations run via alembic)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield
    # Cleanup on shutdown
    await engine.dispose()


app = FastAPI(
    title="Tribes Admin",
    description="Rights-management and licensing back office",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# Include routers
app.include_router(writers_router)
app.include_router(publishers_router)
app.include_router(clients_router)
app.include_router(reference_router)
app.include_router(deals_router)
app.include_router(song_queue_router)
app.include_router(approvals_router)
app.include_router(disclosures_router)
app.include_router(search_sync_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
