"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from filevault.config import settings
from filevault.database import engine, get_db
from filevault.dependencies import get_blob_store
from filevault.errors import FileStoreError, NotFoundError
from filevault.logging_config import setup_logging
from filevault.models import Base
from filevault.services.blob_store import LocalBlobStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and the storage directory on startup."""
    setup_logging(settings.LOG_LEVEL)
    # Raises StorageError, aborting startup, if the directory cannot be created.
    get_blob_store()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    await engine.dispose()


app = FastAPI(
    title="File Vault API",
    version="1.0.0",
    description="Upload, list, download and delete stored files.",
    lifespan=lifespan,
)

# CORS
origins = [o.strip() for o in settings.CORS_ORIGINS.split(",")]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials="*" not in origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FileStoreError)
async def file_store_error_handler(request: Request, exc: FileStoreError):
    """Same body shape as HTTPException: {"detail": ...}."""
    # Missing-on-disk faults are logged at ERROR by the service itself.
    level = logging.DEBUG if isinstance(exc, NotFoundError) else logging.WARNING
    logger.log(level, "%s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/api/health")
async def health_check(
    db: AsyncSession = Depends(get_db),
    blob_store: LocalBlobStore = Depends(get_blob_store),
):
    """Verify database connectivity and the storage directory."""
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        return {"status": "error", "database": str(e)}
    if not blob_store.base_path.is_dir():
        return {"status": "error", "database": "connected", "storage": "missing"}
    return {"status": "ok", "database": "connected", "storage": str(blob_store.base_path)}


# Register routers
from filevault.routes.files import router as files_router
app.include_router(files_router)
