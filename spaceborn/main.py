import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from spaceborn.api.dependencies import get_document_store
from spaceborn.api.v1.router import api_router
from spaceborn.core.config import get_settings
from spaceborn.core.telemetry import instrument_fastapi, instrument_sqlalchemy, setup_telemetry
from spaceborn.repositories.store import SQLDocumentStore

# logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Application lifecycle"""
    setup_telemetry("spaceborn-api", "0.1.0", environment=settings.app_env)

    store = get_document_store()
    backend = store.inner
    if isinstance(backend, SQLDocumentStore):
        instrument_sqlalchemy(backend.engine)
        await backend.create_tables()
    logger.info("Document store ready: %s", type(backend).__name__)

    yield

    if isinstance(backend, SQLDocumentStore):
        await backend.close()


app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    description="SPACE BORN - progress tracking and assignment API",
    lifespan=lifespan,
)

# OpenTelemetry FastAPI instrumentation
instrument_fastapi(app)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/health")
async def health_check() -> dict:
    """Health check"""
    return {"status": "ok"}
