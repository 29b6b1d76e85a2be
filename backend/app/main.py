import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Configure structured JSON logging as early as possible so every subsequent
# log record (including import-time warnings) uses the JSON formatter.
from app.logging_config import RequestIdMiddleware, configure_logging

# Use LOG_LEVEL env var directly here because settings hasn't been imported yet
configure_logging(level=os.environ.get("LOG_LEVEL", "INFO"))

# Export API keys to os.environ BEFORE importing engine-dependent modules.
# The engine client reads os.environ at module-import time, so this must come first.
from app.config import settings  # noqa: E402

for _key in ("openai_api_key", "anthropic_api_key", "llm_provider"):
    _value = getattr(settings, _key, "")
    if _value:
        os.environ.setdefault(_key.upper(), _value)

# Set PROJECT_ROOT so the engine can find config files from venv installs
from pathlib import Path as _Path  # noqa: E402

os.environ.setdefault("PROJECT_ROOT", str(_Path(__file__).resolve().parent.parent.parent))

from app.api.corpus import router as corpus_router  # noqa: E402
from app.api.enhancements import router as enhancements_router  # noqa: E402
from app.api.fields import router as fields_router  # noqa: E402
from app.api.history import router as history_router  # noqa: E402
from app.api.validate import router as validate_router  # noqa: E402
from app.database import init_db  # noqa: E402

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up")
    init_db()
    logger.info("Database initialised")
    yield
    logger.info("Application shutting down")


app = FastAPI(title="Catalog Enhancer API", lifespan=lifespan)

# Request ID middleware must be added BEFORE CORS so every response carries
# the X-Request-ID header (including preflight OPTIONS responses).
app.add_middleware(RequestIdMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
)

app.include_router(fields_router)
app.include_router(validate_router)
app.include_router(enhancements_router)
app.include_router(corpus_router)
app.include_router(history_router)


@app.get("/api/health")
async def health():
    return {"status": "ok"}
