import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docshelf.config import settings
from docshelf.db.mongo import db, ensure_indexes
from docshelf.deps import get_optional_object_store
from docshelf.auth.routes import router as auth_router
from docshelf.api.routes.files import router as files_router
from docshelf.api.routes.summarize import router as summarize_router
from docshelf.api.routes.storage import router as storage_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="docshelf API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def _startup() -> None:
    ensure_indexes()
    configured = [
        name for name, key in (
            ("anthropic", settings.anthropic_api_key),
            ("deepseek", settings.deepseek_api_key),
            ("gemini", settings.google_generative_ai_api_key),
        ) if key
    ]
    logger.info(f"docshelf starting (env={settings.app_env}); summary providers: {configured or ['local only']}")


@app.get("/health")
def health():
    db.command("ping")
    store = get_optional_object_store()
    storage = "not configured"
    if store is not None:
        try:
            store.list_buckets()
            storage = "ok"
        except Exception as e:
            logger.warning(f"Object storage health check failed: {e}")
            storage = "error"
    return {"mongo": "ok", "storage": storage, "env": settings.app_env}


# Router registration -------------------------------------------------------
app.include_router(auth_router)
app.include_router(files_router)
app.include_router(summarize_router)
app.include_router(storage_router)
