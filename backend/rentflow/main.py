from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from rentflow.config import settings
from rentflow.middleware.exceptions import register_exception_handlers
from rentflow.routers import applications, documents, health, properties
from rentflow.services.documents import Visibility

app = FastAPI(
    title="RentFlow",
    description="Rental application and property listing wizards",
    version="0.1.0",
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
app.include_router(health.router)
app.include_router(applications.router, prefix="/api/applications", tags=["applications"])
app.include_router(properties.router, prefix="/api/properties", tags=["properties"])
app.include_router(documents.router, prefix="/api/documents", tags=["documents"])

# Public documents are served as-is; private ones only through signed links
app.mount(
    "/storage",
    StaticFiles(directory=Path(settings.storage_root) / Visibility.PUBLIC.value, check_dir=False),
    name="storage",
)
