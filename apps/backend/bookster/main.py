# apps/backend/bookster/main.py
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import storage
from .routers import admin as admin_router
from .routers import export as export_router
from .routers import generate as generate_router
from .settings import get_settings
from .users import load_users, seed_demo_users

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = "0.1.0"

settings = get_settings()

app = FastAPI(
    title="Bookster Backend",
    version=VERSION,
    openapi_url="/openapi.json",
    docs_url="/docs",
)

# Storage + users
storage.ensure_dirs()
load_users()
seed_demo_users()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,   # cannot be True together with "*"
)

# Routers
app.include_router(generate_router.router, prefix="/api", tags=["ai"])
app.include_router(export_router.router, prefix="/api", tags=["export"])
app.include_router(admin_router.router, prefix="/api", tags=["admin"])


def _health() -> dict:
    return {"ok": True, "version": VERSION, "env": settings.environment, "ai_configured": settings.ai_configured}


# Health (root and /api)
@app.get("/health")
def health_root():
    return _health()


@app.get("/api/health")
def health_api():
    return _health()
