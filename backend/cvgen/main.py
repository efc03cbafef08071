"""AI CV Generator — FastAPI Application Entry Point."""

import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cvgen.config import settings
from cvgen.database import engine, Base
from cvgen.routers import auth, profiles, job_postings, generated_cv, subscription
from cvgen.services.ai_client import ai_provider_name, ai_health_check

import cvgen.models  # noqa: F401  (registers every table on Base.metadata)

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("cvgen")

# ── CORS origins from env (supports dev localhost + production domain) ──────
_cors_origins = [o.strip() for o in settings.ALLOWED_ORIGINS.split(",") if o.strip()]

app = FastAPI(
    title="AI CV Generator",
    description="Tailored, AI-written CVs rendered to PDF.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(auth.router)
app.include_router(profiles.router)
app.include_router(job_postings.router)
app.include_router(generated_cv.router)
app.include_router(subscription.router)


@app.on_event("startup")
async def on_startup():
    """Create tables and the PDF directory, then report the AI provider."""
    Base.metadata.create_all(bind=engine)
    Path(settings.CV_STORAGE_DIR).mkdir(parents=True, exist_ok=True)

    provider = ai_provider_name()
    if provider == "none":
        logger.warning(
            "AI NOT CONFIGURED: set ORACLE_GENAI_COMPARTMENT_ID + ORACLE_GENAI_MODEL "
            "(OCI) or ANTHROPIC_API_KEY in backend/.env and restart. "
            "Visit /api/health/ai to verify."
        )
    else:
        logger.info("AI provider: %s", provider)


@app.get("/")
def root():
    return {
        "name": "AI CV Generator API",
        "version": "1.0.0",
        "docs": "/docs",
        "ai_provider": ai_provider_name(),
    }


@app.get("/health")
def health():
    return {"status": "ok", "ai_provider": ai_provider_name()}


@app.get("/api/health/ai")
async def health_ai():
    """Live connectivity test for the configured AI provider.

    Returns:
        provider: which AI is active
        status:   "ok" | "error" | "unconfigured"
        test_reply / error: result of a tiny test call
    """
    return await ai_health_check()
