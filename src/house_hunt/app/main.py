"""FastAPI application entry point for the House Hunt Agent API."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from house_hunt.app.config import get_settings
from house_hunt.infra.database import close_db, init_db
from house_hunt.services.sms_service import SMSService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: own the database engine and SMS client."""
    settings = get_settings()
    await init_db(settings.database_url)

    if not settings.twilio_configured:
        logger.warning("Twilio vars missing or incomplete; OTP codes will only be logged")
    app.state.sms_service = SMSService(settings)

    try:
        yield
    finally:
        await app.state.sms_service.aclose()
        await close_db()


settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.debug else logging.WARNING,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)

app = FastAPI(
    title="House Hunt Agent API",
    lifespan=lifespan,
    debug=settings.debug,
)

_cors_origins = settings.cors_origins_list
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=("*" not in _cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Route includes
# ---------------------------------------------------------------------------
from house_hunt.app.routes.auth import router as auth_router
from house_hunt.app.routes.agent import router as agent_router

app.include_router(auth_router)
app.include_router(agent_router)


@app.get("/", response_class=PlainTextResponse, tags=["health"])
async def root():
    return "Agent API OK"


@app.get("/health", tags=["health"])
async def health_check():
    """Return service health status."""
    return {"ok": True}


def run() -> None:
    """Run the application with uvicorn (used by project.scripts entry point)."""
    uvicorn.run(
        "house_hunt.app.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
