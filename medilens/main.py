# medilens/main.py
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from medilens.api.api_router import api_router
from medilens.core.config import settings
from medilens.core.errors import MediLensError
from medilens.db import init_db
from medilens.services.chat_pipeline import PipelineStateTracker
import logging
from medilens.core.logging import configure_logging

configure_logging()

app = FastAPI(title=settings.PROJECT_NAME, version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# which sessions are waiting on the webhook, shared across requests
app.state.pipeline_state = PipelineStateTracker()

app.include_router(api_router, prefix="/api")


@app.exception_handler(MediLensError)
async def medilens_error_handler(request: Request, exc: MediLensError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})


@app.get("/health")
def health():
    return {
        "status": "ok",
        "webhook_configured": bool(settings.MEDILENS_WEBHOOK_URL),
        "database_configured": bool(settings.DATABASE_URL),
        "auth_configured": bool(settings.AUTH_JWT_SECRET),
    }


@app.on_event("startup")
def on_startup():
    logging.info("Starting up: initializing DB...")
    init_db.init_tables()
    if not settings.MEDILENS_WEBHOOK_URL:
        logging.warning("MEDILENS_WEBHOOK_URL not configured; chat replies will report it")
    logging.info("Startup complete")
