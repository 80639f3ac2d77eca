# medilens/core/dependencies.py
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from medilens.core.config import Settings, get_settings
from medilens.db.session import SessionLocal
from medilens.schemas.user import UserOut
from medilens.services.auth_service import AuthError, AuthService
from medilens.services.chat_pipeline import PipelineStateTracker
from medilens.services.webhook_client import WebhookClient


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    authorization: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> UserOut:
    try:
        return AuthService(db, settings).authenticate(authorization)
    except AuthError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_webhook_client(settings: Settings = Depends(get_settings)) -> WebhookClient:
    return WebhookClient(settings.MEDILENS_WEBHOOK_URL, timeout=settings.WEBHOOK_TIMEOUT_SECONDS)


def get_pipeline_state(request: Request) -> PipelineStateTracker:
    return request.app.state.pipeline_state
