"""
Shared pytest fixtures: an in-memory database, test settings, and a webhook
client whose transport is an ``httpx.MockTransport``.
"""

import os

# Keep a developer's .env out of the tests; these are test-only defaults.
os.environ.setdefault("DATABASE_URL", "")
os.environ.setdefault("MEDILENS_WEBHOOK_URL", "")

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from medilens import models  # noqa: F401
from medilens.core.config import Settings, get_settings
from medilens.core.dependencies import get_db, get_webhook_client
from medilens.db.base import Base
from medilens.schemas.user import UserOut
from medilens.services.chat_pipeline import PipelineStateTracker
from medilens.services.webhook_client import WebhookClient

WEBHOOK_URL = "https://n8n.example.test/webhook/medilens"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        DATABASE_URL=None,
        MEDILENS_WEBHOOK_URL=WEBHOOK_URL,
        WEBHOOK_TIMEOUT_SECONDS=0.2,
        AUTH_JWT_SECRET=None,
    )


@pytest.fixture
def user():
    return UserOut(id="user-1", email="asha@example.com", name="Asha")


@pytest.fixture
def webhook_calls():
    return []


@pytest.fixture
def webhook_handler():
    """Default webhook: a JSON reply. Tests override this fixture or swap the handler."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"result": "Take with food."})

    return handler


@pytest.fixture
def make_webhook(webhook_calls):
    def _make(handler, url=WEBHOOK_URL, timeout=0.2):
        async def recording(request: httpx.Request):
            webhook_calls.append(request)
            response = handler(request)
            if hasattr(response, "__await__"):
                response = await response
            return response

        return WebhookClient(url, timeout=timeout, transport=httpx.MockTransport(recording))

    return _make


@pytest.fixture
def webhook(make_webhook, webhook_handler):
    return make_webhook(webhook_handler)


@pytest.fixture
def tracker():
    return PipelineStateTracker()


@pytest.fixture
def client(engine, settings, webhook):
    from medilens.main import app

    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_webhook_client] = lambda: webhook
    app.state.pipeline_state = PipelineStateTracker()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
