# web_api/tests/conftest.py
"""Pytest fixtures for web API tests."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from web_api.routes.notifications import router as notifications_router

TEST_SECRET = "test-trigger-secret"


@pytest.fixture
def trigger_secret(monkeypatch):
    monkeypatch.setenv("TRIGGER_SECRET", TEST_SECRET)
    return TEST_SECRET


@pytest.fixture
def client(trigger_secret):
    """TestClient for the notification routes (no lifespan, no scheduler)."""
    app = FastAPI()
    app.include_router(notifications_router)
    return TestClient(app)


@pytest.fixture
def auth_headers(trigger_secret):
    return {"X-Trigger-Secret": trigger_secret}
