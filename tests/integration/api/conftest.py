import os
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from trellis.adapters.dev_email import DevEmailAdapter
from trellis.adapters.dispatch import SyncNotificationDispatcher
from trellis.adapters.memory_cache import InMemoryCache
from trellis.api.deps import (
    Settings,
    get_cache,
    get_dispatcher,
    get_email_adapter,
    get_settings,
)
from trellis.api.main import app


@pytest.fixture
def api_email() -> DevEmailAdapter:
    return DevEmailAdapter()


@pytest.fixture
def override_settings(db_path: str, api_email: DevEmailAdapter):
    settings = Settings()
    settings.db_path = db_path
    settings.rules_path = Path(os.getcwd()) / "rules.yaml"
    cache = InMemoryCache()
    dispatcher = SyncNotificationDispatcher(api_email)

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_email_adapter] = lambda: api_email
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    yield settings
    app.dependency_overrides.clear()


@pytest.fixture
def client(override_settings) -> TestClient:
    return TestClient(app)


@pytest.fixture
def register_and_login(client: TestClient):
    """Register an account and return bearer headers for it."""

    def _go(email: str, display_name: str = "User", password: str = "secret123") -> dict[str, str]:
        resp = client.post(
            "/api/users",
            json={"email": email, "password": password, "displayName": display_name},
        )
        assert resp.status_code == 201, resp.text

        resp = client.post("/api/auth/login", data={"username": email, "password": password})
        assert resp.status_code == 200, resp.text
        # The login cookie would otherwise win over the header
        client.cookies.clear()
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}

    return _go
