"""Shared test fixtures and configuration for streamrelay tests.

Fixtures build the real application and components; only the client side
of the network (and, where noted, the renderer's producer) is faked.
"""

from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from streamrelay.api.app import create_app
from streamrelay.config.settings import Settings, get_settings
from streamrelay.core.logging import setup_logging


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom settings."""
    # Reuse the application logging pipeline so structlog processors behave
    # identically in tests.
    setup_logging(json_logs=False, log_level_name="DEBUG")


@pytest.fixture(autouse=True)
def isolated_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[Path, None, None]:
    """Keep config discovery away from the developer's files and environment."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("CONFIG_FILE", raising=False)
    for name in ("SERVER__HOST", "SERVER__PORT", "LOGGING__LEVEL", "PAGE__HEADING"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()


@pytest.fixture
def test_settings() -> Settings:
    """Settings with defaults only."""
    return Settings.from_config()


@pytest.fixture
def app(test_settings: Settings) -> FastAPI:
    return create_app(test_settings)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client
