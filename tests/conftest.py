"""Shared fixtures for the interaction router tests."""

from pathlib import Path
import sys

import pytest
from nacl.signing import SigningKey

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:  # pragma: no cover
    sys.path.insert(0, str(ROOT))

from interaction_router import config  # noqa: E402
from interaction_router.db import get_engine, get_session_factory  # noqa: E402


def _clear_caches():
    config.get_settings.cache_clear()
    get_engine.cache_clear()
    get_session_factory.cache_clear()


@pytest.fixture(autouse=True)
def _skip_logging_configuration(monkeypatch):
    # Keeps structlog on its defaults so capture_logs sees every event.
    monkeypatch.setattr("app._LOGGING_CONFIGURED", True)


@pytest.fixture
def signing_key() -> SigningKey:
    return SigningKey.generate()


@pytest.fixture
def settings_env(monkeypatch, tmp_path, signing_key):
    db_path = tmp_path / "test.db"
    monkeypatch.setenv("DISCORD_APPLICATION_ID", "1000")
    monkeypatch.setenv("DISCORD_PUBLIC_KEY", signing_key.verify_key.encode().hex())
    monkeypatch.setenv("DISCORD_TOKEN", "bot-token")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path}")
    for var in ("ENVIRONMENT", "DEVELOPMENT_SERVER_ID", "COMPONENT_TTL_SECONDS", "SIGNATURE_MAX_AGE_SECONDS"):
        monkeypatch.delenv(var, raising=False)
    _clear_caches()
    yield tmp_path
    _clear_caches()
