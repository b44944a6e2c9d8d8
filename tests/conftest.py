"""Pytest configuration and fixtures."""

import tempfile
from datetime import UTC, datetime
from pathlib import Path

import pytest
import yaml

from matchboard.catalog.clubs import ClubRegistry
from matchboard.common.config import AppConfig, load_config
from matchboard.presentation.store import PresentationStore
from matchboard.storage.database import Database


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def dev_config_path(temp_dir: Path) -> Path:
    """Create a temporary dev config file."""
    config_data = {
        "environment": "test",
        "storage": {
            "path": str(temp_dir / "test.db"),
        },
        "presentation_api": {
            "base_url": "https://feed.example.test",
            "timeout_seconds": 5,
        },
        "sync": {
            "context_name": "test-kiosk",
            "poll_interval_seconds": 0.01,
            "refresh_interval_seconds": 60,
        },
        "logging": {
            "level": "DEBUG",
            "format": "console",
            "log_file": None,
        },
    }
    config_path = temp_dir / "test_config.yaml"
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return config_path


@pytest.fixture
def config(dev_config_path: Path, monkeypatch: pytest.MonkeyPatch) -> AppConfig:
    """Load test configuration."""
    for name in ("PRESENTATION_API_BASE", "PRESENTATION_DB_PATH", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return load_config(dev_config_path)


@pytest.fixture
def db(temp_dir: Path) -> Database:
    """Create a test database."""
    database = Database(temp_dir / "test.db")
    database.connect()
    database.migrate()
    yield database
    database.close()


@pytest.fixture
def registry() -> ClubRegistry:
    """Club registry built from the bundled catalog."""
    return ClubRegistry.build()


@pytest.fixture
def store(db: Database, registry: ClubRegistry) -> PresentationStore:
    """Presentation store of a context named 'kiosk'."""
    return PresentationStore(db, registry, origin="kiosk")


@pytest.fixture
def fixed_now() -> datetime:
    """A fixed reference time."""
    return datetime(2025, 1, 1, 12, 0, 0, tzinfo=UTC)


def make_stored_match(**overrides) -> dict:
    """A well-formed stored match payload."""
    payload = {
        "id": "local-1",
        "homeLeague": "english-premier-league",
        "awayLeague": "english-premier-league",
        "homeClub": "arsenal",
        "awayClub": "chelsea",
        "homeTeam": "Arsenal",
        "awayTeam": "Chelsea",
        "kickoff": "2025-01-01T18:00:00.000Z",
        "homeProbability": 40,
        "drawProbability": 30,
        "awayProbability": 30,
        "note": "Derby",
        "createdAt": 1735700000000,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def stored_match():
    """Factory for stored match payloads."""
    return make_stored_match
