"""Shared pytest fixtures for test suite"""
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from mailtrack.core.config import settings
from mailtrack.db.event_log import EventLog
from mailtrack.main import app
from mailtrack.models import OpenRecord, SentRecord
from mailtrack.services.event_store import EventStore, ObserverContext


class FakeClock:
    """Deterministic clock injected into the event store"""

    def __init__(self, start: datetime = None):
        self.now = start or datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


def make_observer(ip: str = "203.0.113.7", user_agent: str = "Mozilla/5.0 (Test)", **kwargs) -> ObserverContext:
    """Observer context as the pixel route would build it"""
    return ObserverContext(
        user_agent=user_agent,
        forwarded_for=kwargs.pop("forwarded_for", None),
        remote_addr=ip,
        referer=kwargs.pop("referer", None),
        headers=kwargs.pop("headers", {}),
    )


@pytest.fixture(scope="function")
def data_dir(tmp_path) -> Path:
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture(scope="function")
def clock() -> FakeClock:
    return FakeClock()


def build_store(data_dir: Path, clock=None) -> EventStore:
    kwargs = {"clock": clock} if clock else {}
    return EventStore(
        sent_log=EventLog(data_dir / "sent.jsonl", SentRecord, "sent", fsync=False),
        open_log=EventLog(data_dir / "opens.jsonl", OpenRecord, "open", fsync=False),
        **kwargs
    )


@pytest.fixture(scope="function")
def event_store(data_dir, clock) -> EventStore:
    """Empty event store backed by temporary log files"""
    store = build_store(data_dir, clock)
    store.load()
    return store


@pytest.fixture(scope="function")
def client(data_dir, monkeypatch) -> Generator[TestClient, None, None]:
    """FastAPI test client whose event logs live in a temporary directory"""
    monkeypatch.setattr(settings, "DATA_DIR", data_dir)
    monkeypatch.setattr(settings, "FSYNC_WRITES", False)
    monkeypatch.setattr(settings, "ENVIRONMENT", "development")
    monkeypatch.setattr(settings, "ADMIN_TOKEN", "")
    monkeypatch.setattr(settings, "OTEL_EXPORTER_OTLP_ENDPOINT", "")

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope="function")
def production_client(client, monkeypatch) -> TestClient:
    """Client against an app running in production mode with an admin token"""
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")
    monkeypatch.setattr(settings, "ADMIN_TOKEN", "s3cret-admin-token")
    return client
