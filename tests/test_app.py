# tests/test_app.py
import pytest
from fastapi.testclient import TestClient

from backend.app.core.config import Settings, get_settings
from backend.app.main import create_app
from backend.app.worker import get_coordinator
from reachout.coordinator import RunCoordinator
from reachout.errors import ConfigError
from reachout.models import MergePolicy, RunStats


class StubCoordinator:
    def __init__(self, accept=True, stats=None):
        self.accept = accept
        self.stats = stats
        self.triggers = []

    def start(self, trigger="manual"):
        self.triggers.append(trigger)
        return self.accept

    def status(self):
        return {
            "running": not self.accept,
            "last_trigger": self.triggers[-1] if self.triggers else "",
            "last_error": None,
            "last_stats": self.stats,
        }


@pytest.fixture
def client_with():
    def build(coordinator):
        app = create_app()
        app.dependency_overrides[get_coordinator] = lambda: coordinator
        return TestClient(app)
    return build


def test_health():
    with TestClient(create_app()) as client:
        resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy"}


def test_trigger_starts_run(client_with):
    stub = StubCoordinator(accept=True)
    resp = client_with(stub).post("/api/v1/runs")
    assert resp.status_code == 202
    assert resp.json()["status"] == "started"
    assert stub.triggers == ["http"]


def test_trigger_while_running_is_refused(client_with):
    resp = client_with(StubCoordinator(accept=False)).post("/api/v1/runs")
    assert resp.status_code == 409
    assert resp.json()["status"] == "busy"


def test_status_reports_last_run(client_with):
    stats = RunStats(run_id=7, started_at="t0", finished_at="t1", jobs_processed=12, records_inserted=10)
    stub = StubCoordinator(accept=True, stats=stats)
    client = client_with(stub)
    client.post("/api/v1/runs")

    body = client.get("/api/v1/runs/status").json()
    assert body["running"] is False
    assert body["last_trigger"] == "http"
    assert body["last_stats"]["run_id"] == 7
    assert body["last_stats"]["jobs_processed"] == 12


def test_status_before_any_run(client_with):
    body = client_with(RunCoordinator(lambda: None)).get("/api/v1/runs/status").json()
    assert body == {"running": False, "last_trigger": "", "last_error": None, "last_stats": None}


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("REACHOUT_MERGE_POLICY", "MERGE")
    monkeypatch.setenv("REACHOUT_MAX_PAGES", "3")
    monkeypatch.setenv("REACHOUT_PUBLIC_URL", "https://reachout.example.app/")
    get_settings.cache_clear()

    settings = get_settings()
    config = settings.scan_config()

    assert settings.public_url == "https://reachout.example.app"
    assert config.merge_policy is MergePolicy.MERGE
    assert list(config.pages) == [1, 2, 3]


def test_unknown_merge_policy_is_rejected(monkeypatch):
    monkeypatch.setenv("REACHOUT_MERGE_POLICY", "overwrite")
    with pytest.raises(ValueError):
        Settings()


def test_pipeline_requires_listing_credentials(monkeypatch):
    import asyncio

    from backend.app.worker import run_pipeline

    monkeypatch.delenv("REACHOUT_ADZUNA_APP_ID", raising=False)
    monkeypatch.delenv("REACHOUT_ADZUNA_APP_KEY", raising=False)
    with pytest.raises(ConfigError):
        asyncio.run(run_pipeline(Settings()))


def test_shutdown_cancels_active_run(monkeypatch):
    import asyncio

    from backend.app import worker

    async def endless_run():
        await asyncio.sleep(3600)

    coordinator = RunCoordinator(endless_run)
    monkeypatch.setattr(worker, "_coordinator", coordinator)
    monkeypatch.setenv("REACHOUT_DEBUG", "0")
    monkeypatch.setenv("REACHOUT_RUN_ON_STARTUP", "true")
    get_settings.cache_clear()

    with TestClient(create_app()) as client:
        assert client.get("/health").status_code == 200
        assert coordinator.running

    assert coordinator._task.cancelled()
    assert not coordinator.running
