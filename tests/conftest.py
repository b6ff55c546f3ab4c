"""
Test Configuration

Pytest configuration and shared fixtures for all tests.

No real browser is ever launched: worker pools are built from
tests.fakes.FakeEngine, whose pages are scripted per test.
"""

from typing import AsyncGenerator, List, Optional

import pytest
from httpx import AsyncClient, ASGITransport

from config.settings import Settings
from services.browser.worker_pool import WorkerPool
from services.turnstile.dispatcher import Dispatcher
from services.turnstile.runner import TaskRunner
from tests.fakes import FakeEngine


@pytest.fixture(autouse=True)
def fast_timings(monkeypatch):
    """Shrink the runner and pool timings so tests finish quickly."""
    monkeypatch.setattr(TaskRunner, "READ_TIMEOUT", 0.02)
    monkeypatch.setattr(TaskRunner, "CLICK_TIMEOUT", 0.02)
    monkeypatch.setattr(TaskRunner, "CLICK_BACKOFF", 0.0)
    monkeypatch.setattr(TaskRunner, "ELEMENT_WAIT_TIMEOUT", 0.05)
    monkeypatch.setattr(WorkerPool, "POLL_INTERVAL", 0.005)


@pytest.fixture
def results_path(tmp_path):
    return tmp_path / "results.json"


@pytest.fixture
def proxies_path(tmp_path):
    return tmp_path / "proxies.txt"


@pytest.fixture
def make_settings(results_path, proxies_path):
    def _make(**overrides) -> Settings:
        values = {
            "USERAGENT": "Mozilla/5.0 (test)",
            "THREAD": 1,
            "RESULTS_FILE": str(results_path),
            "PROXIES_FILE": str(proxies_path),
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
async def make_dispatcher(make_settings):
    """Build started dispatchers around a FakeEngine; all are shut down after the test."""
    started: List[Dispatcher] = []

    async def _make(engine: Optional[FakeEngine] = None, **overrides) -> Dispatcher:
        engine = engine or FakeEngine()
        dispatcher = Dispatcher.from_settings(make_settings(**overrides), builder=engine)
        await dispatcher.startup()
        started.append(dispatcher)
        return dispatcher

    yield _make

    for dispatcher in started:
        await dispatcher.shutdown()


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
async def client(make_dispatcher, make_settings, engine) -> AsyncGenerator[AsyncClient, None]:
    """
    Async test client for an app whose pool runs on ``engine``.

    Tests change what the browsers do by setting ``engine.page_factory``.
    """
    from main import create_app
    from utils.rate_limit import limiter

    limiter.reset()
    dispatcher = await make_dispatcher(engine)
    app = create_app(config=make_settings(), dispatcher=dispatcher)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
