"""
Unit Tests for the Task Runner

Tests for the read/click interaction loop, setup failures and the way
every outcome ends up in the result store.
"""

import pytest

from services.browser.proxies import ProxyPool
from services.browser.worker_pool import WorkerPool
from services.turnstile.models import FailureResult, SolveTask, SuccessResult
from services.turnstile.runner import TaskRunner
from services.turnstile.store import ResultStore
from tests.fakes import FakeEngine, FakePage


def make_task(**overrides) -> SolveTask:
    values = {"task_id": "task-1", "url": "https://example.com", "sitekey": "0xSITEKEY"}
    values.update(overrides)
    return SolveTask(**values)


@pytest.fixture
def store(results_path):
    return ResultStore(results_path)


@pytest.fixture
def build_runner(store):
    """Start a single-worker pool on the given engine and wrap it in a runner."""
    async def _build(engine: FakeEngine, proxies=None):
        pool = WorkerPool(size=1, builder=engine)
        await pool.initialize()
        return TaskRunner(pool, store, proxies=proxies), pool

    return _build


# =============================================================================
# Interaction Loop
# =============================================================================

class TestInteraction:
    """Tests for the attempt state machine."""

    async def test_token_on_first_read(self, build_runner, store):
        page = FakePage(reads=["mock-token"])
        runner, pool = await build_runner(FakeEngine(lambda: page))

        await runner.run(make_task())

        result = store.get("task-1")
        assert isinstance(result, SuccessResult)
        assert result.token == "mock-token"
        assert result.elapsed_seconds >= 0
        assert page.clicked == []
        assert pool.busy_count == 0

    async def test_token_after_clicks(self, build_runner, store):
        """Empty reads trigger a click; the token is taken as soon as it appears."""
        page = FakePage(reads=["", "", "late-token"])
        runner, _ = await build_runner(FakeEngine(lambda: page))

        await runner.run(make_task())

        assert store.get("task-1").token == "late-token"
        assert page.read_calls == 3
        assert page.clicked == ["div.cf-turnstile", "div.cf-turnstile"]

    async def test_never_solved_is_interaction_timeout(self, build_runner, store):
        """Ten empty reads end the task with an interaction-timeout failure."""
        page = FakePage(reads=[])
        runner, pool = await build_runner(FakeEngine(lambda: page))

        await runner.run(make_task())

        result = store.get("task-1")
        assert isinstance(result, FailureResult)
        assert result.reason == "interaction-timeout"
        assert page.read_calls == TaskRunner.MAX_ATTEMPTS
        assert len(page.clicked) == TaskRunner.MAX_ATTEMPTS
        assert pool.busy_count == 0

    async def test_read_errors_are_retried(self, build_runner, store):
        page = FakePage(reads=[RuntimeError("frame detached"), "tok"])
        runner, _ = await build_runner(FakeEngine(lambda: page))

        await runner.run(make_task())

        assert store.get("task-1").token == "tok"
        assert page.read_calls == 2

    async def test_hanging_reads_time_out(self, build_runner, store):
        """A read that never returns counts as a failed attempt."""
        page = FakePage(read_forever=True)
        runner, _ = await build_runner(FakeEngine(lambda: page))

        await runner.run(make_task())

        assert store.get("task-1").reason == "interaction-timeout"
        assert page.read_calls == TaskRunner.MAX_ATTEMPTS

    async def test_custom_selector_is_clicked(self, build_runner, store):
        page = FakePage(reads=["", "tok"])
        runner, _ = await build_runner(FakeEngine(lambda: page))

        await runner.run(make_task(selector="#my-widget"))

        assert page.waited_for == ["#my-widget"]
        assert page.resized == [("#my-widget", 70)]
        assert page.clicked == ["#my-widget"]


# =============================================================================
# Page Setup
# =============================================================================

class TestPageSetup:
    """Tests for serving the challenge page on the target URL."""

    async def test_challenge_page_served_on_normalized_url(self, build_runner):
        page = FakePage(reads=["tok"])
        runner, _ = await build_runner(FakeEngine(lambda: page))

        await runner.run(make_task(action="login", cdata="session-42"))

        url, body = page.intercepted[0]
        assert url == "https://example.com/"
        assert page.navigated == ["https://example.com/"]
        assert 'data-sitekey="0xSITEKEY"' in body
        assert 'data-action="login"' in body
        assert 'data-cdata="session-42"' in body
        assert page.resized == [("div.cf-turnstile", 70)]

    async def test_navigation_failure_is_error(self, build_runner, store):
        page = FakePage(navigate_error=RuntimeError("net::ERR_NAME_NOT_RESOLVED"))
        engine = FakeEngine(lambda: page)
        runner, pool = await build_runner(engine)

        await runner.run(make_task())

        assert store.get("task-1").reason == "error"
        assert page.read_calls == 0
        assert engine.sessions[0].closed
        assert pool.busy_count == 0

    async def test_missing_widget_is_error(self, build_runner, store):
        page = FakePage(element_never_appears=True)
        runner, _ = await build_runner(FakeEngine(lambda: page))

        await runner.run(make_task())

        assert store.get("task-1").reason == "error"
        assert page.clicked == []

    async def test_session_failure_is_error(self, build_runner, store):
        engine = FakeEngine(session_error=RuntimeError("context limit"))
        runner, pool = await build_runner(engine)

        await runner.run(make_task())

        assert store.get("task-1").reason == "error"
        assert pool.busy_count == 0

    async def test_close_failure_keeps_result(self, build_runner, store):
        engine = FakeEngine(session_close_error=True)
        runner, pool = await build_runner(engine)

        await runner.run(make_task())

        assert store.get("task-1").token == "mock-token"
        assert engine.sessions[0].closed
        assert pool.busy_count == 0


# =============================================================================
# Proxies
# =============================================================================

class TestProxies:
    """Tests for proxy selection per task."""

    async def test_proxy_passed_to_session(self, build_runner, proxies_path):
        proxies_path.write_text("http:10.0.0.1:3128:bob:pw\n", encoding="utf-8")
        engine = FakeEngine()
        runner, _ = await build_runner(engine, proxies=ProxyPool(proxies_path))

        await runner.run(make_task())

        assert engine.sessions[0].proxy == {
            "server": "http://10.0.0.1:3128",
            "username": "bob",
            "password": "pw",
        }

    async def test_no_proxy_when_list_missing(self, build_runner, proxies_path, store):
        engine = FakeEngine()
        runner, _ = await build_runner(engine, proxies=ProxyPool(proxies_path))

        await runner.run(make_task())

        assert engine.sessions[0].proxy is None
        assert isinstance(store.get("task-1"), SuccessResult)

    async def test_undecodable_list_runs_without_proxy(self, build_runner, proxies_path, store):
        proxies_path.write_bytes(b"\xff\xfe1.1.1.1:80\n")
        engine = FakeEngine()
        runner, _ = await build_runner(engine, proxies=ProxyPool(proxies_path))

        await runner.run(make_task())

        assert isinstance(store.get("task-1"), SuccessResult)
        assert engine.sessions[0].proxy is None

    async def test_proxies_disabled(self, build_runner):
        engine = FakeEngine()
        runner, _ = await build_runner(engine)

        await runner.run(make_task())

        assert engine.sessions[0].proxy is None
