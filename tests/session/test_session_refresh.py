"""Tests for the scheduled session refresh job."""

from unittest.mock import Mock

import pytest

from refdata_app.errors import SessionError
from refdata_app.metrics.registry import SESSION_REFRESH_COUNT, SESSION_REFRESH_FAILURE_COUNT
from refdata_app.session.cache import SessionCache
from refdata_app.session.manager import SessionManager
from refdata_app.session.refresh import SessionRefreshJob

from conftest import make_jwt, make_session_string


@pytest.fixture
def source(clock):
    source = Mock()
    source.acquire_session.side_effect = lambda: make_session_string(clock.now)
    return source


@pytest.fixture
def job(source, clock, metrics):
    manager = SessionManager(source, cache=SessionCache(clock=clock), clock=clock)
    return SessionRefreshJob(manager, metrics)


class TestSessionRefreshJob:
    """Test suite for keeping the session warm."""

    def test_refreshes_empty_cache(self, job, metrics):
        """Test a missing session is acquired, stored and counted."""
        assert job.run() is True
        assert job.manager.cache.get() is not None
        assert metrics.count(SESSION_REFRESH_COUNT) == 1

    def test_skips_healthy_session(self, job, source, metrics):
        """Test nothing happens while the session is valid."""
        job.run()

        assert job.run() is False
        assert source.acquire_session.call_count == 1
        assert metrics.count(SESSION_REFRESH_COUNT) == 1

    def test_failure_is_counted(self, job, source, metrics):
        """Test failures increment the failure counter and do not raise."""
        source.acquire_session.side_effect = RuntimeError("down")

        assert job.run() is False
        assert metrics.count(SESSION_REFRESH_FAILURE_COUNT) == 1
        assert metrics.count(SESSION_REFRESH_COUNT) == 0

    def test_unrepresentable_expiry_is_counted(self, job, source, clock, metrics):
        """Test a session with an out-of-range exp claim is a counted failure, not an exception."""
        source.acquire_session.side_effect = lambda: make_session_string(
            clock.now, nseappid=make_jwt({"exp": 10**20})
        )

        assert job.run() is False
        assert metrics.count(SESSION_REFRESH_FAILURE_COUNT) == 1
        assert job.manager.cache.get() is None

    def test_delegates_to_manager(self, metrics):
        """Test the job reuses the manager's refresh decision and reports its failures."""
        manager = Mock()

        def failing_refresh(on_failure):
            on_failure(SessionError("source unavailable"))
            return False

        manager.refresh_if_needed.side_effect = failing_refresh
        job = SessionRefreshJob(manager, metrics)

        assert job.run() is False
        manager.refresh_if_needed.assert_called_once()
        assert metrics.count(SESSION_REFRESH_FAILURE_COUNT) == 1
