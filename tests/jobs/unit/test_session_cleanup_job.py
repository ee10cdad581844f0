"""
Unit Tests: Session cleanup job (jobs/session_cleanup_job.py)
"""

import asyncio
from datetime import timedelta

import pytest

from jobs.session_cleanup_job import run_cleanup_cycle, session_cleanup_scheduler


class TestRunCleanupCycle:

    def test_removes_sessions_idle_past_limit(self, registry):
        idle = registry.active_session
        registry.create_session()
        idle.last_active -= timedelta(hours=2)

        removed = run_cleanup_cycle(registry)

        assert removed == [idle.id]

    def test_keeps_recent_sessions(self, registry):
        registry.create_session()

        assert run_cleanup_cycle(registry) == []
        assert len(registry) == 2


class TestScheduler:

    @pytest.mark.asyncio
    async def test_disabled_interval_returns_immediately(self, registry):
        await asyncio.wait_for(session_cleanup_scheduler(registry, interval_minutes=0), timeout=1)

    @pytest.mark.asyncio
    async def test_cancel_stops_scheduler(self, registry):
        task = asyncio.create_task(session_cleanup_scheduler(registry, interval_minutes=10))
        await asyncio.sleep(0)

        task.cancel()
        await task

        assert task.done()
