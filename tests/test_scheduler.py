"""Tests for the in-process scheduler and the Celery entry point."""
import asyncio
from unittest.mock import MagicMock, patch

from app.tasks.scheduler import CheckScheduler


class TestCheckScheduler:
    """Tests for CheckScheduler."""

    def test_runs_cycles_until_stopped(self):
        checker = MagicMock()
        checker.run_cycle.return_value = {"due": 0}
        scheduler = CheckScheduler(checker=checker, period_seconds=0.01)

        async def exercise():
            scheduler.start()
            assert scheduler.running
            await asyncio.sleep(0.1)
            await scheduler.stop()

        asyncio.run(exercise())

        assert not scheduler.running
        assert checker.run_cycle.call_count >= 2

    def test_cycle_error_does_not_stop_loop(self):
        checker = MagicMock()
        checker.run_cycle.side_effect = [RuntimeError("boom")] + [{"due": 0}] * 100
        scheduler = CheckScheduler(checker=checker, period_seconds=0.01)

        async def exercise():
            scheduler.start()
            await asyncio.sleep(0.1)
            await scheduler.stop()

        asyncio.run(exercise())

        assert checker.run_cycle.call_count >= 2

    def test_stop_without_start(self):
        scheduler = CheckScheduler(checker=MagicMock(), period_seconds=60)

        asyncio.run(scheduler.stop())

        assert not scheduler.running


class TestCeleryTask:
    """Tests for the check_due_domains Celery task."""

    @patch("app.tasks.domain_tasks.DomainChecker")
    def test_task_runs_one_cycle(self, mock_checker_cls):
        from app.tasks.domain_tasks import check_due_domains

        mock_checker_cls.return_value.run_cycle.return_value = {"due": 3, "checked": 3}

        result = check_due_domains()

        assert result == {"status": "success", "due": 3, "checked": 3}
        mock_checker_cls.return_value.run_cycle.assert_called_once_with()
