"""Tests for LifecycleTracker state transitions and startup timeouts."""

import asyncio

import pytest

from clusterize.domain.workers import WorkerRecord, WorkerState
from clusterize.events import (
    WorkerExitedEvent,
    WorkerForkedEvent,
    WorkerListeningEvent,
    WorkerOnlineEvent,
)
from clusterize.lifecycle import DEFAULT_STARTUP_TIMEOUT, LifecycleTracker

SHORT_TIMEOUT = 0.02


@pytest.fixture
def workers() -> dict[int, WorkerRecord]:
    return {}


@pytest.fixture
def tracker(workers, mock_logger) -> LifecycleTracker:
    return LifecycleTracker(workers, startup_timeout=SHORT_TIMEOUT, logger=mock_logger)


def failed_to_fork_logs(mock_logger) -> list[str]:
    return [
        call.args[0]
        for call in mock_logger.error.call_args_list
        if "failed to fork" in call.args[0]
    ]


def test_default_startup_timeout_is_thirty_seconds(workers, mock_logger) -> None:
    tracker = LifecycleTracker(workers, logger=mock_logger)

    assert tracker.startup_timeout == DEFAULT_STARTUP_TIMEOUT == 30.0


class TestTrackerTransitions:
    """Test FORKING -> ONLINE -> EXITED transitions."""

    @pytest.mark.asyncio
    async def test_forked_creates_record_and_arms_timer(self, tracker, workers):
        tracker.track_forked(WorkerForkedEvent(worker_id=1))

        assert workers[1].state == WorkerState.FORKING
        assert tracker.pending_timeouts == 1
        tracker.clear_all()

    @pytest.mark.asyncio
    async def test_online_clears_timer(self, tracker, workers):
        tracker.track_forked(WorkerForkedEvent(worker_id=1))
        tracker.track_online(WorkerOnlineEvent(worker_id=1, pid=10))

        assert workers[1].state == WorkerState.ONLINE
        assert tracker.pending_timeouts == 0

    @pytest.mark.asyncio
    async def test_listening_clears_timer_and_logs_address(
        self, tracker, workers, mock_logger
    ):
        tracker.track_forked(WorkerForkedEvent(worker_id=1))
        tracker.track_listening(
            WorkerListeningEvent(worker_id=1, pid=10, address="0.0.0.0:8080")
        )

        assert workers[1].state == WorkerState.ONLINE
        assert tracker.pending_timeouts == 0
        mock_logger.info.assert_called_with("Worker 1 is listening on 0.0.0.0:8080")

    @pytest.mark.asyncio
    async def test_exit_before_online_clears_timer(self, tracker, workers):
        tracker.track_forked(WorkerForkedEvent(worker_id=1))

        tracked = tracker.track_exited(WorkerExitedEvent(worker_id=1, exit_code=1))

        assert tracked is True
        assert workers[1].state == WorkerState.EXITED
        assert tracker.pending_timeouts == 0

    @pytest.mark.asyncio
    async def test_exit_logs_code_and_signal(self, tracker, mock_logger):
        tracker.track_forked(WorkerForkedEvent(worker_id=2))
        tracker.track_online(WorkerOnlineEvent(worker_id=2))
        tracker.track_exited(WorkerExitedEvent(worker_id=2, signal="SIGKILL"))

        mock_logger.info.assert_called_with(
            "Worker 2 exited (code=None, signal=SIGKILL)"
        )

    @pytest.mark.asyncio
    async def test_exit_of_unknown_worker_is_ignored(self, tracker, workers):
        tracked = tracker.track_exited(WorkerExitedEvent(worker_id=9, exit_code=0))

        assert tracked is False
        assert workers == {}

    @pytest.mark.asyncio
    async def test_workers_are_tracked_independently(self, tracker, workers):
        tracker.track_forked(WorkerForkedEvent(worker_id=1))
        tracker.track_forked(WorkerForkedEvent(worker_id=2))
        tracker.track_online(WorkerOnlineEvent(worker_id=2))

        assert tracker.get_state(1) == WorkerState.FORKING
        assert tracker.get_state(2) == WorkerState.ONLINE
        assert tracker.pending_timeouts == 1
        tracker.clear_all()


class TestStartupTimeout:
    """Test the "failed to fork" timeout path."""

    @pytest.mark.asyncio
    async def test_timeout_logs_failed_to_fork_once(
        self, tracker, workers, mock_logger
    ):
        tracker.track_forked(WorkerForkedEvent(worker_id=1))

        await asyncio.sleep(SHORT_TIMEOUT * 5)

        assert failed_to_fork_logs(mock_logger) == [
            "Worker 1 failed to fork within 0.02s"
        ]
        assert tracker.get_state(1) == WorkerState.TIMED_OUT
        assert 1 not in workers
        assert tracker.pending_timeouts == 0

    @pytest.mark.asyncio
    async def test_online_before_timeout_prevents_log(self, tracker, mock_logger):
        tracker.track_forked(WorkerForkedEvent(worker_id=1))
        tracker.track_online(WorkerOnlineEvent(worker_id=1))

        await asyncio.sleep(SHORT_TIMEOUT * 5)

        assert failed_to_fork_logs(mock_logger) == []

    @pytest.mark.asyncio
    async def test_clearing_twice_is_a_no_op(self, tracker, mock_logger):
        """Online then exit in quick succession cancels the timer only once."""
        tracker.track_forked(WorkerForkedEvent(worker_id=1))
        tracker.track_online(WorkerOnlineEvent(worker_id=1))
        tracker.track_exited(WorkerExitedEvent(worker_id=1, exit_code=0))

        assert tracker.clear_timeout(1) is False

        await asyncio.sleep(SHORT_TIMEOUT * 5)

        assert failed_to_fork_logs(mock_logger) == []

    @pytest.mark.asyncio
    async def test_events_after_timeout_are_ignored(
        self, tracker, workers, mock_logger
    ):
        tracker.track_forked(WorkerForkedEvent(worker_id=1))
        await asyncio.sleep(SHORT_TIMEOUT * 5)

        tracker.track_online(WorkerOnlineEvent(worker_id=1))

        assert tracker.get_state(1) == WorkerState.TIMED_OUT
        assert 1 not in workers
        assert len(failed_to_fork_logs(mock_logger)) == 1

    @pytest.mark.asyncio
    async def test_exit_after_timeout_forgets_worker(self, tracker, workers):
        tracker.track_forked(WorkerForkedEvent(worker_id=1))
        await asyncio.sleep(SHORT_TIMEOUT * 5)

        tracked = tracker.track_exited(WorkerExitedEvent(worker_id=1, exit_code=0))

        assert tracked is False
        assert tracker.get_state(1) is None
        assert tracker.track_exited(WorkerExitedEvent(worker_id=1)) is False
        assert workers == {}

    @pytest.mark.asyncio
    async def test_clear_all_cancels_pending_timers(self, tracker, mock_logger):
        for worker_id in (1, 2, 3):
            tracker.track_forked(WorkerForkedEvent(worker_id=worker_id))

        tracker.clear_all()
        await asyncio.sleep(SHORT_TIMEOUT * 5)

        assert tracker.pending_timeouts == 0
        assert failed_to_fork_logs(mock_logger) == []
