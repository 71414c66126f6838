"""Tests for the clusterize() entry point."""

import pytest

from clusterize import clusterize
from clusterize.domain.exceptions import ConfigError
from clusterize.domain.pool_config import PoolConfig
from clusterize.domain.workers import Role
from clusterize.respawn import respawn_on_crash
from tests.fixtures.workers import noop_worker


@pytest.fixture
def supervisor(mocker):
    """Patch Supervisor.from_settings with a mock supervisor."""
    supervisor = mocker.Mock()
    supervisor.role = Role.OVERSEER
    mocker.patch(
        "clusterize.runner.Supervisor.from_settings", return_value=supervisor
    )
    return supervisor


def test_overseer_runs_pool_until_stopped(supervisor, mocker, test_settings):
    run = mocker.patch("clusterize.runner.asyncio.run")

    clusterize(
        noop_worker,
        ratio=0.5,
        respawn_decision=respawn_on_crash,
        shared_env={"GREETING": "hello"},
        settings=test_settings,
    )

    supervisor.run.assert_called_once_with(
        PoolConfig(
            worker_entry=noop_worker,
            ratio=0.5,
            respawn_decision=respawn_on_crash,
            shared_env={"GREETING": "hello"},
        )
    )
    run.assert_called_once_with(supervisor.run.return_value)
    supervisor.run_worker.assert_not_called()


def test_worker_runs_entry_synchronously(supervisor, mocker, test_settings):
    supervisor.role = Role.WORKER
    run = mocker.patch("clusterize.runner.asyncio.run")

    clusterize(noop_worker, explicit_count=2, settings=test_settings)

    supervisor.run_worker.assert_called_once_with(
        PoolConfig(worker_entry=noop_worker, explicit_count=2)
    )
    run.assert_not_called()


def test_settings_reach_supervisor(mocker, test_settings):
    from_settings = mocker.patch("clusterize.runner.Supervisor.from_settings")
    from_settings.return_value.role = Role.WORKER

    clusterize(noop_worker, settings=test_settings)

    assert from_settings.call_args.args[0] is test_settings


def test_missing_entry_raises_config_error(mocker, test_settings):
    mocker.patch.dict("os.environ", clear=True)

    with pytest.raises(ConfigError):
        clusterize(None, settings=test_settings)
