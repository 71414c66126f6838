"""Pytest configuration and fixtures for clusterize tests."""

import typing as t

import loguru
import pytest
from blockbuster import BlockBuster, blockbuster_ctx

from clusterize.app import create_app
from clusterize.config.settings import Environment, LogLevel, Settings
from clusterize.domain.pool_config import PoolConfig
from clusterize.domain.workers import Role
from clusterize.events import BaseEmitter, EventEmitter
from clusterize.infrastructure.logging import reset_logging
from clusterize.supervisor import Supervisor
from tests.fixtures.spawner import FakeSpawner
from tests.fixtures.workers import noop_worker


@pytest.fixture(autouse=True)
def blockbuster(request: pytest.FixtureRequest) -> t.Iterator[BlockBuster | None]:
    """Detect blocking calls made by clusterize inside the event loop.

    Tests that start real processes are marked ``allow_blocking``: reaping
    a child and reading its pipe are short blocking calls by nature.
    """
    if request.node.get_closest_marker("allow_blocking"):
        yield None
        return

    with blockbuster_ctx(scanned_modules=["clusterize"]) as bb:
        # Third party modules use these functions, so we deactivate them
        # for now
        bb.functions["os.path.abspath"].deactivate()

        yield bb


@pytest.fixture(autouse=True)
def clean_logging_state():
    """Automatically reset logging before each test for isolation."""
    reset_logging()
    yield
    reset_logging()


@pytest.fixture
def test_settings():
    """Provide test-specific settings."""
    return Settings(
        environment=Environment.TESTING,
        log_level=LogLevel.CRITICAL,
        startup_timeout=0.05,
        shutdown_timeout=0.5,
    )


@pytest.fixture
def test_app(test_settings):
    """Provide a test app with clean logging state."""
    app = create_app(settings=test_settings)
    yield app


@pytest.fixture
def mock_logger(mocker):
    """Provide a mock logger for testing that captures log calls."""
    logger = mocker.Mock(spec=loguru.logger)
    return logger


@pytest.fixture
def mock_emitter(mocker):
    """Provide a mock event emitter for testing event emission."""
    emitter = mocker.Mock(spec=BaseEmitter)
    return emitter


@pytest.fixture
def real_emitter(mock_logger):
    """Provide a real EventEmitter with a mocked logger."""
    return EventEmitter(mock_logger)


@pytest.fixture
def fake_spawner(mock_logger) -> FakeSpawner:
    """Provide an in-memory spawner recording every spawn call."""
    return FakeSpawner(mock_logger)


@pytest.fixture
def pool_config() -> PoolConfig:
    """Provide a minimal valid pool configuration."""
    return PoolConfig(worker_entry=noop_worker, shared_env={"GREETING": "hello"})


@pytest.fixture
def make_supervisor(
    fake_spawner: FakeSpawner, mock_logger
) -> t.Callable[..., Supervisor]:
    """Factory fixture creating overseer-role supervisors over the fake spawner."""

    def _make(
        parallelism: int = 4,
        role: Role = Role.OVERSEER,
        startup_timeout: float = 30.0,
        shutdown_timeout: float = 0.5,
        **kwargs: t.Any,
    ) -> Supervisor:
        return Supervisor(
            spawner=kwargs.pop("spawner", fake_spawner),
            role=role,
            startup_timeout=startup_timeout,
            shutdown_timeout=shutdown_timeout,
            parallelism=lambda: parallelism,
            handle_signals=False,
            logger=mock_logger,
            **kwargs,
        )

    return _make
