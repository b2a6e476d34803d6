"""Pytest configuration and shared fixtures."""

import os
import time
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from testcontainers.nats import NatsContainer

from subject_registry.application.lifecycle import LifecycleConfig, SubjectLifecycleOrchestrator
from subject_registry.infrastructure.config import NATSConnectionConfig
from subject_registry.infrastructure.in_memory_metrics import InMemoryMetrics
from subject_registry.infrastructure.nats_adapter import NATSAdapter
from tests.fakes import CallLog, FakeProvisioning, FakePublisher, RecordingSubjectStore


@pytest.fixture
def call_log():
    """Shared ordered call log for the recording fakes."""
    return CallLog()


@pytest.fixture
def store(call_log):
    return RecordingSubjectStore(call_log)


@pytest.fixture
def provisioning(call_log):
    return FakeProvisioning(call_log)


@pytest.fixture
def publisher(call_log):
    return FakePublisher(call_log)


@pytest.fixture
def metrics():
    return InMemoryMetrics()


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing."""
    mock = MagicMock()
    mock.info = MagicMock()
    mock.warning = MagicMock()
    mock.error = MagicMock()
    mock.debug = MagicMock()
    mock.exception = MagicMock()
    return mock


@pytest.fixture
def lifecycle_config():
    """Short timeouts so timeout tests finish quickly."""
    return LifecycleConfig(provisioning_timeout=0.2, publish_timeout=0.1)


@pytest.fixture
def orchestrator(store, provisioning, publisher, lifecycle_config, mock_logger, metrics):
    return SubjectLifecycleOrchestrator(
        store=store,
        provisioning=provisioning,
        publisher=publisher,
        config=lifecycle_config,
        logger=mock_logger,
        metrics=metrics,
    )


@pytest.fixture
def mock_message_bus():
    """Create a mock message bus for testing."""
    mock = AsyncMock()
    mock.is_connected = AsyncMock(return_value=True)
    return mock


@pytest.fixture(scope="session")
def nats_container():
    """Start NATS container for integration tests."""
    if os.getenv("SKIP_INTEGRATION_TESTS", "").lower() == "true":
        pytest.skip("Integration tests disabled")

    # Use existing NATS if available
    if os.getenv("NATS_URL"):
        yield os.getenv("NATS_URL")
        return

    container = NatsContainer("nats:2.10-alpine")
    container.with_command("-js")  # Enable JetStream
    container.start()

    # Wait for NATS to be ready
    time.sleep(2)

    nats_url = f"nats://localhost:{container.get_exposed_port(4222)}"
    yield nats_url

    container.stop()


@pytest_asyncio.fixture
async def nats_adapter(nats_container):
    """Create a real NATS adapter with a per-test stream."""
    stream = f"SUBJECT_EVENTS_{time.monotonic_ns()}"
    adapter = NATSAdapter(config=NATSConnectionConfig(servers=[nats_container], stream_name=stream))
    await adapter.connect()

    yield adapter

    try:
        await adapter.jetstream.delete_stream(stream)
    finally:
        await adapter.disconnect()
