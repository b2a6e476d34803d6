"""End-to-end tests against a real NATS server with JetStream."""

import asyncio
import uuid

import pytest
import pytest_asyncio

from subject_registry.application.billing import BillingAccountService
from subject_registry.application.consumer import TolerantEventConsumer
from subject_registry.application.lifecycle import LifecycleConfig, SubjectLifecycleOrchestrator
from subject_registry.domain.enums import ErrorKind
from subject_registry.domain.exceptions import DuplicateEmailError
from subject_registry.domain.results import Failure, Success
from subject_registry.infrastructure.event_subscription import bind_event_consumer
from subject_registry.infrastructure.in_memory_metrics import InMemoryMetrics
from subject_registry.infrastructure.nats_event_publisher import NATSChangeEventPublisher
from subject_registry.infrastructure.nats_kv_store import NATSKVSubjectStore
from subject_registry.infrastructure.nats_provisioning import (
    NATSAccountProvisioningClient,
    bind_billing_responder,
)
from subject_registry.infrastructure.serialization import decode_change_event
from tests.builders import ChangeEventBuilder, SubjectBuilder, SubjectRequestBuilder

pytestmark = pytest.mark.integration


@pytest_asyncio.fixture
async def kv_store(nats_adapter):
    bucket = f"subjects_{uuid.uuid4().hex[:8]}"
    store = await NATSKVSubjectStore.connect(nats_adapter, bucket=bucket)

    yield store

    await nats_adapter.jetstream.delete_key_value(bucket)


class CollectingHandler:
    def __init__(self, expected: int):
        self.events = []
        self._expected = expected
        self.done = asyncio.Event()

    async def __call__(self, event):
        self.events.append(event)
        if len(self.events) >= self._expected:
            self.done.set()


@pytest.mark.asyncio
async def test_consumer_skips_garbage_and_keeps_going(nats_adapter):
    handler = CollectingHandler(expected=2)
    metrics = InMemoryMetrics()
    consumer = TolerantEventConsumer(decode_change_event, handler=handler, metrics=metrics)
    await bind_event_consumer(nats_adapter, consumer, durable=f"test_{uuid.uuid4().hex[:8]}")
    publisher = NATSChangeEventPublisher(nats_adapter, timeout=2.0)

    await publisher.publish(ChangeEventBuilder().with_subject_id("1").build())
    await nats_adapter.publish("events.subject.created", b"\x01\x02\x03\x04\x05")
    await publisher.publish(ChangeEventBuilder().with_subject_id("2").build())

    await asyncio.wait_for(handler.done.wait(), timeout=5.0)
    assert [e.subject_id for e in handler.events] == ["1", "2"]
    assert metrics.counter("events.decode_failed") == 1


@pytest.mark.asyncio
async def test_billing_round_trip(nats_adapter):
    await bind_billing_responder(nats_adapter, BillingAccountService())
    client = NATSAccountProvisioningClient(nats_adapter, timeout=2.0)

    account = await client.create_account("s-1", "John Doe", "john@example.com")

    assert account.account_id == "s-1"


@pytest.mark.asyncio
async def test_kv_store_claims_are_atomic(kv_store):
    results = await asyncio.gather(
        *(kv_store.save(SubjectBuilder().build()) for _ in range(5)),
        return_exceptions=True,
    )

    assert sum(1 for r in results if isinstance(r, DuplicateEmailError)) == 4
    assert len(await kv_store.find_all()) == 1


@pytest.mark.asyncio
async def test_create_end_to_end(nats_adapter, kv_store):
    await bind_billing_responder(nats_adapter, BillingAccountService())
    handler = CollectingHandler(expected=1)
    consumer = TolerantEventConsumer(decode_change_event, handler=handler)
    await bind_event_consumer(nats_adapter, consumer, durable=f"test_{uuid.uuid4().hex[:8]}")
    orchestrator = SubjectLifecycleOrchestrator(
        store=kv_store,
        provisioning=NATSAccountProvisioningClient(nats_adapter, timeout=2.0),
        publisher=NATSChangeEventPublisher(nats_adapter, timeout=1.0),
        config=LifecycleConfig(provisioning_timeout=2.0, publish_timeout=1.0),
    )

    created = await orchestrator.create(SubjectRequestBuilder().build())
    duplicate = await orchestrator.create(SubjectRequestBuilder().build())

    assert isinstance(created, Success)
    assert isinstance(duplicate, Failure)
    assert duplicate.kind == ErrorKind.DUPLICATE_EMAIL
    await asyncio.wait_for(handler.done.wait(), timeout=5.0)
    assert handler.events[0].subject_id == created.value.id

    deleted = await orchestrator.delete(created.value.id)
    assert isinstance(deleted, Success)
    assert await kv_store.find_all() == []
