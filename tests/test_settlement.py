"""Tests for the settlement collaborators"""

import asyncio

import pytest

from arbledger.engine import ArbitrageEngine
from arbledger.settlement import QueuedSettlement, SettlementCollaborator, WebhookSink

from conftest import ALICE, OWNER


class TestSettlementCollaborator:

    def test_tx_reference_is_unique_hex(self, logger):
        collab = SettlementCollaborator(logger)
        refs = {collab.tx_reference(str(i)) for i in range(50)}
        assert len(refs) == 50
        assert all(len(r) == 64 and int(r, 16) >= 0 for r in refs)

    def test_base_dispatch_not_implemented(self, logger):
        with pytest.raises(NotImplementedError):
            SettlementCollaborator(logger).dispatch(None)


class TestQueuedSettlement:

    @pytest.mark.asyncio
    async def test_dispatch_is_fire_and_forget(self, logger, clock, deposit):
        delivered = []

        async def sink(execution):
            delivered.append(execution.id)

        queued = QueuedSettlement(logger, sinks=[sink])
        engine = ArbitrageEngine(OWNER, logger, settlement=queued, clock=clock)
        intent_id = engine.create_intent(ALICE, "ETH/USDC", "1.0", deposit)

        handle = engine.execute_arbitrage(intent_id, ALICE, "3000.0", "2950.0")

        # Nothing delivered until the worker runs
        assert handle.collaborator == "queued"
        assert queued.pending == 1
        assert delivered == []

        await queued.start()
        await queued.drain()
        assert delivered == ["1"]
        await queued.stop()

    @pytest.mark.asyncio
    async def test_sink_failure_is_logged_and_dropped(self, logger, clock, deposit):
        delivered = []

        async def broken(execution):
            raise ConnectionError("settlement service down")

        async def sink(execution):
            delivered.append(execution.id)

        queued = QueuedSettlement(logger, sinks=[broken, sink])
        engine = ArbitrageEngine(OWNER, logger, settlement=queued, clock=clock)
        await queued.start()

        for _ in range(2):
            intent_id = engine.create_intent(ALICE, "ETH/USDC", "1.0", deposit)
            engine.execute_arbitrage(intent_id, ALICE, "3000.0", "2950.0")

        await queued.drain()
        assert queued.failures == 2
        assert delivered == ["1", "2"]
        assert len(engine.get_execution_history(ALICE)) == 2
        await queued.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start(self, logger):
        await QueuedSettlement(logger).stop()


class FakeResponse:
    def __init__(self, status):
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise RuntimeError(f"HTTP {self.status}")

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    def __init__(self, status=200):
        self.status = status
        self.posts = []
        self.closed = False

    def post(self, url, json=None):
        self.posts.append((url, json))
        return FakeResponse(self.status)

    async def close(self):
        self.closed = True


class TestWebhookSink:

    @pytest.mark.asyncio
    async def test_posts_execution_json(self, engine, deposit):
        intent_id = engine.create_intent(ALICE, "ETH/USDC", "1.0", deposit)
        engine.execute_arbitrage(intent_id, ALICE, "3000.0", "2950.0")
        execution = engine.get_execution("1")

        sink = WebhookSink("http://settlement.local/executions")
        session = FakeSession()
        sink._session = session

        await sink(execution)

        url, body = session.posts[0]
        assert url == "http://settlement.local/executions"
        assert body["id"] == "1"
        assert body["profit"] == "40.00"
        await sink.close()
        assert session.closed

    @pytest.mark.asyncio
    async def test_http_error_raises(self, engine, deposit):
        intent_id = engine.create_intent(ALICE, "ETH/USDC", "1.0", deposit)
        engine.execute_arbitrage(intent_id, ALICE, "3000.0", "2950.0")

        sink = WebhookSink("http://settlement.local/executions")
        sink._session = FakeSession(status=503)

        with pytest.raises(RuntimeError):
            await sink(engine.get_execution("1"))
