# arbledger/settlement.py
import asyncio
import logging
import secrets
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

import aiohttp

from .models import Execution

Sink = Callable[[Execution], Awaitable[None]]

@dataclass(frozen=True, slots=True)
class SettlementHandle:
    """
    Proof that a settlement call was issued for an execution.
    Carries no return channel: the call's outcome is never reported back.
    """
    execution_id: str
    tx_hash: str
    collaborator: str
    issued_at: float

class SettlementCollaborator:
    """
    Extension point for the external system that actually moves value.
    The ledger only asks it for a transaction reference before recording
    an execution and hands it the record afterwards.
    """
    name = "placeholder"

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.dispatched = 0

    def tx_reference(self, execution_id: str) -> str:
        """Placeholder 32-byte hex token standing in for a real settlement tx hash."""
        return secrets.token_hex(32)

    def dispatch(self, execution: Execution) -> SettlementHandle:
        raise NotImplementedError

    def _issue(self, execution: Execution) -> SettlementHandle:
        self.dispatched += 1
        return SettlementHandle(
            execution_id=execution.id,
            tx_hash=execution.tx_hash,
            collaborator=self.name,
            issued_at=time.time(),
        )

class LoggingSettlement(SettlementCollaborator):
    """Dry-run collaborator: the settlement call is only logged."""
    name = "dry-run"

    def dispatch(self, execution: Execution) -> SettlementHandle:
        self.logger.info(f"🔵 DRY RUN: Settlement simulated | Exec {execution.id} | Profit: {execution.profit} | Tx: {execution.tx_hash[:12]}")
        return self._issue(execution)

class QueuedSettlement(SettlementCollaborator):
    """
    Fire-and-forget settlement through an asyncio Queue.
    dispatch() never blocks; a background worker hands each execution to the
    registered sinks. Sink failures are logged and dropped, never retried.
    """
    name = "queued"

    def __init__(self, logger: logging.Logger, sinks: Optional[List[Sink]] = None):
        super().__init__(logger)
        self.sinks: List[Sink] = list(sinks or [])
        self.failures = 0
        self._queue: asyncio.Queue = asyncio.Queue()
        self._worker_task: Optional[asyncio.Task] = None

    def add_sink(self, sink: Sink):
        self.sinks.append(sink)

    async def start(self):
        if self._worker_task is None:
            self._worker_task = asyncio.create_task(self._worker())

    def dispatch(self, execution: Execution) -> SettlementHandle:
        self._queue.put_nowait(execution)
        self.logger.info(f"📤 Settlement queued for exec {execution.id} | Pending: {self._queue.qsize()}")
        return self._issue(execution)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def drain(self):
        """Waits until every queued execution went through all sinks."""
        await self._queue.join()

    async def stop(self):
        if self._worker_task is None:
            return
        await self.drain()
        self._worker_task.cancel()
        try:
            await self._worker_task
        except asyncio.CancelledError:
            pass
        self._worker_task = None

    async def _worker(self):
        while True:
            execution = await self._queue.get()
            try:
                for sink in self.sinks:
                    try:
                        await sink(execution)
                    except Exception as e:
                        # Outcome is not reported back to the ledger.
                        self.failures += 1
                        self.logger.error(f"⚠️ SETTLEMENT SINK FAILED for exec {execution.id}: {e}")
            finally:
                self._queue.task_done()

class WebhookSink:
    """
    Posts each execution as JSON to an external settlement service.
    Raises on non-2xx responses so the queue worker can log the failure.
    """
    def __init__(self, url: str, timeout_seconds: float = 10.0):
        self.url = url
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session: Optional[aiohttp.ClientSession] = None

    async def start(self):
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self.timeout)

    async def __call__(self, execution: Execution):
        await self.start()
        async with self._session.post(self.url, json=execution.to_dict()) as resp:
            resp.raise_for_status()

    async def close(self):
        if self._session:
            await self._session.close()
            self._session = None
