# arbledger/logger.py
import asyncio
import aiofiles
from aiocsv import AsyncWriter
import logging
import sys
import os
from typing import List, Optional

from .models import Execution

EXECUTION_COLUMNS = [
    "execution_id", "intent_id", "owner", "token_pair",
    "price_a", "price_b", "price_diff", "profit", "gas_fees", "tx_hash", "timestamp",
]

class AsyncAuditLogger:
    """
    Non-blocking CSV audit trail of recorded executions.
    Decouples disk I/O from the ledger using an asyncio Queue.
    Can be registered as a settlement sink.
    """
    def __init__(self, filepath: str):
        self.filepath = filepath
        self._queue = asyncio.Queue()
        self._worker_task: Optional[asyncio.Task] = None

    async def start(self):
        """
        Creates the log file with a header row if missing and starts the background writer.
        """
        directory = os.path.dirname(self.filepath)
        if directory and not os.path.exists(directory):
            os.makedirs(directory, exist_ok=True)

        if not os.path.exists(self.filepath) or os.path.getsize(self.filepath) == 0:
            async with aiofiles.open(self.filepath, mode='w', newline='') as f:
                writer = AsyncWriter(f, dialect='unix')
                await writer.writerow(EXECUTION_COLUMNS)
        self._worker_task = asyncio.create_task(self._writer_worker())

    async def log_row(self, row: List[str]):
        """Non-blocking call to add a row to the queue."""
        await self._queue.put(row)

    async def log_execution(self, execution: Execution):
        await self.log_row([
            execution.id,
            execution.intent_id,
            execution.owner,
            execution.token_pair,
            str(execution.price_a),
            str(execution.price_b),
            str(execution.price_diff),
            str(execution.profit),
            str(execution.gas_fees),
            execution.tx_hash,
            str(execution.timestamp),
        ])

    async def __call__(self, execution: Execution):
        await self.log_execution(execution)

    async def stop(self):
        """Flushes queued rows and stops the writer."""
        if self._worker_task is None:
            return
        await self._queue.join()
        self._worker_task.cancel()
        try:
            await self._worker_task
        except asyncio.CancelledError:
            pass
        self._worker_task = None

    async def _writer_worker(self):
        while True:
            row = await self._queue.get()
            try:
                async with aiofiles.open(self.filepath, mode='a', newline='') as f:
                    writer = AsyncWriter(f, dialect='unix')
                    await writer.writerow(row)
            except Exception as e:
                # Disk failures must not take the ledger down.
                print(f"LOGGING FAILURE: {e}", file=sys.stderr)
            finally:
                self._queue.task_done()

def setup_console_logger(name: str, level: str):
    """
    Sets up the standard Python logger for console output.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter('%(asctime)s | %(levelname)s | %(module)s | %(message)s')
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
