"""Tests for AsyncAuditLogger and the console logger"""

import csv
import logging

import pytest

from arbledger.logger import EXECUTION_COLUMNS, AsyncAuditLogger, setup_console_logger
from arbledger.settlement import QueuedSettlement
from arbledger.engine import ArbitrageEngine

from conftest import ALICE, OWNER


def read_rows(path):
    with open(path, newline="") as f:
        return list(csv.reader(f, dialect="unix"))


class TestAsyncAuditLogger:

    @pytest.mark.asyncio
    async def test_creates_directory_and_header(self, tmp_path):
        path = tmp_path / "logs" / "executions.csv"
        audit = AsyncAuditLogger(str(path))
        await audit.start()
        await audit.stop()

        assert read_rows(path) == [EXECUTION_COLUMNS]

    @pytest.mark.asyncio
    async def test_logs_executions_through_settlement(self, tmp_path, logger, clock, deposit):
        path = tmp_path / "executions.csv"
        audit = AsyncAuditLogger(str(path))
        await audit.start()

        queued = QueuedSettlement(logger, sinks=[audit])
        await queued.start()
        engine = ArbitrageEngine(OWNER, logger, settlement=queued, clock=clock)
        intent_id = engine.create_intent(ALICE, "ETH/USDC", "1.0", deposit)
        engine.execute_arbitrage(intent_id, ALICE, "3000.0", "2950.0")

        await queued.stop()
        await audit.stop()

        rows = read_rows(path)
        assert len(rows) == 2
        record = dict(zip(rows[0], rows[1]))
        assert record["execution_id"] == "1"
        assert record["intent_id"] == intent_id
        assert record["owner"] == ALICE
        assert record["profit"] == "40.00"

    @pytest.mark.asyncio
    async def test_header_not_repeated(self, tmp_path):
        path = tmp_path / "executions.csv"
        for _ in range(2):
            audit = AsyncAuditLogger(str(path))
            await audit.start()
            await audit.stop()
        assert read_rows(path) == [EXECUTION_COLUMNS]


def test_console_logger_is_idempotent():
    first = setup_console_logger("ArbLedgerConsoleTest", "INFO")
    second = setup_console_logger("ArbLedgerConsoleTest", "DEBUG")
    assert first is second
    assert len(second.handlers) == 1
    assert second.level == logging.DEBUG
