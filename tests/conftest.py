"""
pytest configuration and fixtures shared by the ledger tests.
"""
import copy
import itertools
import logging

import pytest

from arbledger.config import DEFAULTS, ONE_UNIT
from arbledger.engine import ArbitrageEngine
from arbledger.settlement import LoggingSettlement

ALICE = "alice.testnet"
BOB = "bob.testnet"
OWNER = "arbitrage-ai.testnet"


@pytest.fixture
def logger():
    log = logging.getLogger("ArbLedgerTest")
    log.setLevel(logging.DEBUG)
    return log


@pytest.fixture
def clock():
    """Logical clock ticking by one per read."""
    ticks = itertools.count(1_000)
    return lambda: next(ticks)


@pytest.fixture
def settlement(logger):
    return LoggingSettlement(logger)


@pytest.fixture
def engine(logger, clock, settlement):
    return ArbitrageEngine(OWNER, logger, settlement=settlement, clock=clock)


@pytest.fixture
def config():
    return copy.deepcopy(DEFAULTS)


@pytest.fixture
def deposit():
    return ONE_UNIT
