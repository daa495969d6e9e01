"""Tests for PriceFeed (ccxt clients replaced by fakes)"""

import pytest

from arbledger.market_engine import PriceFeed


class FakeExchange:
    def __init__(self, prices, fail=False):
        self.prices = prices
        self.fail = fail
        self.calls = 0
        self.markets = {s: {} for s in prices}
        self.closed = False

    async def load_markets(self):
        if self.fail:
            raise RuntimeError("offline")
        return self.markets

    async def fetch_ticker(self, symbol):
        self.calls += 1
        if self.fail:
            raise RuntimeError("offline")
        return {"symbol": symbol, "last": self.prices[symbol]}

    async def close(self):
        self.closed = True


@pytest.fixture
def markets():
    return {
        "binance": FakeExchange({"ETH/USDT": 3000.0, "NEAR/USDT": 5.0, "BTC/USDT": 60000.0}),
        "okx": FakeExchange({"ETH/USDT": 2950.0, "NEAR/USDT": 5.01, "BTC/USDT": 60900.0}),
    }


@pytest.fixture
def feed(config, logger, markets):
    return PriceFeed(config, logger, clients=markets)


class TestPriceFeed:

    @pytest.mark.asyncio
    async def test_initialize(self, feed):
        assert await feed.initialize() is True

    @pytest.mark.asyncio
    async def test_initialize_reports_failure(self, config, logger):
        feed = PriceFeed(config, logger, clients={
            "binance": FakeExchange({}),
            "okx": FakeExchange({}, fail=True),
        })
        assert await feed.initialize() is False

    @pytest.mark.asyncio
    async def test_fetch_pair(self, feed):
        quote_a, quote_b = await feed.fetch_pair("ETH/USDT")
        assert (quote_a.market, quote_a.price) == ("binance", 3000.0)
        assert (quote_b.market, quote_b.price) == ("okx", 2950.0)

    @pytest.mark.asyncio
    async def test_quotes_are_cached(self, feed, markets):
        await feed.fetch_quote("binance", "ETH/USDT")
        await feed.fetch_quote("binance", "ETH/USDT")
        assert markets["binance"].calls == 1

    @pytest.mark.asyncio
    async def test_stale_quote_served_on_failure(self, feed, markets):
        first = await feed.fetch_quote("okx", "ETH/USDT")
        feed.cache_seconds = 0
        markets["okx"].fail = True

        again = await feed.fetch_quote("okx", "ETH/USDT")
        assert again is first

    @pytest.mark.asyncio
    async def test_missing_quote(self, feed, markets):
        markets["okx"].fail = True
        assert await feed.fetch_pair("ETH/USDT") is None

    @pytest.mark.asyncio
    async def test_scan_filters_and_sorts(self, feed):
        opps = await feed.scan_opportunities()

        # NEAR differs by 0.2%, below the 0.5% floor
        assert [o.token_pair for o in opps] == ["ETH/USDT", "BTC/USDT"]
        assert opps[0].profit_percentage == pytest.approx(50 / 2950 * 100)
        assert opps[1].profit_percentage == pytest.approx(900 / 60000 * 100)
        assert opps[0].price_diff == pytest.approx(50.0)

    @pytest.mark.asyncio
    async def test_scan_skips_zero_prices(self, config, logger):
        feed = PriceFeed(config, logger, clients={
            "binance": FakeExchange({"ETH/USDT": 0.0}),
            "okx": FakeExchange({"ETH/USDT": 2950.0}),
        })
        assert await feed.scan_opportunities(["ETH/USDT"]) == []

    @pytest.mark.asyncio
    async def test_shutdown_closes_clients(self, feed, markets):
        await feed.shutdown()
        assert all(m.closed for m in markets.values())
