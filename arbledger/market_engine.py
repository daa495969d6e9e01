# arbledger/market_engine.py
import ccxt.async_support as ccxt
import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Tuple
from .errors import InvalidInput
from .models import Opportunity, Quote
from .pricing import parse_amount, spread

class PriceFeed:
    """
    Reads last prices of a token pair on two markets through ccxt public APIs.
    Quotes are cached for `cache_seconds`; when a fetch fails the stale
    cached quote is served instead, if there is one.
    """
    def __init__(self, config: dict, logger: logging.Logger, clients: Optional[Dict[str, Any]] = None):
        self.cfg = config['markets']
        self.logger = logger
        self.market_a: str = self.cfg['exchange_a']
        self.market_b: str = self.cfg['exchange_b']
        self.cache_seconds: float = float(self.cfg['cache_seconds'])
        self.min_opportunity_pct: float = float(self.cfg['min_opportunity_pct'])
        # Injected clients skip ccxt construction (used by tests and custom venues).
        self.exchanges: Dict[str, Any] = dict(clients or {})
        self._cache: Dict[Tuple[str, str], Quote] = {}

    async def initialize(self) -> bool:
        """
        Connects to both markets and loads their symbols.
        Returns False if ANY market fails the diagnostic.
        """
        timeout = self.cfg['network_timeout_ms']
        all_connected = True

        self.logger.info("📡 TESTING MARKET CONNECTIONS...")

        for name in (self.market_a, self.market_b):
            client = self.exchanges.get(name)
            try:
                if client is None:
                    ex_class = getattr(ccxt, name)
                    client = ex_class({'timeout': timeout, 'enableRateLimit': True, 'options': {'defaultType': 'spot'}})
                await client.load_markets()
                self.exchanges[name] = client
                self.logger.info(f"   ✅ {name.upper():<10} | Markets: {len(client.markets or {})}")

            except ccxt.RequestTimeout:
                self.logger.error(f"   ❌ {name.upper():<10} | TIMEOUT: Exchange API is slow or down.")
                all_connected = False

            except ccxt.ExchangeNotAvailable:
                self.logger.error(f"   ❌ {name.upper():<10} | MAINTENANCE: Exchange is currently offline.")
                all_connected = False

            except Exception as e:
                self.logger.critical(f"   ❌ {name.upper():<10} | UNKNOWN ERROR: {str(e)}")
                all_connected = False

        return all_connected

    async def fetch_quote(self, market: str, symbol: str) -> Optional[Quote]:
        key = (market, symbol)
        cached = self._cache.get(key)
        if cached and cached.age < self.cache_seconds:
            return cached

        try:
            ticker = await self.exchanges[market].fetch_ticker(symbol)
            price = ticker.get('last') or ticker.get('close')
            if not price:
                raise ValueError(f"no last price in ticker for {symbol}")
            quote = Quote(market=market, symbol=symbol, price=float(price), timestamp=time.time())
            self._cache[key] = quote
            return quote
        except Exception as e:
            self.logger.warning(f"⚠️ Price fetch failed for {symbol} on {market}: {e}")
            return cached

    async def fetch_pair(self, symbol: str) -> Optional[Tuple[Quote, Quote]]:
        """Both legs of `symbol` fetched concurrently, or None if either is missing."""
        quote_a, quote_b = await asyncio.gather(
            self.fetch_quote(self.market_a, symbol),
            self.fetch_quote(self.market_b, symbol),
        )
        if quote_a is None or quote_b is None:
            return None
        return quote_a, quote_b

    async def scan_opportunities(self, pairs: Optional[List[str]] = None) -> List[Opportunity]:
        """
        Returns pairs whose discrepancy exceeds min_opportunity_pct,
        best first.
        """
        opportunities: List[Opportunity] = []
        for symbol in pairs or self.cfg['pairs']:
            legs = await self.fetch_pair(symbol)
            if legs is None:
                continue
            quote_a, quote_b = legs
            try:
                diff, pct = spread(parse_amount(quote_a.price, "price_a"), parse_amount(quote_b.price, "price_b"))
            except InvalidInput:
                continue

            if float(pct) > self.min_opportunity_pct:
                opportunities.append(Opportunity(
                    token_pair=symbol,
                    market_a=quote_a.market,
                    market_b=quote_b.market,
                    price_a=quote_a.price,
                    price_b=quote_b.price,
                    price_diff=float(diff),
                    profit_percentage=float(pct),
                    timestamp=time.time(),
                ))

        return sorted(opportunities, key=lambda o: o.profit_percentage, reverse=True)

    async def shutdown(self):
        """
        Gracefully closes all REST API sessions.
        """
        for ex in self.exchanges.values():
            await ex.close()
