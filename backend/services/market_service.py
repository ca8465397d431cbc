"""
CoinGecko market data behind /api/crypto/*.
"""

import logging
from typing import Dict, List

from backend.utils import http_client
from backend.utils.errors import NotFound, UpstreamError
from backend.utils.ttl_cache import cache as default_cache
from config import get_config

logger = logging.getLogger(__name__)

COINGECKO_API = "https://api.coingecko.com/api/v3"

SAMPLE_PRICES = [
    {'id': 'bitcoin', 'symbol': 'btc', 'name': 'Bitcoin', 'current_price': 43250.50, 'price_change_percentage_24h': 2.45, 'market_cap': 845000000000},
    {'id': 'ethereum', 'symbol': 'eth', 'name': 'Ethereum', 'current_price': 2280.30, 'price_change_percentage_24h': -1.23, 'market_cap': 274000000000},
    {'id': 'binancecoin', 'symbol': 'bnb', 'name': 'BNB', 'current_price': 315.80, 'price_change_percentage_24h': 3.67, 'market_cap': 48500000000},
    {'id': 'solana', 'symbol': 'sol', 'name': 'Solana', 'current_price': 98.45, 'price_change_percentage_24h': 5.12, 'market_cap': 42000000000},
    {'id': 'ripple', 'symbol': 'xrp', 'name': 'XRP', 'current_price': 0.62, 'price_change_percentage_24h': -0.85, 'market_cap': 33500000000},
    {'id': 'cardano', 'symbol': 'ada', 'name': 'Cardano', 'current_price': 0.58, 'price_change_percentage_24h': 1.92, 'market_cap': 20400000000},
    {'id': 'dogecoin', 'symbol': 'doge', 'name': 'Dogecoin', 'current_price': 0.095, 'price_change_percentage_24h': 4.23, 'market_cap': 13500000000},
    {'id': 'polkadot', 'symbol': 'dot', 'name': 'Polkadot', 'current_price': 7.32, 'price_change_percentage_24h': -2.15, 'market_cap': 9800000000},
]

PRICE_FIELDS = ('id', 'symbol', 'name', 'image', 'current_price', 'price_change_percentage_24h',
                'market_cap', 'total_volume', 'high_24h', 'low_24h')


class MarketService:

    def __init__(self, cache=None):
        self.cache = cache or default_cache

    def _fetch_prices(self, limit: int) -> List[Dict]:
        try:
            rows = http_client.get_json(
                f"{COINGECKO_API}/coins/markets",
                params={
                    'vs_currency': 'usd',
                    'order': 'market_cap_desc',
                    'per_page': limit,
                    'page': 1,
                    'sparkline': 'false',
                    'price_change_percentage': '24h',
                },
            )
            if isinstance(rows, list) and rows:
                return [{k: row.get(k) for k in PRICE_FIELDS} for row in rows]
            logger.warning("CoinGecko returned no prices")
        except UpstreamError as e:
            logger.warning(f"CoinGecko prices failed: {e}")
        logger.info("Serving sample prices")
        return [dict(p) for p in SAMPLE_PRICES[:limit]]

    def get_prices(self, limit: int = None, refresh: bool = False) -> List[Dict]:
        limit = max(1, min(limit or get_config().PRICE_LIMIT, 100))
        key = f"prices:{limit}"
        if refresh:
            self.cache.delete(key)
        return self.cache.get_or_set(key, lambda: self._fetch_prices(limit))

    def get_global(self) -> Dict:
        def fetch():
            try:
                payload = http_client.get_json(f"{COINGECKO_API}/global")
                return payload.get('data') or {}
            except UpstreamError as e:
                logger.warning(f"CoinGecko global data failed: {e}")
                return {}
        return self.cache.get_or_set('market:global', fetch)

    def get_coin(self, coin_id: str) -> Dict:
        key = f"coin:{coin_id}"
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        try:
            data = http_client.get_json(
                f"{COINGECKO_API}/coins/{coin_id}",
                params={'localization': 'false', 'tickers': 'false',
                        'community_data': 'false', 'developer_data': 'false'},
            )
        except UpstreamError as e:
            if e.status_code == 404:
                raise NotFound('币种不存在')
            raise
        self.cache.set(key, data)
        return data


# Global instance
market_service = MarketService()
