"""
Perpetual-futures metrics behind /api/derivatives/metrics.

Binance USD-M futures first, OKX public endpoints as the fallback. The
long/short ratio is best effort on either exchange; funding rate and open
interest are required for a symbol to be reported.
"""

import logging
from typing import Dict, List, Optional

from backend.utils import http_client
from backend.utils.errors import UpstreamError
from backend.utils.ttl_cache import cache as default_cache
from config import get_config

logger = logging.getLogger(__name__)

BINANCE_FAPI = "https://fapi.binance.com"
OKX_API = "https://www.okx.com"

# 0.01% per 8h is the neutral baseline funding rate
FUNDING_NEUTRAL_BAND = 0.0001


def _float(value) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def funding_sentiment(rate: Optional[float]) -> str:
    if rate is None:
        return 'neutral'
    if rate > FUNDING_NEUTRAL_BAND:
        return 'bullish'
    if rate < -FUNDING_NEUTRAL_BAND:
        return 'bearish'
    return 'neutral'


def _metrics(symbol, funding_rate, next_funding_time, mark_price, open_interest, long_short_ratio, source) -> Dict:
    open_interest_usd = None
    if open_interest is not None and mark_price is not None:
        open_interest_usd = round(open_interest * mark_price, 2)
    return {
        'symbol': symbol,
        'funding_rate': funding_rate,
        'funding_rate_pct': round(funding_rate * 100, 4) if funding_rate is not None else None,
        'next_funding_time': next_funding_time,
        'mark_price': mark_price,
        'open_interest': open_interest,
        'open_interest_usd': open_interest_usd,
        'long_short_ratio': long_short_ratio,
        'sentiment': funding_sentiment(funding_rate),
        'source': source,
    }


class DerivativesService:

    def __init__(self, cache=None):
        self.cache = cache or default_cache

    def fetch_binance(self, symbol: str) -> Dict:
        pair = f"{symbol}USDT"
        premium = http_client.get_json(f"{BINANCE_FAPI}/fapi/v1/premiumIndex", params={'symbol': pair})
        oi = http_client.get_json(f"{BINANCE_FAPI}/fapi/v1/openInterest", params={'symbol': pair})

        long_short_ratio = None
        try:
            ratios = http_client.get_json(
                f"{BINANCE_FAPI}/futures/data/globalLongShortAccountRatio",
                params={'symbol': pair, 'period': '5m', 'limit': 1},
            )
            if isinstance(ratios, list) and ratios:
                long_short_ratio = _float(ratios[-1].get('longShortRatio'))
        except UpstreamError as e:
            logger.info(f"Binance long/short ratio unavailable for {symbol}: {e}")

        funding_rate = _float(premium.get('lastFundingRate'))
        open_interest = _float(oi.get('openInterest'))
        if funding_rate is None or open_interest is None:
            raise UpstreamError(BINANCE_FAPI, f"incomplete metrics for {pair}")

        return _metrics(
            symbol,
            funding_rate,
            premium.get('nextFundingTime'),
            _float(premium.get('markPrice')),
            open_interest,
            long_short_ratio,
            'binance',
        )

    @staticmethod
    def _okx_first(payload) -> Dict:
        if not isinstance(payload, dict) or payload.get('code') not in ('0', 0):
            raise UpstreamError(OKX_API, f"error response: {payload}")
        data = payload.get('data') or []
        if not data:
            raise UpstreamError(OKX_API, "empty data")
        return data[0]

    def fetch_okx(self, symbol: str) -> Dict:
        inst_id = f"{symbol}-USDT-SWAP"
        funding = self._okx_first(http_client.get_json(
            f"{OKX_API}/api/v5/public/funding-rate", params={'instId': inst_id}))
        oi = self._okx_first(http_client.get_json(
            f"{OKX_API}/api/v5/public/open-interest", params={'instType': 'SWAP', 'instId': inst_id}))

        mark_price = None
        try:
            mark = self._okx_first(http_client.get_json(
                f"{OKX_API}/api/v5/public/mark-price", params={'instType': 'SWAP', 'instId': inst_id}))
            mark_price = _float(mark.get('markPx'))
        except UpstreamError as e:
            logger.info(f"OKX mark price unavailable for {symbol}: {e}")

        long_short_ratio = None
        try:
            ratio_payload = http_client.get_json(
                f"{OKX_API}/api/v5/rubik/stat/contracts/long-short-account-ratio",
                params={'ccy': symbol, 'period': '5m'},
            )
            rows = ratio_payload.get('data') if isinstance(ratio_payload, dict) else None
            if rows:
                # rows are [ts, ratio], newest first
                long_short_ratio = _float(rows[0][1])
        except UpstreamError as e:
            logger.info(f"OKX long/short ratio unavailable for {symbol}: {e}")

        funding_rate = _float(funding.get('fundingRate'))
        # oiCcy is denominated in the base coin, comparable with Binance openInterest
        open_interest = _float(oi.get('oiCcy'))
        if funding_rate is None or open_interest is None:
            raise UpstreamError(OKX_API, f"incomplete metrics for {inst_id}")

        next_funding = funding.get('nextFundingTime')
        return _metrics(
            symbol,
            funding_rate,
            int(next_funding) if next_funding else None,
            mark_price,
            open_interest,
            long_short_ratio,
            'okx',
        )

    def fetch_symbol(self, symbol: str) -> Optional[Dict]:
        for name, fetch in (('binance', self.fetch_binance), ('okx', self.fetch_okx)):
            try:
                return fetch(symbol)
            except UpstreamError as e:
                logger.warning(f"Derivatives source {name} failed for {symbol}: {e}")
            except (AttributeError, TypeError, ValueError, IndexError) as e:
                logger.warning(f"Derivatives source {name} returned an unexpected payload for {symbol}: {e}")
        return None

    def get_metrics(self, symbols: Optional[List[str]] = None, refresh: bool = False) -> List[Dict]:
        symbols = symbols or get_config().DERIVATIVES_SYMBOLS
        symbols = sorted({s.strip().upper() for s in symbols if s and s.strip()})
        key = f"derivatives:{','.join(symbols)}"
        if refresh:
            self.cache.delete(key)

        def collect():
            results = []
            for symbol in symbols:
                metrics = self.fetch_symbol(symbol)
                if metrics:
                    results.append(metrics)
            return results

        return self.cache.get_or_set(key, collect)


# Global instance
derivatives_service = DerivativesService()
