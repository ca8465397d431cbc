"""
News aggregation pipeline behind /api/news.

fetch (CryptoCompare, CryptoPanic) -> normalize -> dedupe -> classify
-> translate -> cache. Every source is optional: a failing source is
logged and contributes nothing, and if all sources come back empty the
built-in sample news is served instead.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Dict, List, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from backend.services import news_classifier, translator
from backend.utils import http_client
from backend.utils.errors import UpstreamError
from backend.utils.ttl_cache import cache as default_cache
from config import get_config

logger = logging.getLogger(__name__)

CRYPTOCOMPARE_NEWS_URL = "https://min-api.cryptocompare.com/data/v2/news/"
CRYPTOPANIC_POSTS_URL = "https://cryptopanic.com/api/v1/posts/"

CACHE_KEY = 'news:all'
CATEGORIES = ('realtime', 'important', 'breaking')
SENTIMENTS = ('bullish', 'bearish', 'neutral')

TRACKING_PREFIX = 'utm_'
TRACKING_PARAMS = {'ref', 'fbclid', 'gclid'}


def _is_tracking_param(key: str) -> bool:
    key = key.lower()
    return key.startswith(TRACKING_PREFIX) or key in TRACKING_PARAMS


def canonical_url(url: Optional[str]) -> str:
    """Normalize a URL for duplicate detection (scheme/host case, tracking params, trailing slash)"""
    if not url:
        return ''
    parts = urlsplit(url.strip())
    query = [
        (k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True)
        if not _is_tracking_param(k)
    ]
    path = parts.path.rstrip('/')
    return urlunsplit((
        parts.scheme.lower(),
        parts.netloc.lower().removeprefix('www.'),
        path,
        urlencode(sorted(query)),
        '',
    ))


def _parse_timestamp(value) -> int:
    """Unix seconds from an int/float or an ISO 8601 string; now on failure"""
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str) and value:
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return int(time.time())
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return int(dt.timestamp())
    return int(time.time())


def _enrich(item: Dict, important_votes: int = 0, positive_votes: int = 0, negative_votes: int = 0) -> Dict:
    """Attach sentiment, importance and the Chinese title/body"""
    settings = get_config()
    text = f"{item['title']} {item['body']}"
    sentiment = news_classifier.classify_sentiment(text)
    if sentiment == 'neutral' and positive_votes != negative_votes:
        sentiment = 'bullish' if positive_votes > negative_votes else 'bearish'

    item['sentiment'] = sentiment
    item['importance'] = news_classifier.classify_importance(
        text, important_votes, settings.IMPORTANT_VOTES_THRESHOLD
    )
    item['title_zh'] = translator.translate(item['title'])
    item['body_zh'] = translator.translate(item['body'])
    return item


def normalize_cryptocompare(raw: Dict) -> Dict:
    source_info = raw.get('source_info') or {}
    item = {
        'id': str(raw.get('id') or raw.get('guid') or ''),
        'title': (raw.get('title') or '').strip(),
        'body': (raw.get('body') or '').strip(),
        'source': source_info.get('name') or raw.get('source') or 'CryptoCompare',
        'published_on': _parse_timestamp(raw.get('published_on')),
        'imageurl': raw.get('imageurl') or None,
        'url': raw.get('url') or raw.get('guid') or '',
        'categories': raw.get('categories') or '',
        'origin': 'cryptocompare',
    }
    return _enrich(item)


def normalize_cryptopanic(raw: Dict) -> Dict:
    source = raw.get('source') or {}
    votes = raw.get('votes') or {}
    currencies = [c.get('code') for c in (raw.get('currencies') or []) if c.get('code')]
    item = {
        'id': str(raw.get('id') or ''),
        'title': (raw.get('title') or '').strip(),
        'body': (raw.get('description') or '').strip(),
        'source': source.get('title') or raw.get('domain') or 'CryptoPanic',
        'published_on': _parse_timestamp(raw.get('published_at') or raw.get('created_at')),
        'imageurl': raw.get('image') or None,
        'url': raw.get('original_url') or raw.get('url') or '',
        'categories': '|'.join(currencies),
        'origin': 'cryptopanic',
    }
    return _enrich(
        item,
        important_votes=votes.get('important', 0) or 0,
        positive_votes=votes.get('positive', 0) or 0,
        negative_votes=votes.get('negative', 0) or 0,
    )


def dedupe(items: List[Dict]) -> List[Dict]:
    """Keep the first item per canonical URL (or origin:id when there is no URL)"""
    seen = set()
    unique = []
    for item in items:
        key = canonical_url(item.get('url')) or f"{item.get('origin')}:{item.get('id')}"
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique


def _normalize_rows(rows: List, normalize, source: str) -> List[Dict]:
    """Normalize rows one by one; a malformed row is logged and skipped"""
    items = []
    for row in rows:
        if not isinstance(row, dict) or not row.get('title'):
            continue
        try:
            items.append(normalize(row))
        except (AttributeError, LookupError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed {source} row {row.get('id')}: {e}")
    return items


def sample_news() -> List[Dict]:
    now = int(time.time())
    samples = [
        {
            'id': 'sample-1',
            'title': 'Bitcoin surges past key resistance as ETF inflows continue',
            'body': 'Bitcoin price rallies as spot ETF inflows continue for a fifth straight day.',
            'source': '追风观测',
            'published_on': now - 3600,
            'categories': 'BTC|Market',
        },
        {
            'id': 'sample-2',
            'title': 'Ethereum staking deposits reach record high',
            'body': 'Ethereum staking keeps growing, showing long-term confidence in the network.',
            'source': '追风观测',
            'published_on': now - 7200,
            'categories': 'ETH',
        },
        {
            'id': 'sample-3',
            'title': 'SEC delays decision on several spot ETF applications',
            'body': 'The SEC again delays its decision, adding short-term pressure to the market.',
            'source': '追风观测',
            'published_on': now - 10800,
            'categories': 'Regulation',
        },
        {
            'id': 'sample-4',
            'title': 'Breaking: mid-sized exchange hacked, withdrawals halted',
            'body': 'An exchange was hacked and more than $100 million was stolen; withdrawals are suspended.',
            'source': '追风观测',
            'published_on': now - 18000,
            'categories': 'Exchange|Security',
        },
    ]
    return [
        _enrich({**s, 'imageurl': None, 'url': '', 'origin': 'sample'})
        for s in samples
    ]


class NewsAggregator:
    """Merges the news sources into one cached, classified list"""

    def __init__(self, cache=None):
        self.cache = cache or default_cache

    def fetch_cryptocompare(self) -> List[Dict]:
        settings = get_config()
        params = {'lang': 'EN'}
        if settings.CRYPTOCOMPARE_API_KEY:
            params['api_key'] = settings.CRYPTOCOMPARE_API_KEY
        payload = http_client.get_json(CRYPTOCOMPARE_NEWS_URL, params=params)
        rows = payload.get('Data') if isinstance(payload, dict) else None
        if not isinstance(rows, list):
            return []
        return _normalize_rows(rows, normalize_cryptocompare, 'cryptocompare')

    def fetch_cryptopanic(self) -> List[Dict]:
        settings = get_config()
        if not settings.CRYPTOPANIC_API_KEY:
            return []
        payload = http_client.get_json(
            CRYPTOPANIC_POSTS_URL,
            params={'auth_token': settings.CRYPTOPANIC_API_KEY, 'public': 'true', 'kind': 'news'},
        )
        rows = payload.get('results') if isinstance(payload, dict) else None
        if not isinstance(rows, list):
            return []
        return _normalize_rows(rows, normalize_cryptopanic, 'cryptopanic')

    def _collect(self) -> List[Dict]:
        items: List[Dict] = []
        # Order matters: earlier sources win duplicate URLs
        for name, fetch in (('cryptocompare', self.fetch_cryptocompare),
                            ('cryptopanic', self.fetch_cryptopanic)):
            try:
                fetched = fetch()
                logger.info(f"Fetched {len(fetched)} news items from {name}")
                items.extend(fetched)
            except UpstreamError as e:
                logger.warning(f"News source {name} failed: {e}")
            except (AttributeError, LookupError, TypeError, ValueError) as e:
                logger.warning(f"News source {name} returned an unexpected payload: {e}")

        items = dedupe(items)
        if not items:
            logger.info("All news sources empty, serving sample news")
            items = sample_news()

        items.sort(key=lambda i: i['published_on'], reverse=True)
        return items[:get_config().NEWS_LIMIT]

    def get_all(self, refresh: bool = False) -> List[Dict]:
        if refresh:
            self.cache.delete(CACHE_KEY)
        return self.cache.get_or_set(CACHE_KEY, self._collect)

    def get_news(self, category: Optional[str] = None, sentiment: Optional[str] = None,
                 limit: Optional[int] = None, refresh: bool = False) -> List[Dict]:
        items = self.get_all(refresh=refresh)
        if category:
            items = [i for i in items if i['importance'] == category]
        if sentiment:
            items = [i for i in items if i['sentiment'] == sentiment]
        if limit:
            items = items[:limit]
        return items


# Global instance
news_aggregator = NewsAggregator()
