"""
Economic calendar behind /api/calendar (TradingEconomics, with sample fallback).
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from backend.services import news_classifier, translator
from backend.utils import http_client
from backend.utils.errors import UpstreamError
from backend.utils.ttl_cache import cache as default_cache
from config import get_config

logger = logging.getLogger(__name__)

TRADINGECONOMICS_CALENDAR_URL = "https://api.tradingeconomics.com/calendar"
CACHE_KEY = 'calendar:all'
IMPORTANCE_LEVELS = ('low', 'medium', 'high')


def _iso_date(value) -> str:
    """TradingEconomics dates are naive UTC ('2024-01-10T13:30:00')"""
    if not value:
        return ''
    text = str(value).strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return text
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def _value(raw) -> Optional[str]:
    if raw is None:
        return None
    text = str(raw).strip()
    return text or None


def normalize_event(raw: Dict) -> Dict:
    event = _value(raw.get('Event')) or _value(raw.get('Category')) or ''
    country = _value(raw.get('Country')) or ''
    date = _iso_date(raw.get('Date'))
    calendar_id = raw.get('CalendarId')
    return {
        'id': str(calendar_id) if calendar_id else f"{date}|{country}|{event}",
        'date': date,
        'country': country,
        'country_zh': translator.translate_country(country),
        'event': event,
        'event_zh': translator.translate(event),
        'category': _value(raw.get('Category')) or '',
        'actual': _value(raw.get('Actual')),
        'forecast': _value(raw.get('Forecast') or raw.get('TEForecast')),
        'previous': _value(raw.get('Previous')),
        'importance': news_classifier.calendar_importance(raw.get('Importance'), event),
        'source': 'tradingeconomics',
    }


def dedupe_events(events: List[Dict]) -> List[Dict]:
    seen = set()
    unique = []
    for event in events:
        if event['id'] in seen:
            continue
        seen.add(event['id'])
        unique.append(event)
    return unique


def sample_events() -> List[Dict]:
    today = datetime.now(timezone.utc).replace(hour=12, minute=30, second=0, microsecond=0)
    rows = [
        {'Date': today + timedelta(days=1), 'Country': 'United States', 'Event': 'Inflation Rate YoY',
         'Category': 'Inflation Rate', 'Importance': 3, 'Previous': '3.1%', 'Forecast': '3.0%'},
        {'Date': today + timedelta(days=2), 'Country': 'United States', 'Event': 'Initial Jobless Claims',
         'Category': 'Initial Jobless Claims', 'Importance': 2, 'Previous': '218K', 'Forecast': '220K'},
        {'Date': today + timedelta(days=3), 'Country': 'Euro Area', 'Event': 'ECB Interest Rate Decision',
         'Category': 'Interest Rate', 'Importance': 3, 'Previous': '4.50%', 'Forecast': '4.50%'},
        {'Date': today + timedelta(days=4), 'Country': 'China', 'Event': 'Manufacturing PMI',
         'Category': 'Business Confidence', 'Importance': 2, 'Previous': '49.2', 'Forecast': '49.5'},
        {'Date': today + timedelta(days=7), 'Country': 'United States', 'Event': 'Fed Interest Rate Decision',
         'Category': 'Interest Rate', 'Importance': 3, 'Previous': '5.50%', 'Forecast': '5.50%'},
    ]
    events = []
    for row in rows:
        row['Date'] = row['Date'].isoformat()
        event = normalize_event(row)
        event['source'] = 'sample'
        events.append(event)
    return events


class CalendarService:

    def __init__(self, cache=None):
        self.cache = cache or default_cache

    def fetch_tradingeconomics(self) -> List[Dict]:
        settings = get_config()
        payload = http_client.get_json(
            TRADINGECONOMICS_CALENDAR_URL,
            params={'c': settings.TRADINGECONOMICS_API_KEY, 'f': 'json'},
        )
        if not isinstance(payload, list):
            return []
        events = []
        for row in payload:
            if not isinstance(row, dict):
                continue
            try:
                events.append(normalize_event(row))
            except (AttributeError, LookupError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed calendar row {row.get('CalendarId')}: {e}")
        return events

    def _collect(self) -> List[Dict]:
        events: List[Dict] = []
        try:
            events = self.fetch_tradingeconomics()
            logger.info(f"Fetched {len(events)} calendar events from tradingeconomics")
        except UpstreamError as e:
            logger.warning(f"Calendar source tradingeconomics failed: {e}")
        except (AttributeError, LookupError, TypeError, ValueError) as e:
            logger.warning(f"Calendar source tradingeconomics returned an unexpected payload: {e}")

        events = dedupe_events(events)
        if not events:
            logger.info("Calendar source empty, serving sample events")
            events = sample_events()

        events.sort(key=lambda e: e['date'])
        return events

    def get_calendar(self, importance: Optional[str] = None, country: Optional[str] = None,
                     refresh: bool = False) -> List[Dict]:
        if refresh:
            self.cache.delete(CACHE_KEY)
        events = self.cache.get_or_set(CACHE_KEY, self._collect)
        if importance:
            events = [e for e in events if e['importance'] == importance]
        if country:
            wanted = country.strip().lower()
            events = [e for e in events if e['country'].lower() == wanted or e['country_zh'] == country.strip()]
        return events


# Global instance
calendar_service = CalendarService()
