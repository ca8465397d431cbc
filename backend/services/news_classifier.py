import re
from typing import Iterable, Optional

BULLISH_KEYWORDS = [
    'surge', 'surges', 'soar', 'soars', 'rally', 'rallies', 'jump', 'jumps', 'gain', 'gains',
    'rise', 'rises', 'bull', 'bullish', 'breakout', 'all-time high', 'record high', 'inflow',
    'inflows', 'approval', 'approves', 'approved', 'adoption', 'partnership', 'upgrade',
    'buy', 'buys', 'accumulate', 'rebound', 'recovers', 'rate cut', 'launch', 'launches',
    '上涨', '飙升', '突破', '新高', '利好', '反弹', '流入', '批准', '采用', '降息',
]

BEARISH_KEYWORDS = [
    'plunge', 'plunges', 'crash', 'crashes', 'drop', 'drops', 'fall', 'falls', 'slide',
    'slides', 'bear', 'bearish', 'dump', 'sell-off', 'selloff', 'outflow', 'outflows',
    'hack', 'hacked', 'exploit', 'exploited', 'scam', 'stolen', 'lawsuit', 'sues', 'ban',
    'bans', 'crackdown', 'delay', 'delays', 'rejects', 'rejected', 'liquidation',
    'liquidations', 'bankruptcy', 'insolvent', 'rate hike', 'recession', 'warning',
    '下跌', '暴跌', '崩盘', '利空', '流出', '黑客', '被盗', '诉讼', '禁令', '推迟', '清算', '加息',
]

BREAKING_KEYWORDS = [
    'breaking', 'just in', 'urgent', 'hack', 'hacked', 'exploit', 'exploited', 'halts',
    'halted', 'suspends', 'suspended', 'crash', 'crashes', 'plunges', 'emergency',
    'bankruptcy', 'collapse', 'delisting',
    '突发', '快讯', '紧急', '黑客', '暂停', '崩盘', '暴跌',
]

IMPORTANT_KEYWORDS = [
    'sec', 'etf', 'federal reserve', 'fed', 'fomc', 'cpi', 'inflation', 'interest rate',
    'regulation', 'regulatory', 'lawsuit', 'court', 'congress', 'treasury', 'blackrock',
    'halving', 'mainnet', 'upgrade', 'approval', 'approves', 'billion', 'central bank',
    '美联储', '监管', '证监会', '减半', '升级', '批准', '利率',
]

HIGH_IMPACT_EVENTS = [
    'interest rate decision', 'fed', 'fomc', 'cpi', 'inflation rate', 'non farm payrolls',
    'nonfarm payrolls', 'unemployment rate', 'gdp growth rate', 'core pce', 'pce price index',
    'ecb', 'boj',
]

MEDIUM_IMPACT_EVENTS = [
    'pmi', 'retail sales', 'ppi', 'jobless claims', 'consumer confidence', 'trade balance',
    'industrial production', 'durable goods',
]


def _compile(words: Iterable[str]):
    """English keywords match as whole words, Chinese ones as substrings"""
    words = list(words)
    ascii_words = sorted((w for w in words if w.isascii()), key=len, reverse=True)
    pattern = re.compile(
        r"(?<![A-Za-z0-9])(" + "|".join(re.escape(w) for w in ascii_words) + r")(?![A-Za-z0-9])",
        re.IGNORECASE,
    )
    return pattern, [w for w in words if not w.isascii()]


_BULLISH = _compile(BULLISH_KEYWORDS)
_BEARISH = _compile(BEARISH_KEYWORDS)
_BREAKING = _compile(BREAKING_KEYWORDS)
_IMPORTANT = _compile(IMPORTANT_KEYWORDS)
_HIGH_IMPACT = _compile(HIGH_IMPACT_EVENTS)
_MEDIUM_IMPACT = _compile(MEDIUM_IMPACT_EVENTS)


def _count_hits(text: str, keywords) -> int:
    pattern, substrings = keywords
    return len(pattern.findall(text)) + sum(1 for w in substrings if w in text)


def classify_sentiment(text: Optional[str]) -> str:
    """bullish / bearish / neutral by keyword counting; ties are neutral"""
    if not text:
        return 'neutral'
    bullish = _count_hits(text, _BULLISH)
    bearish = _count_hits(text, _BEARISH)
    if bullish > bearish:
        return 'bullish'
    if bearish > bullish:
        return 'bearish'
    return 'neutral'


def classify_importance(text: Optional[str], important_votes: int = 0, threshold: int = 5) -> str:
    """breaking > important > realtime"""
    text = text or ''
    if _count_hits(text, _BREAKING):
        return 'breaking'
    if _count_hits(text, _IMPORTANT) or (important_votes or 0) >= threshold:
        return 'important'
    return 'realtime'


def calendar_importance(raw_importance, event_name: Optional[str] = None) -> str:
    """Map TradingEconomics Importance (1-3) to low/medium/high.

    Unknown importance falls back to the event name.
    """
    try:
        level = int(raw_importance)
    except (TypeError, ValueError):
        level = None

    if level is not None and level >= 3:
        return 'high'
    if level == 2:
        return 'medium'
    if level == 1:
        return 'low'

    name = event_name or ''
    if _count_hits(name, _HIGH_IMPACT):
        return 'high'
    if _count_hits(name, _MEDIUM_IMPACT):
        return 'medium'
    return 'low'
