from backend.services.news_classifier import calendar_importance, classify_importance, classify_sentiment


def test_sentiment():
    assert classify_sentiment('Bitcoin surges as ETF inflows continue') == 'bullish'
    assert classify_sentiment('Exchange hacked, token plunges') == 'bearish'
    assert classify_sentiment('Analysts discuss the week ahead') == 'neutral'
    assert classify_sentiment(None) == 'neutral'


def test_sentiment_tie_is_neutral():
    assert classify_sentiment('Bitcoin rally meets a sharp drop') == 'neutral'


def test_sentiment_matches_chinese_keywords():
    assert classify_sentiment('比特币突破新高') == 'bullish'
    assert classify_sentiment('市场暴跌') == 'bearish'


def test_keywords_match_whole_words_only():
    # "bear" should not fire inside "bearing"
    assert classify_sentiment('Load bearing walls') == 'neutral'


def test_importance_order():
    assert classify_importance('Breaking: exchange halts withdrawals') == 'breaking'
    assert classify_importance('SEC reviews new ETF filing') == 'important'
    assert classify_importance('Weekly community update') == 'realtime'


def test_importance_from_votes():
    assert classify_importance('Weekly community update', important_votes=5, threshold=5) == 'important'
    assert classify_importance('Weekly community update', important_votes=4, threshold=5) == 'realtime'


def test_calendar_importance_levels():
    assert calendar_importance(3) == 'high'
    assert calendar_importance('2') == 'medium'
    assert calendar_importance(1) == 'low'


def test_calendar_importance_falls_back_to_event_name():
    assert calendar_importance(None, 'Fed Interest Rate Decision') == 'high'
    assert calendar_importance('', 'Retail Sales MoM') == 'medium'
    assert calendar_importance(None, 'Building Permits') == 'low'
