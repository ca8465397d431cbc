import pytest

from backend.services.derivatives_service import (
    BINANCE_FAPI,
    OKX_API,
    DerivativesService,
    funding_sentiment,
)


def add_binance(upstream, pair='BTCUSDT', rate='0.0003', mark='50000', oi='100'):
    upstream.add(f"{BINANCE_FAPI}/fapi/v1/premiumIndex",
                 {'symbol': pair, 'lastFundingRate': rate, 'markPrice': mark, 'nextFundingTime': 1700000000000})
    upstream.add(f"{BINANCE_FAPI}/fapi/v1/openInterest", {'symbol': pair, 'openInterest': oi})


def add_okx(upstream):
    upstream.add(f"{OKX_API}/api/v5/public/funding-rate",
                 {'code': '0', 'data': [{'fundingRate': '-0.0002', 'nextFundingTime': '1700000000000'}]})
    upstream.add(f"{OKX_API}/api/v5/public/open-interest", {'code': '0', 'data': [{'oiCcy': '2000'}]})
    upstream.add(f"{OKX_API}/api/v5/public/mark-price", {'code': '0', 'data': [{'markPx': '3000'}]})
    upstream.add(f"{OKX_API}/api/v5/rubik/stat/contracts/long-short-account-ratio",
                 {'code': '0', 'data': [['1700000000000', '1.25'], ['1699999700000', '1.20']]})


@pytest.mark.parametrize('rate, expected', [
    (0.0003, 'bullish'),
    (-0.0003, 'bearish'),
    (0.0001, 'neutral'),
    (None, 'neutral'),
])
def test_funding_sentiment(rate, expected):
    assert funding_sentiment(rate) == expected


def test_binance_metrics(upstream):
    add_binance(upstream)
    upstream.add(f"{BINANCE_FAPI}/futures/data/globalLongShortAccountRatio", [{'longShortRatio': '1.8'}])

    [metrics] = DerivativesService().get_metrics(['btc'])

    assert metrics['symbol'] == 'BTC'
    assert metrics['source'] == 'binance'
    assert metrics['funding_rate_pct'] == 0.03
    assert metrics['open_interest_usd'] == 5000000.0
    assert metrics['long_short_ratio'] == 1.8
    assert metrics['sentiment'] == 'bullish'


def test_binance_without_long_short_ratio(upstream):
    add_binance(upstream)

    [metrics] = DerivativesService().get_metrics(['BTC'])

    assert metrics['source'] == 'binance'
    assert metrics['long_short_ratio'] is None


def test_falls_back_to_okx(upstream):
    add_okx(upstream)

    [metrics] = DerivativesService().get_metrics(['ETH'])

    assert metrics['source'] == 'okx'
    assert metrics['funding_rate'] == -0.0002
    assert metrics['open_interest_usd'] == 6000000.0
    assert metrics['long_short_ratio'] == 1.25
    assert metrics['next_funding_time'] == 1700000000000
    assert metrics['sentiment'] == 'bearish'


def test_okx_error_code_counts_as_failure(upstream):
    upstream.add(f"{OKX_API}/api/v5/public/funding-rate", {'code': '51001', 'msg': 'Instrument ID does not exist', 'data': []})
    upstream.add(f"{OKX_API}/api/v5/public/open-interest", {'code': '0', 'data': [{'oiCcy': '2000'}]})

    assert DerivativesService().get_metrics(['NOPE']) == []


def test_symbols_with_no_source_are_omitted():
    assert DerivativesService().get_metrics(['BTC', 'ETH']) == []


def test_metrics_are_cached_per_symbol_set(upstream):
    add_binance(upstream)
    service = DerivativesService()

    service.get_metrics(['BTC'])
    calls = len(upstream.calls)
    service.get_metrics(['btc'])
    assert len(upstream.calls) == calls

    service.get_metrics(['BTC'], refresh=True)
    assert len(upstream.calls) == calls * 2


def test_derivatives_endpoint(client, upstream):
    add_binance(upstream)

    resp = client.get('/api/derivatives/metrics?symbols=BTC')
    body = resp.get_json()

    assert resp.status_code == 200
    assert body['count'] == 1
    assert body['data'][0]['symbol'] == 'BTC'


def test_derivatives_endpoint_limits_symbols(client):
    symbols = ','.join(f"C{i}" for i in range(21))
    assert client.get(f'/api/derivatives/metrics?symbols={symbols}').status_code == 400
