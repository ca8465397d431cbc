"""
Dictionary-based English -> Chinese phrase translator.

Not machine translation: known crypto/macro phrases are swapped for their
Chinese equivalents and everything else is left untouched, so headlines
come out mixed-language but readable for the target audience.
"""

import re
from typing import Dict, Pattern

PHRASES: Dict[str, str] = {
    # Assets
    'bitcoin': '比特币',
    'ethereum': '以太坊',
    'solana': 'Solana',
    'ripple': '瑞波',
    'dogecoin': '狗狗币',
    'stablecoin': '稳定币',
    'stablecoins': '稳定币',
    'altcoin': '山寨币',
    'altcoins': '山寨币',
    'memecoin': 'Meme币',
    'crypto': '加密货币',
    'cryptocurrency': '加密货币',
    'cryptocurrencies': '加密货币',
    'token': '代币',
    'tokens': '代币',

    # Market moves
    'all-time high': '历史新高',
    'all time high': '历史新高',
    'price': '价格',
    'market': '市场',
    'markets': '市场',
    'market cap': '市值',
    'trading volume': '交易量',
    'bull market': '牛市',
    'bear market': '熊市',
    'rally': '反弹',
    'rallies': '反弹',
    'surge': '飙升',
    'surges': '飙升',
    'soars': '飙升',
    'jumps': '上涨',
    'rises': '上涨',
    'gains': '上涨',
    'plunge': '暴跌',
    'plunges': '暴跌',
    'crash': '崩盘',
    'crashes': '崩盘',
    'drops': '下跌',
    'falls': '下跌',
    'slides': '下滑',
    'dip': '回调',
    'correction': '回调',
    'liquidation': '清算',
    'liquidations': '清算',
    'short squeeze': '轧空',
    'whale': '巨鲸',
    'whales': '巨鲸',
    'support': '支撑',
    'resistance': '阻力',
    'volatility': '波动性',

    # Products / infrastructure
    'spot bitcoin etf': '比特币现货ETF',
    'spot etf': '现货ETF',
    'etf': 'ETF',
    'etfs': 'ETF',
    'exchange': '交易所',
    'exchanges': '交易所',
    'wallet': '钱包',
    'mining': '挖矿',
    'miners': '矿工',
    'halving': '减半',
    'staking': '质押',
    'layer 2': '二层网络',
    'smart contract': '智能合约',
    'decentralized finance': '去中心化金融',
    'defi': 'DeFi',
    'nft': 'NFT',
    'airdrop': '空投',
    'mainnet': '主网',
    'testnet': '测试网',
    'upgrade': '升级',
    'open interest': '未平仓合约',
    'funding rate': '资金费率',
    'futures': '期货',
    'options': '期权',

    # Security
    'hack': '黑客攻击',
    'hacked': '遭黑客攻击',
    'exploit': '漏洞利用',
    'exploited': '遭漏洞利用',
    'scam': '骗局',
    'stolen': '被盗',

    # Regulation / institutions
    'sec': '美国SEC',
    'regulation': '监管',
    'regulators': '监管机构',
    'regulatory': '监管',
    'lawsuit': '诉讼',
    'approval': '批准',
    'approves': '批准',
    'approved': '获批',
    'ban': '禁令',
    'bans': '禁止',
    'institutional': '机构',
    'investors': '投资者',
    'treasury': '财政部',

    # Macro
    'federal reserve': '美联储',
    'the fed': '美联储',
    'fed': '美联储',
    'interest rate': '利率',
    'interest rates': '利率',
    'rate cut': '降息',
    'rate cuts': '降息',
    'rate hike': '加息',
    'rate hikes': '加息',
    'inflation': '通胀',
    'recession': '经济衰退',
    'unemployment': '失业',
    'consumer price index': '消费者价格指数',
    'cpi': 'CPI',
    'gdp': 'GDP',
    'nonfarm payrolls': '非农就业人数',
    'non farm payrolls': '非农就业人数',
    'unemployment rate': '失业率',
    'interest rate decision': '利率决议',
    'fed interest rate decision': '美联储利率决议',
    'fomc minutes': 'FOMC会议纪要',
    'fomc': 'FOMC',
    'initial jobless claims': '初请失业金人数',
    'retail sales': '零售销售',
    'manufacturing pmi': '制造业PMI',
    'services pmi': '服务业PMI',
    'pmi': 'PMI',
    'ppi': 'PPI',
    'core': '核心',
    'trade balance': '贸易差额',
    'consumer confidence': '消费者信心',
    'crude oil inventories': '原油库存',
    'mom': '月率',
    'yoy': '年率',
}

COUNTRIES: Dict[str, str] = {
    'united states': '美国',
    'euro area': '欧元区',
    'china': '中国',
    'japan': '日本',
    'united kingdom': '英国',
    'germany': '德国',
    'france': '法国',
    'canada': '加拿大',
    'australia': '澳大利亚',
    'switzerland': '瑞士',
    'south korea': '韩国',
    'hong kong': '中国香港',
    'india': '印度',
    'singapore': '新加坡',
    'new zealand': '新西兰',
}


def _build_pattern(phrases) -> Pattern:
    # Longest phrase first so "spot bitcoin etf" wins over "bitcoin"
    ordered = sorted(phrases, key=len, reverse=True)
    alternation = '|'.join(re.escape(p) for p in ordered)
    return re.compile(r'(?<![A-Za-z0-9])(' + alternation + r')(?![A-Za-z0-9])', re.IGNORECASE)


_PHRASE_RE = _build_pattern(PHRASES)
# Keyed by casefold: IGNORECASE also matches U+017F as "s"
_LOOKUP = {phrase.casefold(): zh for phrase, zh in PHRASES.items()}


def translate(text) -> str:
    """Replace every known phrase in text with its Chinese equivalent"""
    if not text:
        return ''
    return _PHRASE_RE.sub(lambda m: _LOOKUP.get(m.group(1).casefold(), m.group(1)), text)


def translate_country(name) -> str:
    if not name:
        return ''
    return COUNTRIES.get(name.strip().lower(), name)
