from backend.services.translator import translate, translate_country


def test_known_phrases_are_replaced():
    assert translate('Bitcoin price') == '比特币 价格'


def test_longest_phrase_wins():
    assert translate('Spot Bitcoin ETF approved') == '比特币现货ETF 获批'


def test_only_whole_words_match():
    # "fed" must not fire inside "federation"
    assert translate('federation') == 'federation'


def test_unknown_words_are_kept():
    assert translate('Analysts expect Ethereum upside') == 'Analysts expect 以太坊 upside'


def test_empty_input():
    assert translate(None) == ''
    assert translate('') == ''


def test_country_names():
    assert translate_country('United States') == '美国'
    assert translate_country('euro area') == '欧元区'
    assert translate_country('Atlantis') == 'Atlantis'
    assert translate_country(None) == ''


def test_characters_that_casefold_to_ascii():
    # U+017F (long s) matches "s" under IGNORECASE
    assert translate('ſec filing') == '美国SEC filing'
    assert translate('Ethereum ſtaking grows') == '以太坊 质押 grows'
