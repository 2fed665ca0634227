"""
Unit tests for the tokenizer and sentiment annotator.
"""

from data_prepare_phase.records import TokenPair
from data_prepare_phase.tokenizer import (
    SentimentAnnotator,
    make_bigrams,
    normalize_apostrophes,
    summarize_sentiment,
    title_stop_words,
    tokenize,
)
from tests.conftest import AFINN, BING, STOP_WORDS, make_review


def test_tokenize_normalizes_case_and_apostrophes():
    """Test lower-casing, punctuation splitting and apostrophe handling."""
    assert tokenize("Don’t BUY it, it's Broken!") == ["don't", 'buy', 'it', "it's", 'broken']
    assert normalize_apostrophes('Moss‘s world’') == "Moss's world'"
    assert tokenize('') == []
    assert tokenize(None) == []


def test_tokenize_keeps_accented_letters():
    """Test that accented letters stay inside their word."""
    assert tokenize('Pokémon is a naïve café') == ['pokémon', 'is', 'a', 'naïve', 'café']
    # decomposed e + combining acute accent
    assert tokenize('Poke\u0301mon') == ['pokémon']
    assert tokenize('snake_case') == ['snake', 'case']


def test_make_bigrams():
    """Test that N words give N-1 overlapping pairs."""
    pairs = make_bigrams('r1', ['a', 'b', 'c'])
    assert pairs == [TokenPair('r1', 'a', 'b'), TokenPair('r1', 'b', 'c')]
    assert make_bigrams('r1', ['alone']) == []
    assert make_bigrams('r1', []) == []


def test_negation_flips_sentiment(annotator):
    """Test ("not", "great") -> -3 / negative while ("very", "great") is unchanged."""
    negated = annotator.annotate_pair(TokenPair('r1', 'not', 'great'))
    assert negated.afinn_value == -3
    assert negated.bing_polarity == 'negative'
    assert negated.negated is True

    plain = annotator.annotate_pair(TokenPair('r1', 'very', 'great'))
    assert plain.afinn_value == 3
    assert plain.bing_polarity == 'positive'
    assert plain.negated is False


def test_lexicon_miss_stays_none(annotator):
    """Test that unknown words keep None sentiment, negated or not."""
    token = annotator.annotate_pair(TokenPair('r1', 'not', 'controller'))
    assert token.afinn_value is None
    assert token.bing_polarity is None
    assert token.negated is True

    # In one lexicon only
    token = annotator.annotate_pair(TokenPair('r1', 'never', 'buggy'))
    assert token.afinn_value is None
    assert token.bing_polarity == 'positive'


def test_negation_words_are_normalized():
    """Test that negation entries with curly apostrophes still match."""
    annotator = SentimentAnnotator(AFINN, BING, negation_words={'DON’T'}, stop_words=STOP_WORDS)
    tokens = annotator.annotate(make_review('r1', 'I don’t like awful games'))

    words = [(token.word, token.negated) for token in tokens]
    assert ("don't", False) in words
    assert ('like', True) in words
    assert ('awful', False) in words


def test_first_word_is_only_context(annotator):
    """Test that the first word of a review is never annotated."""
    tokens = annotator.annotate(make_review('r1', 'great game'))
    assert [token.word for token in tokens] == ['game']


def test_stop_words_are_removed(annotator):
    """Test that stop words never become annotated tokens."""
    tokens = annotator.annotate(make_review('r1', 'this is the very best of it'))
    assert [token.word for token in tokens] == ['best']


def test_title_stop_words():
    """Test title words, their possessive and the dropped numbers / stop words."""
    words = title_stop_words('The Witcher 3: Wild Hunt', STOP_WORDS)
    assert words == {'witcher', "witcher's", 'wild', "wild's", 'hunt', "hunt's"}


def test_title_words_filtered_per_review(annotator):
    """Test that 'moss' is removed from Moss's review but not from others."""
    moss = make_review('moss', "Playing moss and moss's quill is great", game='Moss')
    other = make_review('other', 'The moss looks great', game='Other Game')

    moss_words = [token.word for token in annotator.annotate(moss)]
    other_words = [token.word for token in annotator.annotate(other)]

    assert 'moss' not in moss_words
    assert "moss's" not in moss_words
    assert moss_words == ['quill', 'great']
    assert other_words == ['moss', 'looks', 'great']


def test_accented_title_words_filtered(annotator):
    """Test that an accented title word is removed while other accented words stay."""
    review = make_review('poke', 'I love Pokémon’s naïve café charm', game='Pokémon Snap')

    assert title_stop_words('Pokémon Snap', STOP_WORDS) == {
        'pokémon', "pokémon's", 'snap', "snap's",
    }
    assert [token.word for token in annotator.annotate(review)] == ['love', 'naïve', 'café', 'charm']


def test_review_without_surviving_tokens(annotator):
    """Test that an empty review yields no tokens instead of failing."""
    assert annotator.annotate(make_review('r1', '')) == []
    assert annotator.annotate(make_review('r2', 'the the the')) == []


def test_annotate_all_and_summary(annotator):
    """Test batch annotation and the per-review sentiment summary."""
    reviews = [
        make_review('r1', 'not great but not awful and plain boring'),
        make_review('r2', ''),
    ]
    tokens_by_review = annotator.annotate_all(reviews)
    assert set(tokens_by_review) == {'r1', 'r2'}

    summary = summarize_sentiment(tokens_by_review['r1'])
    # great -> -3, awful -> +3, boring -> -3; 'but' and 'plain' are misses
    assert summary['afinn_sum'] == -3
    assert summary['afinn_matched'] == 3
    assert summary['bing_positive'] == 1
    assert summary['bing_negative'] == 2
    assert summary['negated'] == 2

    assert summarize_sentiment(tokens_by_review['r2'])['afinn_matched'] == 0
