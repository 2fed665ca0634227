"""
Shared fixtures: tiny lexicons and a synthetic review corpus.
"""

import pytest

from data_prepare_phase.records import Review
from data_prepare_phase.tokenizer import SentimentAnnotator


STOP_WORDS = frozenset({
    'the', 'a', 'an', 'and', 'is', 'it', 'this', 'of', 'to', 'very', 'i', 'not', 'no',
})

AFINN = {
    'great': 3, 'amazing': 4, 'brilliant': 4, 'superb': 5, 'excellent': 3,
    'awful': -3, 'boring': -3, 'broken': -1, 'dull': -2, 'ugly': -3,
}

BING = {
    'great': 'positive', 'amazing': 'positive', 'brilliant': 'positive',
    'awful': 'negative', 'boring': 'negative', 'dull': 'negative', 'buggy': 'negative',
}

POSITIVE_WORDS = ['great', 'amazing', 'brilliant', 'superb', 'excellent',
                  'stunning', 'fantastic', 'wonderful', 'gorgeous', 'masterful']
NEGATIVE_WORDS = ['awful', 'boring', 'broken', 'clunky', 'dull',
                  'tedious', 'ugly', 'messy', 'bland', 'buggy']

SCORES = [2, 3, 4, 5, 6, 7, 8, 8, 9, 10]


def make_review(url, text, game='Untitled', score=7.0, year=2018, author='Reviewer'):
    return Review(game=game, author=author, text=text, year=year, raw_score=score, url=url)


def synthetic_text(score):
    """Review text with one sentiment word per score point."""
    pool = POSITIVE_WORDS if score >= 6 else NEGATIVE_WORDS
    return 'this ' + ' '.join(pool[:score])


@pytest.fixture
def annotator():
    return SentimentAnnotator(afinn_lexicon=AFINN, bing_lexicon=BING, stop_words=STOP_WORDS)


@pytest.fixture
def synthetic_reviews():
    return [
        make_review(f'https://example.com/review-{i}', synthetic_text(score),
                    game=f'Title{i}', score=float(score))
        for i, score in enumerate(SCORES)
    ]


@pytest.fixture
def synthetic_rows():
    """The synthetic corpus as raw crawler rows."""
    return [
        {
            'game': f'Title{i}',
            'author': 'Reviewer',
            'review': synthetic_text(score),
            'date': f'{i + 1} Mar 2019',
            'score': float(score),
            'url': f'https://example.com/review-{i}',
        }
        for i, score in enumerate(SCORES)
    ]
