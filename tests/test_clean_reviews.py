"""
Unit tests for review cleaning.
"""

import math

from data_prepare_phase.clean_reviews import ReviewCleaner, clean_reviews, parse_score, parse_year


def _row(url, score=8.0, date='12 Mar 2018', game='Game', review='Some text'):
    return {'game': game, 'author': 'Author', 'review': review,
            'date': date, 'score': score, 'url': url}


def test_parse_score():
    """Test that missing or non-numeric scores become None."""
    assert parse_score('7.5') == 7.5
    assert parse_score(9) == 9.0
    assert parse_score(None) is None
    assert parse_score('') is None
    assert parse_score('NA') is None
    assert parse_score(float('nan')) is None
    assert parse_score('great') is None


def test_parse_year():
    """Test year extraction from free-text dates."""
    assert parse_year('3 Dec 2019') == 2019
    assert parse_year('Published: 14 Sept 2015 10:00') == 2015
    assert parse_year('yesterday') is None
    assert parse_year(None) is None


def test_drops_missing_scores_without_failing():
    """Test that rows without a score are dropped and counted."""
    rows = [
        _row('https://ign.com/a', score=None),
        _row('https://ign.com/b', score=float('nan')),
        _row('https://ign.com/c', score='9'),
    ]
    reviews, stats = clean_reviews(rows)

    assert [review.url for review in reviews] == ['https://ign.com/c']
    assert reviews[0].raw_score == 9.0
    assert stats['missing_score'] == 2
    assert stats['dropped'] == 2
    assert stats['total_rows'] - stats['dropped'] == len(reviews)


def test_drops_addon_content_and_old_reviews():
    """Test DLC exclusion and the pre-release year filter."""
    rows = [
        _row('https://ign.com/articles/some-game-dlc-review'),
        _row('https://ign.com/articles/some-game-Expansion-review'),
        _row('https://ign.com/articles/old-game-review', date='1 Jan 2012'),
        _row('https://ign.com/articles/undated-review', date='n/a'),
        _row('https://ign.com/articles/new-game-review', date='2 Feb 2013'),
    ]
    cleaner = ReviewCleaner()
    reviews = cleaner.clean(rows)

    assert [review.url for review in reviews] == ['https://ign.com/articles/new-game-review']
    assert reviews[0].year == 2013
    assert cleaner.stats['addon_content'] == 2
    assert cleaner.stats['pre_release'] == 1
    assert cleaner.stats['missing_year'] == 1
    assert all(review.year is not None and not math.isnan(review.raw_score) for review in reviews)


def test_canonicalizes_apostrophes_and_missing_text():
    """Test that curly apostrophes are straightened and missing text is empty."""
    rows = [
        _row('https://ign.com/a', game='Assassin’s Creed', review='It’s fine'),
        _row('https://ign.com/b', review=None),
    ]
    reviews, _ = clean_reviews(rows)

    assert reviews[0].game == "Assassin's Creed"
    assert reviews[0].text == "It's fine"
    assert reviews[1].text == ''


def test_dedupe_order_is_configurable():
    """Test that dedup before or after the filters keeps different rows."""
    rows = [
        _row('https://ign.com/same', date='1 Jan 2011'),
        _row('https://ign.com/same', date='1 Jan 2016'),
    ]

    first, first_stats = clean_reviews(rows, dedupe_first=True)
    assert first == []
    assert first_stats['duplicate_url'] == 1
    assert first_stats['pre_release'] == 1

    last, last_stats = clean_reviews(rows, dedupe_first=False)
    assert [review.year for review in last] == [2016]
    assert last_stats['duplicate_url'] == 0
    assert last_stats['pre_release'] == 1
