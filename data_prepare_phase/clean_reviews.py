"""
Review Cleaning

Turns the raw table written by the crawler into a set of clean reviews:
rows without a score, reviews of add-on content, rows without a usable
publication year and pre-release reviews are dropped, duplicated URLs are
removed and apostrophes are canonicalized.

Malformed rows never stop the batch; they are dropped and counted per reason
in ``ReviewCleaner.stats``.
"""

import math
import re
from collections import defaultdict

from data_prepare_phase import config
from data_prepare_phase.records import Review
from data_prepare_phase.tokenizer import normalize_apostrophes


YEAR_PATTERN = re.compile(r'\b(\d{4})\b')


def parse_score(value):
    """Return the score as a float, or None when it is missing or not a number."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value or value.upper() == 'NA':
            return None
    try:
        score = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(score):
        return None
    return score


def parse_year(date_text):
    """Extract a 4-digit year from a free-text date such as '3 Dec 2019'."""
    if date_text is None:
        return None
    match = YEAR_PATTERN.search(str(date_text))
    if not match:
        return None
    return int(match.group(1))


def _text_field(row, column):
    value = row.get(column)
    if value is None:
        return ''
    if isinstance(value, float) and math.isnan(value):
        return ''
    return normalize_apostrophes(str(value)).strip()


class ReviewCleaner:
    """Filters raw review rows and converts them into ``Review`` records"""

    def __init__(self,
                 addon_pattern=config.ADDON_URL_PATTERN,
                 min_year=config.MIN_YEAR,
                 dedupe_first=config.DEDUPE_FIRST,
                 columns=None):
        """
        Args:
            addon_pattern: Regex matched (case-insensitively) against the URL
                of add-on content reviews
            min_year: First year kept; earlier reviews are dropped
            dedupe_first: Remove duplicated URLs before the year / add-on
                filters instead of after them
            columns: Mapping of logical field name to raw column name
        """
        self.addon_pattern = re.compile(addon_pattern, re.IGNORECASE) if addon_pattern else None
        self.min_year = min_year
        self.dedupe_first = dedupe_first
        self.columns = dict(config.RAW_COLUMNS)
        if columns:
            self.columns.update(columns)
        self.stats = defaultdict(int)

    def _remove_duplicates(self, entries):
        seen_urls = set()
        unique_entries = []
        for row, year in entries:
            url = row.get(self.columns['url'])
            if url in seen_urls:
                self.stats['duplicate_url'] += 1
                continue
            seen_urls.add(url)
            unique_entries.append((row, year))
        return unique_entries

    def _apply_filters(self, entries):
        kept = []
        for row, _ in entries:
            url = str(row.get(self.columns['url']) or '')
            if self.addon_pattern is not None and self.addon_pattern.search(url):
                self.stats['addon_content'] += 1
                continue

            year = parse_year(row.get(self.columns['date']))
            if year is None:
                self.stats['missing_year'] += 1
                continue
            if year < self.min_year:
                self.stats['pre_release'] += 1
                continue

            kept.append((row, year))
        return kept

    def clean(self, rows):
        """
        Clean a batch of raw rows.

        Args:
            rows: Iterable of dicts with the raw crawler columns

        Returns:
            List of ``Review`` records, in input order
        """
        self.stats = defaultdict(int)
        rows = list(rows)
        self.stats['total_rows'] = len(rows)

        scored = []
        for row in rows:
            score = parse_score(row.get(self.columns['score']))
            if score is None:
                self.stats['missing_score'] += 1
                continue
            if not 0 <= score <= 10:
                self.stats['invalid_score'] += 1
                continue
            row = dict(row)
            row[self.columns['score']] = score
            scored.append((row, None))

        if self.dedupe_first:
            scored = self._remove_duplicates(scored)
        kept = self._apply_filters(scored)
        if not self.dedupe_first:
            kept = self._remove_duplicates(kept)

        reviews = [
            Review(
                game=_text_field(row, self.columns['game']),
                author=_text_field(row, self.columns['author']),
                text=_text_field(row, self.columns['text']),
                year=year,
                raw_score=row[self.columns['score']],
                url=str(row[self.columns['url']]),
            )
            for row, year in kept
        ]

        self.stats['kept'] = len(reviews)
        self.stats['dropped'] = self.stats['total_rows'] - len(reviews)
        return reviews

    def print_statistics(self):
        """Print how many rows were dropped and why"""
        print(f"\n{'='*60}")
        print("Review cleaning")
        print(f"{'='*60}")
        print(f"  Raw rows: {self.stats['total_rows']:,}")
        for reason in ('missing_score', 'invalid_score', 'duplicate_url',
                       'addon_content', 'missing_year', 'pre_release'):
            if self.stats[reason]:
                print(f"  Dropped ({reason}): {self.stats[reason]:,}")
        print(f"✓ Kept {self.stats['kept']:,} reviews "
              f"({self.stats['total_rows']:,} - {self.stats['dropped']:,} dropped)")


def clean_reviews(rows, **kwargs):
    """Convenience wrapper returning ``(reviews, stats)``."""
    cleaner = ReviewCleaner(**kwargs)
    reviews = cleaner.clean(rows)
    return reviews, dict(cleaner.stats)
