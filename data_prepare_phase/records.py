"""
Record types shared by the cleaning, annotation and modelling phases.
"""

from dataclasses import dataclass, field
from collections import Counter
from typing import Optional


@dataclass(frozen=True)
class Review:
    """A cleaned review. The url is the unique identifier."""
    game: str
    author: str
    text: str
    year: int
    raw_score: float
    url: str

    @property
    def review_id(self):
        return self.url


@dataclass(frozen=True)
class TokenPair:
    """Two adjacent words of a review; word_1 is the context of word_2."""
    review_id: str
    word_1: str
    word_2: str


@dataclass(frozen=True)
class AnnotatedToken:
    """A word with its (possibly negated) sentiment from both lexicons."""
    review_id: str
    word: str
    afinn_value: Optional[int]  # None when the word is not in the lexicon
    bing_polarity: Optional[str]  # 'positive', 'negative' or None
    negated: bool = False


@dataclass(frozen=True)
class DocumentRecord:
    """One row of the model-ready table."""
    review_id: str
    score: int
    length: int
    tokens: Counter = field(default_factory=Counter, compare=False, hash=False)
