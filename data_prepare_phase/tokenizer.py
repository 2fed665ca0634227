"""
Tokenizer & Sentiment Annotator

Splits a review into overlapping word pairs, looks the second word of each
pair up in the AFINN and Bing lexicons and flips its sentiment when the first
word is a negation ("not great" -> great with AFINN -3 / Bing negative).
Stop words and words of the game title are removed afterwards.

The lexicons, negation words and stop words are handed to the annotator
explicitly and are only ever read.
"""

import re
import unicodedata

from data_prepare_phase import config
from data_prepare_phase.records import TokenPair, AnnotatedToken


APOSTROPHE_TRANSLATION = str.maketrans({
    '’': "'",  # right single quotation mark
    '‘': "'",  # left single quotation mark
    'ʼ': "'",  # modifier letter apostrophe
    '´': "'",  # acute accent
    '`': "'",
    '“': '"',
    '”': '"',
})

WORD_PATTERN = re.compile(r"[^\W_]+(?:'[^\W_]+)*")

POLARITY_FLIP = {'positive': 'negative', 'negative': 'positive'}


def normalize_apostrophes(text):
    """Replace curly apostrophes and quotes with their straight form."""
    return text.translate(APOSTROPHE_TRANSLATION)


def normalize_text(text):
    # composed form, so accents stay inside the word
    return unicodedata.normalize('NFC', normalize_apostrophes(text or '')).lower()


def tokenize(text):
    """Lower-cased words of a text (any alphabet); apostrophes inside a word are kept."""
    return WORD_PATTERN.findall(normalize_text(text))


def make_bigrams(review_id, words):
    """
    Slide a two-word window over the words of a review.

    N words give N-1 pairs, so the first word is only ever used as the
    context of the second one.
    """
    return [TokenPair(review_id, first, second) for first, second in zip(words, words[1:])]


def title_stop_words(title, stop_words):
    """
    Words of a game title that should not count as review content.

    Stop words and numbers are ignored; every remaining word also gets its
    possessive form ("moss" -> "moss's").
    """
    words = {
        word for word in tokenize(title)
        if word not in stop_words and not word.isdigit()
    }
    return words | {f"{word}'s" for word in words}


class SentimentAnnotator:
    """
    Converts reviews into annotated tokens.
    """

    def __init__(self,
                 afinn_lexicon,
                 bing_lexicon,
                 negation_words=config.NEGATION_WORDS,
                 stop_words=None):
        """
        Args:
            afinn_lexicon: Mapping word -> integer intensity (-5..5)
            bing_lexicon: Mapping word -> 'positive' / 'negative'
            negation_words: Words that flip the sentiment of the next word
            stop_words: Words removed from the output (default: English
                stop words, see ``lexicons.load_stop_words``)
        """
        if stop_words is None:
            from data_prepare_phase.lexicons import load_stop_words
            stop_words = load_stop_words()

        self.afinn_lexicon = afinn_lexicon
        self.bing_lexicon = bing_lexicon
        self.negation_words = frozenset(normalize_text(word) for word in negation_words)
        self.stop_words = frozenset(normalize_text(word) for word in stop_words)

    def annotate_pair(self, pair):
        """Annotate the second word of a pair, negating it if needed."""
        afinn_value = self.afinn_lexicon.get(pair.word_2)
        bing_polarity = self.bing_lexicon.get(pair.word_2)
        negated = pair.word_1 in self.negation_words

        if negated:
            if afinn_value is not None:
                afinn_value = -afinn_value
            if bing_polarity is not None:
                bing_polarity = POLARITY_FLIP[bing_polarity]

        return AnnotatedToken(
            review_id=pair.review_id,
            word=pair.word_2,
            afinn_value=afinn_value,
            bing_polarity=bing_polarity,
            negated=negated,
        )

    def annotate(self, review):
        """
        Annotated tokens of one review, in text order.

        A review whose words are all filtered out yields an empty list.
        """
        pairs = make_bigrams(review.review_id, tokenize(review.text))
        excluded = self.stop_words | title_stop_words(review.game, self.stop_words)

        return [
            self.annotate_pair(pair)
            for pair in pairs
            if pair.word_2 not in excluded
        ]

    def annotate_all(self, reviews):
        """Map review_id -> annotated tokens for a batch of reviews."""
        return {review.review_id: self.annotate(review) for review in reviews}


def summarize_sentiment(tokens):
    """
    Aggregate sentiment of a review's annotated tokens.

    Lexicon misses are skipped, they do not count as neutral words.
    """
    afinn_values = [token.afinn_value for token in tokens if token.afinn_value is not None]
    return {
        'afinn_sum': sum(afinn_values),
        'afinn_matched': len(afinn_values),
        'bing_positive': sum(1 for token in tokens if token.bing_polarity == 'positive'),
        'bing_negative': sum(1 for token in tokens if token.bing_polarity == 'negative'),
        'negated': sum(1 for token in tokens if token.negated),
    }
