"""
Sentiment lexicons and stop words.

- AFINN: word -> integer intensity in [-5, 5] (the word list bundled with the
  ``afinn`` package, or any tab-separated ``word<TAB>score`` file)
- Bing (Hu & Liu opinion lexicon): word -> 'positive' / 'negative' (NLTK's
  ``opinion_lexicon`` corpus, or the original positive / negative word files)
- English stop words (scikit-learn's list, optionally with NLTK's)

Every loader returns a fresh dict / frozenset that callers treat as read-only.
"""

from pathlib import Path

from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS

from data_prepare_phase.tokenizer import normalize_text


def _read_word_list(path):
    """Read a word-per-line file, skipping blank lines and ';' comments."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Lexicon file not found: {path}")

    words = []
    with open(path, 'r', encoding='utf-8', errors='ignore') as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith(';'):
                continue
            words.append(normalize_text(line))
    return words


def ensure_nltk_resource(resource, download=False):
    """
    Make sure an NLTK corpus is available.

    Args:
        resource: Corpus name, e.g. 'opinion_lexicon'
        download: Download the corpus when it is missing

    Raises:
        LookupError: The corpus is missing and ``download`` is False
    """
    import nltk

    try:
        nltk.data.find(f'corpora/{resource}')
    except LookupError:
        if not download:
            raise
        print(f"Downloading NLTK corpus '{resource}'...")
        nltk.download(resource, quiet=True)


def afinn_data_path(language='en'):
    """Path of the word list shipped inside the ``afinn`` package."""
    import afinn

    filename = {'en': 'AFINN-en-165.txt'}[language]
    return Path(afinn.__file__).parent / 'data' / filename


def load_afinn_lexicon(path=None):
    """
    Load the AFINN intensity lexicon.

    Args:
        path: Optional tab-separated file; defaults to the lexicon bundled
            with the ``afinn`` package

    Returns:
        Dict word -> int
    """
    path = Path(path) if path else afinn_data_path()
    if not path.exists():
        raise FileNotFoundError(f"AFINN lexicon not found: {path}")

    lexicon = {}
    with open(path, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.rstrip('\n')
            if not line.strip():
                continue
            word, _, value = line.rpartition('\t')
            lexicon[normalize_text(word.strip())] = int(value)
    return lexicon


def load_bing_lexicon(positive_path=None, negative_path=None, download=False):
    """
    Load the Bing polarity lexicon.

    Words listed as both positive and negative are left out.

    Args:
        positive_path: Optional file with positive words
        negative_path: Optional file with negative words
        download: Download NLTK's opinion_lexicon corpus if needed

    Returns:
        Dict word -> 'positive' / 'negative'
    """
    if positive_path and negative_path:
        positive = _read_word_list(positive_path)
        negative = _read_word_list(negative_path)
    else:
        ensure_nltk_resource('opinion_lexicon', download=download)
        from nltk.corpus import opinion_lexicon
        positive = [normalize_text(word) for word in opinion_lexicon.positive()]
        negative = [normalize_text(word) for word in opinion_lexicon.negative()]

    ambiguous = set(positive) & set(negative)
    lexicon = {word: 'positive' for word in positive if word not in ambiguous}
    lexicon.update({word: 'negative' for word in negative if word not in ambiguous})
    return lexicon


def load_stop_words(include_nltk=False, download=False):
    """
    English stop words.

    Args:
        include_nltk: Also add NLTK's English stop-word list
        download: Download NLTK's stopwords corpus if needed
    """
    stop_words = set(ENGLISH_STOP_WORDS)
    if include_nltk:
        ensure_nltk_resource('stopwords', download=download)
        from nltk.corpus import stopwords
        stop_words.update(normalize_text(word) for word in stopwords.words('english'))
    return frozenset(stop_words)
