"""
Configuration for review cleaning and text annotation
"""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Raw table produced by the crawler (CSV, JSON or a Hub dataset name)
RAW_REVIEWS_SOURCE = os.getenv('RAW_REVIEWS_SOURCE', 'data/ps4_reviews.csv')

# Column names of the raw table
RAW_COLUMNS = {
    'game': 'game',
    'author': 'author',
    'text': 'review',
    'date': 'date',
    'score': 'score',
    'url': 'url',
}

# Reviews of add-on content (DLC, expansions, ...) are recognised by their URL
ADDON_URL_PATTERN = os.getenv('ADDON_URL_PATTERN', r'dlc|expansion|season-pass|add-on')

# Reviews published before this year are pre-release noise
MIN_YEAR = int(os.getenv('MIN_YEAR', '2013'))

# Remove duplicated URLs before (True) or after (False) the year / add-on filters
DEDUPE_FIRST = os.getenv('DEDUPE_FIRST', 'true').lower() == 'true'

# Optional local lexicon files (empty means: use the packaged lexicons)
AFINN_LEXICON_PATH = os.getenv('AFINN_LEXICON_PATH', '')
BING_POSITIVE_PATH = os.getenv('BING_POSITIVE_PATH', '')
BING_NEGATIVE_PATH = os.getenv('BING_NEGATIVE_PATH', '')

# Words that flip the sentiment of the word that follows them
NEGATION_WORDS = frozenset({
    'not', 'no', 'never', 'without', 'nor', 'hardly', 'cannot',
    "don't", "doesn't", "didn't", "isn't", "wasn't", "aren't", "weren't",
    "won't", "wouldn't", "can't", "couldn't", "shouldn't", "haven't", "hasn't",
})

# Prefix marking a negated token in the feature vocabulary
NEGATION_PREFIX = 'not_'
