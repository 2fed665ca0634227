"""
Feature Builder

Turns annotated tokens into document records (score, length, token counts)
and document records into a standardized tf-idf feature matrix.

The featurizer is fitted on one set of documents only (a training split or a
bootstrap resample). Fitting returns a ``FittedPreprocessor`` that holds the
vocabulary, the idf weights and the scaling statistics; other partitions are
only ever transformed with it, never used to refit it.
"""

import math
from collections import Counter

import numpy as np
from scipy import sparse
from sklearn.preprocessing import StandardScaler

from data_prepare_phase.config import NEGATION_PREFIX
from data_prepare_phase.records import DocumentRecord
from model_phase.config import LENGTH_FEATURE, MIN_DOC_FREQ


def round_score(value):
    """Round to the nearest integer (halves go to the even neighbour)."""
    return int(np.rint(value))


def feature_token(token, negation_prefix=NEGATION_PREFIX):
    """Vocabulary entry of an annotated token; negated words get a prefix."""
    if token.negated:
        return f"{negation_prefix}{token.word}"
    return token.word


def build_document(review, tokens, negation_prefix=NEGATION_PREFIX):
    """
    Build the document record of one review.

    Args:
        review: Cleaned ``Review``
        tokens: Annotated tokens of the review (after filtering)
        negation_prefix: Prefix of negated tokens

    Returns:
        ``DocumentRecord``; length is 0 and tokens empty when nothing survived
    """
    return DocumentRecord(
        review_id=review.review_id,
        score=round_score(review.raw_score),
        length=len(tokens),
        tokens=Counter(feature_token(token, negation_prefix) for token in tokens),
    )


def build_documents(reviews, annotator, negation_prefix=NEGATION_PREFIX):
    """Annotate a batch of reviews and build their document records."""
    return [
        build_document(review, annotator.annotate(review), negation_prefix)
        for review in reviews
    ]


class FittedPreprocessor:
    """Vocabulary, idf weights and scaling statistics learned from one set of documents."""

    def __init__(self, vocabulary, idf, scaler, length_feature=LENGTH_FEATURE):
        self.vocabulary = list(vocabulary)
        self.vocabulary_index = {term: i for i, term in enumerate(self.vocabulary)}
        self.idf = np.asarray(idf, dtype=float)
        self.scaler = scaler
        self.length_feature = length_feature

    @property
    def feature_names(self):
        return self.vocabulary + [self.length_feature]

    @property
    def n_features(self):
        return len(self.vocabulary) + 1

    def tfidf_matrix(self, documents):
        """
        Sparse tf-idf matrix of documents over the fitted vocabulary.

        tf is the share of the document's tokens taken by the term. Terms
        outside the vocabulary are ignored.
        """
        rows, cols, values = [], [], []
        for row, document in enumerate(documents):
            if document.length == 0:
                continue
            for term, count in document.tokens.items():
                col = self.vocabulary_index.get(term)
                if col is None:
                    continue
                rows.append(row)
                cols.append(col)
                values.append(count / document.length * self.idf[col])

        return sparse.csr_matrix(
            (values, (rows, cols)),
            shape=(len(documents), len(self.vocabulary)),
            dtype=float,
        )

    def raw_matrix(self, documents):
        """tf-idf columns followed by the length column, before scaling."""
        lengths = np.array([document.length for document in documents], dtype=float).reshape(-1, 1)
        return np.hstack([self.tfidf_matrix(documents).toarray(), lengths])

    def transform(self, documents):
        """Standardized feature matrix (documents x features)."""
        return self.scaler.transform(self.raw_matrix(documents))


class TfidfFeaturizer:
    """
    Learns a ``FittedPreprocessor`` from a set of documents.
    """

    def __init__(self, min_doc_freq=MIN_DOC_FREQ, length_feature=LENGTH_FEATURE):
        """
        Args:
            min_doc_freq: Terms found in fewer documents are left out
            length_feature: Name of the document length column
        """
        self.min_doc_freq = min_doc_freq
        self.length_feature = length_feature

    def fit(self, documents):
        """
        Fit vocabulary, idf and scaling on ``documents``.

        idf = log(N / df), N being the number of documents (a row drawn twice
        by the bootstrap counts twice).
        """
        documents = list(documents)
        if not documents:
            raise ValueError("Cannot fit features on an empty set of documents!")

        doc_freq = Counter()
        for document in documents:
            doc_freq.update(document.tokens.keys())

        vocabulary = sorted(term for term, df in doc_freq.items() if df >= self.min_doc_freq)
        n_documents = len(documents)
        idf = [math.log(n_documents / doc_freq[term]) for term in vocabulary]

        preprocessor = FittedPreprocessor(
            vocabulary=vocabulary,
            idf=idf,
            scaler=StandardScaler(),
            length_feature=self.length_feature,
        )
        preprocessor.scaler.fit(preprocessor.raw_matrix(documents))
        return preprocessor

    def fit_transform(self, documents):
        preprocessor = self.fit(documents)
        return preprocessor, preprocessor.transform(documents)
