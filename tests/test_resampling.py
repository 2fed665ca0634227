"""
Unit tests for the train / test split and the bootstrap resampler.
"""

from collections import Counter

import numpy as np
import pytest

from data_prepare_phase.records import DocumentRecord
from model_phase.resampling import bootstrap_resamples, stratified_split, stratified_split_indices


def _documents(scores):
    return [DocumentRecord(review_id=f'r{i}', score=score, length=0) for i, score in enumerate(scores)]


def test_split_is_deterministic():
    """Test that the same seed and input order give identical partitions."""
    documents = _documents([2, 3, 4, 5, 6, 7, 8, 8, 9, 10] * 3)

    first = stratified_split(documents, random_state=7)
    second = stratified_split(documents, random_state=7)

    assert [d.review_id for d in first[0]] == [d.review_id for d in second[0]]
    assert [d.review_id for d in first[1]] == [d.review_id for d in second[1]]


def test_split_fraction_and_coverage():
    """Test the 60 / 40 sizes and that every row lands in exactly one partition."""
    for n_rows in (10, 23, 57, 100):
        documents = _documents([i % 9 for i in range(n_rows)])
        train, test = stratified_split(documents, train_fraction=0.6, random_state=3)

        assert len(train) in (int(np.floor(0.6 * n_rows)), int(np.ceil(0.6 * n_rows)))
        ids = [d.review_id for d in train] + [d.review_id for d in test]
        assert sorted(ids) == sorted(d.review_id for d in documents)


def test_split_preserves_score_distribution():
    """Test that each score keeps about 60% of its rows in train."""
    scores = [5] * 20 + [7] * 30 + [9] * 10
    train, test = stratified_split(_documents(scores), random_state=11)

    train_counts = Counter(d.score for d in train)
    assert abs(train_counts[5] - 12) <= 1
    assert abs(train_counts[7] - 18) <= 1
    assert abs(train_counts[9] - 6) <= 1


def test_split_keeps_input_order():
    train, test = stratified_split(_documents([1, 2, 3, 4, 5]), random_state=0)
    assert [d.review_id for d in train] == sorted(d.review_id for d in train)
    assert [d.review_id for d in test] == sorted(d.review_id for d in test)


def test_split_edge_cases():
    train_idx, test_idx = stratified_split_indices([4, 4], train_fraction=0.9)
    assert len(train_idx) == 1 and len(test_idx) == 1

    with pytest.raises(ValueError):
        stratified_split_indices([4])
    with pytest.raises(ValueError):
        stratified_split_indices([1, 2, 3], train_fraction=1.0)


def test_bootstrap_resamples():
    """Test resample size, out-of-bag complement and determinism."""
    resamples = bootstrap_resamples(12, n_bootstraps=25, random_state=5)
    again = bootstrap_resamples(12, n_bootstraps=25, random_state=5)

    assert len(resamples) == 25
    assert resamples[0].resample_id == 'Bootstrap01'
    for resample, other in zip(resamples, again):
        assert len(resample.train_indices) == 12
        assert len(resample.oob_indices) > 0
        assert not set(resample.oob_indices) & set(resample.train_indices)
        assert set(resample.oob_indices) | set(resample.train_indices) == set(range(12))
        np.testing.assert_array_equal(resample.train_indices, other.train_indices)


def test_resample_rows():
    rows = ['a', 'b', 'c']
    resample = bootstrap_resamples(3, n_bootstraps=1, random_state=1)[0]
    assert len(resample.train_rows(rows)) == 3
    assert set(resample.oob_rows(rows)).isdisjoint(set(resample.train_rows(rows)))


def test_bootstrap_needs_two_rows():
    with pytest.raises(ValueError):
        bootstrap_resamples(1, n_bootstraps=3)
