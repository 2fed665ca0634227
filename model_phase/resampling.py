"""
Split & Resampler

- ``stratified_split``: train / test split stratified by rounded score
- ``bootstrap_resamples``: bootstrap draws of the training rows, each paired
  with its out-of-bag rows as validation fold

Both are driven by numpy's ``default_rng``: the same seed and the same input
order always give the same partitions.
"""

from dataclasses import dataclass

import numpy as np

from model_phase.config import RANDOM_STATE, TRAIN_FRACTION, N_BOOTSTRAPS


@dataclass(frozen=True)
class Resample:
    """Row indices of one bootstrap draw and of its out-of-bag rows."""
    resample_id: str
    train_indices: np.ndarray
    oob_indices: np.ndarray

    def train_rows(self, rows):
        return [rows[i] for i in self.train_indices]

    def oob_rows(self, rows):
        return [rows[i] for i in self.oob_indices]


def stratified_split_indices(strata, train_fraction=TRAIN_FRACTION, random_state=RANDOM_STATE):
    """
    Split row positions into train and test, keeping the strata proportions.

    Rows are ordered by (stratum, random key) and assigned systematically:
    walking the ordered rows, a row goes to train whenever the running quota
    ``k * train_fraction`` (shifted by a random offset) crosses an integer.
    Every stratum thus keeps its share, even strata with a single row, and the
    train size is the floor or ceiling of ``n * train_fraction``.

    Returns:
        Tuple (train_indices, test_indices), each sorted ascending
    """
    strata = np.asarray(strata)
    n_rows = len(strata)
    if n_rows < 2:
        raise ValueError(f"Need at least 2 rows to split, got {n_rows}")
    if not 0 < train_fraction < 1:
        raise ValueError(f"train_fraction must be in (0, 1), got {train_fraction}")

    rng = np.random.default_rng(random_state)
    random_keys = rng.random(n_rows)
    offset = rng.random()

    order = np.lexsort((random_keys, strata))
    positions = np.arange(1, n_rows + 1)
    to_train = (np.floor(positions * train_fraction + offset)
                > np.floor((positions - 1) * train_fraction + offset))

    train_indices = order[to_train]
    test_indices = order[~to_train]

    # Both partitions must hold at least one row
    if len(test_indices) == 0:
        train_indices, test_indices = train_indices[:-1], train_indices[-1:]
    elif len(train_indices) == 0:
        train_indices, test_indices = test_indices[:1], test_indices[1:]

    return np.sort(train_indices), np.sort(test_indices)


def stratified_split(documents, train_fraction=TRAIN_FRACTION, random_state=RANDOM_STATE):
    """
    Split document records into train and test, stratified by score.

    Returns:
        Tuple (train_documents, test_documents), both in input order
    """
    documents = list(documents)
    train_indices, test_indices = stratified_split_indices(
        [document.score for document in documents],
        train_fraction=train_fraction,
        random_state=random_state,
    )
    return [documents[i] for i in train_indices], [documents[i] for i in test_indices]


def bootstrap_resamples(n_rows, n_bootstraps=N_BOOTSTRAPS, random_state=RANDOM_STATE):
    """
    Draw bootstrap resamples of ``n_rows`` training rows.

    Each resample draws ``n_rows`` rows with replacement; the rows never drawn
    form its validation fold. A draw that leaves no out-of-bag row is drawn
    again.

    Returns:
        List of ``Resample``
    """
    if n_rows < 2:
        raise ValueError(f"Need at least 2 training rows to bootstrap, got {n_rows}")

    rng = np.random.default_rng(random_state)
    width = len(str(n_bootstraps))
    resamples = []

    while len(resamples) < n_bootstraps:
        train_indices = rng.integers(0, n_rows, size=n_rows)
        oob_mask = np.ones(n_rows, dtype=bool)
        oob_mask[train_indices] = False
        if not oob_mask.any():
            continue
        resamples.append(Resample(
            resample_id=f"Bootstrap{len(resamples) + 1:0{width}d}",
            train_indices=train_indices,
            oob_indices=np.flatnonzero(oob_mask),
        ))

    return resamples
