"""
Lasso Regression: Predicting Review Scores from Review Text

Core Idea: A review's score is a (sparse) linear function of its words.

How it Works:
- Every review becomes a standardized tf-idf vector plus its length
- A Lasso (L1-penalized linear regression) predicts the score
- The penalty is chosen by bootstrap validation on the training split,
  minimizing the mean absolute error of rounded predictions

Key Features:
- Features are always fitted on the rows being trained on (a resample or the
  full training split) and only applied to the rows being evaluated
- Sparse, interpretable model: the coefficients are the feature importances
- The (resample x penalty) grid runs in parallel with joblib
"""

import json
import pickle
import warnings
from collections import defaultdict
from pathlib import Path

import numpy as np
from joblib import Parallel, delayed
from sklearn.exceptions import ConvergenceWarning
from sklearn.linear_model import Lasso
from tqdm import tqdm

from model_phase.config import (
    LASSO_MAX_ITER,
    MIN_DOC_FREQ,
    N_JOBS,
    PENALTY_LEVELS,
    PENALTY_LOG10_MAX,
    PENALTY_LOG10_MIN,
)
from model_phase.features import TfidfFeaturizer


def mae(predictions, truths):
    """Mean absolute error of raw predictions."""
    predictions = np.asarray(predictions, dtype=float)
    truths = np.asarray(truths, dtype=float)
    return float(np.mean(np.abs(predictions - truths)))


def mae_round(predictions, truths):
    """Mean absolute error after rounding predictions to the nearest integer."""
    predictions = np.rint(np.asarray(predictions, dtype=float))
    truths = np.asarray(truths, dtype=float)
    return float(np.mean(np.abs(predictions - truths)))


def penalty_grid(log10_min=PENALTY_LOG10_MIN, log10_max=PENALTY_LOG10_MAX, levels=PENALTY_LEVELS):
    """Penalties evenly spaced on a log10 scale."""
    return np.logspace(log10_min, log10_max, levels)


def _scores(documents):
    return np.array([document.score for document in documents], dtype=float)


class LassoScoreModel:
    """
    Score regressor: tf-idf features + Lasso.
    """

    def __init__(self, penalty=0.01, max_iter=LASSO_MAX_ITER, min_doc_freq=MIN_DOC_FREQ):
        """
        Args:
            penalty: L1 regularization strength (Lasso alpha)
            max_iter: Maximum coordinate descent iterations
            min_doc_freq: Minimum document frequency of vocabulary terms
        """
        self.penalty = float(penalty)
        self.max_iter = max_iter
        self.min_doc_freq = min_doc_freq

        self.preprocessor = None
        self.regressor = None
        self.training_mean = None
        self.is_fitted = False

    def fit(self, documents):
        """
        Fit features and regressor on document records.

        Args:
            documents: Training ``DocumentRecord`` list
        """
        featurizer = TfidfFeaturizer(min_doc_freq=self.min_doc_freq)
        preprocessor, X = featurizer.fit_transform(documents)
        return self.fit_features(preprocessor, X, _scores(documents))

    def fit_features(self, preprocessor, X, y):
        """
        Fit the regressor on an already transformed matrix.

        ``X`` must be ``preprocessor.transform`` of the training rows.
        """
        self.preprocessor = preprocessor
        self.training_mean = float(np.mean(y))
        self.regressor = Lasso(alpha=self.penalty, max_iter=self.max_iter)

        # Tiny penalties on wide matrices stop at max_iter; the fit is still usable
        with warnings.catch_warnings():
            warnings.simplefilter('ignore', category=ConvergenceWarning)
            self.regressor.fit(X, y)

        self.is_fitted = True
        return self

    @property
    def is_degenerate(self):
        """True when the penalty pushed every coefficient to zero."""
        return not np.any(self.regressor.coef_)

    def predict_features(self, X):
        if not self.is_fitted:
            raise ValueError("Model must be fitted before prediction!")
        if self.is_degenerate:
            return np.full(X.shape[0], self.training_mean)
        return self.regressor.predict(X)

    def predict(self, documents):
        """
        Predict scores of document records.

        Returns:
            Array of raw (unrounded) predicted scores
        """
        if not self.is_fitted:
            raise ValueError("Model must be fitted before prediction!")
        return self.predict_features(self.preprocessor.transform(documents))

    @property
    def coefficients(self):
        """Mapping feature name -> coefficient."""
        if not self.is_fitted:
            raise ValueError("Model must be fitted before reading coefficients!")
        return dict(zip(self.preprocessor.feature_names, self.regressor.coef_.tolist()))

    @property
    def intercept(self):
        if not self.is_fitted:
            raise ValueError("Model must be fitted before reading the intercept!")
        if self.is_degenerate:
            return self.training_mean
        return float(self.regressor.intercept_)

    def get_feature_importance(self, top_n=None, nonzero_only=True):
        """
        Signed feature importances, strongest first.

        Features are standardized, so coefficient magnitudes are comparable;
        a positive sign pushes the predicted score up.

        Args:
            top_n: Number of features to return (default: all)
            nonzero_only: Leave out features the Lasso dropped

        Returns:
            List of (feature, coefficient) tuples
        """
        importances = [
            (name, float(coef)) for name, coef in self.coefficients.items()
            if coef != 0 or not nonzero_only
        ]
        importances.sort(key=lambda item: (-abs(item[1]), item[0]))
        if top_n is not None:
            importances = importances[:top_n]
        return importances

    def save(self, output_dir):
        """Save preprocessor, regressor and config."""
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        with open(output_dir / 'preprocessor.pkl', 'wb') as f:
            pickle.dump(self.preprocessor, f)

        with open(output_dir / 'regressor.pkl', 'wb') as f:
            pickle.dump(self.regressor, f)

        config = {
            'penalty': self.penalty,
            'max_iter': self.max_iter,
            'min_doc_freq': self.min_doc_freq,
            'training_mean': self.training_mean,
        }
        with open(output_dir / 'config.json', 'w') as f:
            json.dump(config, f, indent=2)

        print(f"✓ Model saved to {output_dir}")

    @classmethod
    def load(cls, output_dir):
        """Load model from directory."""
        output_dir = Path(output_dir)

        with open(output_dir / 'config.json', 'r') as f:
            config = json.load(f)

        training_mean = config.pop('training_mean')
        model = cls(**config)
        model.training_mean = training_mean

        with open(output_dir / 'preprocessor.pkl', 'rb') as f:
            model.preprocessor = pickle.load(f)

        with open(output_dir / 'regressor.pkl', 'rb') as f:
            model.regressor = pickle.load(f)

        model.is_fitted = True

        print(f"✓ Model loaded from {output_dir}")
        return model


def evaluate_resample(documents, resample, penalties, max_iter=LASSO_MAX_ITER,
                      min_doc_freq=MIN_DOC_FREQ):
    """
    Evaluate every penalty on one bootstrap resample.

    Features are fitted once on the resample's rows and applied to its
    out-of-bag rows.

    Returns:
        List of result dicts, one per penalty
    """
    train_docs = resample.train_rows(documents)
    oob_docs = resample.oob_rows(documents)

    preprocessor, X_train = TfidfFeaturizer(min_doc_freq=min_doc_freq).fit_transform(train_docs)
    X_oob = preprocessor.transform(oob_docs)
    y_train = _scores(train_docs)
    y_oob = _scores(oob_docs)

    results = []
    for penalty in penalties:
        model = LassoScoreModel(penalty=penalty, max_iter=max_iter, min_doc_freq=min_doc_freq)
        model.fit_features(preprocessor, X_train, y_train)
        predictions = model.predict_features(X_oob)
        results.append({
            'resample_id': resample.resample_id,
            'penalty': float(penalty),
            'mae': mae(predictions, y_oob),
            'mae_round': mae_round(predictions, y_oob),
            'n_nonzero': int(np.count_nonzero(model.regressor.coef_)),
            'n_oob': len(oob_docs),
        })
    return results


def summarize_search(cell_results):
    """
    Average the per-resample results of each penalty.

    Returns:
        List of dicts sorted by penalty, with mean MAE, mean rounded MAE,
        the standard error of the rounded MAE and the mean number of
        non-zero coefficients
    """
    by_penalty = defaultdict(list)
    for result in cell_results:
        by_penalty[result['penalty']].append(result)

    summary = []
    for penalty in sorted(by_penalty):
        results = by_penalty[penalty]
        rounded = np.array([r['mae_round'] for r in results])
        summary.append({
            'penalty': penalty,
            'mean_mae': float(np.mean([r['mae'] for r in results])),
            'mean_mae_round': float(rounded.mean()),
            'std_err_mae_round': float(rounded.std(ddof=1) / np.sqrt(len(rounded))) if len(rounded) > 1 else 0.0,
            'mean_nonzero': float(np.mean([r['n_nonzero'] for r in results])),
            'n_resamples': len(results),
        })
    return summary


def select_best_penalty(summary):
    """
    Penalty with the lowest mean rounded MAE; ties go to the lowest penalty.
    """
    if not summary:
        raise ValueError("No search results to select from!")
    return min(summary, key=lambda row: (round(row['mean_mae_round'], 12), row['penalty']))


def run_penalty_search(documents, resamples, penalties=None, n_jobs=N_JOBS,
                       max_iter=LASSO_MAX_ITER, min_doc_freq=MIN_DOC_FREQ, verbose=True):
    """
    Bootstrap search of the Lasso penalty.

    Args:
        documents: Training ``DocumentRecord`` list
        resamples: ``Resample`` list indexing into ``documents``
        penalties: Penalty grid (default: ``penalty_grid()``)
        n_jobs: Number of worker processes
        max_iter: Maximum Lasso iterations
        min_doc_freq: Minimum document frequency of vocabulary terms
        verbose: Print progress

    Returns:
        Tuple (best, summary, cell_results)
    """
    if penalties is None:
        penalties = penalty_grid()
    penalties = [float(p) for p in penalties]
    if not penalties:
        raise ValueError("The penalty grid is empty!")

    if verbose:
        print(f"\n{'='*60}")
        print("Lasso penalty search (bootstrap validation)")
        print(f"{'='*60}")
        print(f"  Training documents: {len(documents)}")
        print(f"  Resamples: {len(resamples)}")
        print(f"  Penalties: {len(penalties)} ({min(penalties):.4g} .. {max(penalties):.4g})")
        print(f"  Workers: {n_jobs}")

    tasks = Parallel(n_jobs=n_jobs, return_as='generator')(
        delayed(evaluate_resample)(documents, resample, penalties, max_iter, min_doc_freq)
        for resample in resamples
    )

    cell_results = []
    for results in tqdm(tasks, total=len(resamples), desc="  Resamples", disable=not verbose):
        cell_results.extend(results)

    summary = summarize_search(cell_results)
    best = select_best_penalty(summary)

    if verbose:
        print(f"\n✓ Best penalty: {best['penalty']:.6g}")
        print(f"  Validation MAE (rounded): {best['mean_mae_round']:.4f}")
        print(f"  Validation MAE: {best['mean_mae']:.4f}")
        print(f"  Non-zero coefficients (mean): {best['mean_nonzero']:.1f}")

    return best, summary, cell_results


def fit_final_model(documents, penalty, max_iter=LASSO_MAX_ITER, min_doc_freq=MIN_DOC_FREQ):
    """Refit on the full training split at the selected penalty."""
    model = LassoScoreModel(penalty=penalty, max_iter=max_iter, min_doc_freq=min_doc_freq)
    return model.fit(documents)
