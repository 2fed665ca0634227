"""
Utility functions for the review score model.

This module contains reusable functions for data loading, evaluation,
reporting and experiment tracking.
"""

import time
import json
import os
from collections import Counter, defaultdict
from datetime import datetime
from pathlib import Path

import numpy as np
from datasets import load_dataset

from data_prepare_phase.tokenizer import summarize_sentiment
from model_phase.features import round_score
from model_phase.lasso_search import mae, mae_round


LOCAL_FORMATS = {
    '.csv': 'csv',
    '.json': 'json',
    '.jsonl': 'json',
}


def load_raw_reviews(source, split='train'):
    """
    Load the raw review table written by the crawler.

    Args:
        source: Path to a CSV / JSON(L) file, or a HuggingFace Hub dataset name
        split: Split to read from a Hub dataset

    Returns:
        List of row dicts
    """
    print(f"\n{'='*60}")
    print(f"Loading raw reviews: {source}")
    print(f"{'='*60}")

    path = Path(source)
    if path.suffix.lower() in LOCAL_FORMATS:
        if not path.exists():
            raise FileNotFoundError(f"Raw review file not found: {path}")
        dataset = load_dataset(LOCAL_FORMATS[path.suffix.lower()], data_files=str(path), split='train')
    else:
        dataset = load_dataset(source, split=split)

    rows = dataset.to_list()
    print(f"  Rows: {len(rows):,}")
    return rows


def deviation_distribution(predictions, truths):
    """Count of |round(prediction) - truth| values, keyed by deviation."""
    deviations = np.abs(np.rint(np.asarray(predictions, dtype=float)) - np.asarray(truths, dtype=float))
    counts = Counter(int(d) for d in deviations)
    return {str(deviation): counts[deviation] for deviation in sorted(counts)}


def evaluate_regressor(model, documents, split_name="Test", baseline_mean=None):
    """
    Evaluate a score regressor and return its metrics.

    Args:
        model: Fitted model with a predict() method
        documents: ``DocumentRecord`` list to evaluate on
        split_name: Name of the split for display (e.g., "Test")
        baseline_mean: Constant prediction to compare against (default:
            the model's training mean)

    Returns:
        Dictionary containing all evaluation metrics
    """
    print(f"\n{'='*60}")
    print(f"Evaluating on {split_name} set")
    print(f"{'='*60}")

    truths = np.array([document.score for document in documents], dtype=float)

    start_time = time.time()
    predictions = model.predict(documents)
    inference_time = time.time() - start_time

    if baseline_mean is None:
        baseline_mean = model.training_mean
    baseline = np.full(len(truths), baseline_mean)

    prefix = split_name.lower()
    results = {
        f'{prefix}_mae_round': mae_round(predictions, truths),
        f'{prefix}_mae': mae(predictions, truths),
        f'{prefix}_baseline_mae_round': mae_round(baseline, truths),
        f'{prefix}_baseline_mae': mae(baseline, truths),
        f'{prefix}_deviation_distribution': deviation_distribution(predictions, truths),
        f'{prefix}_inference_time': float(inference_time),
        f'{prefix}_predictions': [
            {
                'review_id': document.review_id,
                'score': document.score,
                'prediction': float(prediction),
                'prediction_rounded': round_score(prediction),
            }
            for document, prediction in zip(documents, predictions)
        ],
    }

    print(f"\n{split_name} Results:")
    print(f"  MAE (rounded predictions): {results[f'{prefix}_mae_round']:.4f}")
    print(f"  MAE (raw predictions): {results[f'{prefix}_mae']:.4f}")
    print(f"  Baseline MAE (rounded, constant {baseline_mean:.2f}): "
          f"{results[f'{prefix}_baseline_mae_round']:.4f}")
    print(f"\nAbsolute deviation of rounded predictions:")
    for deviation, count in results[f'{prefix}_deviation_distribution'].items():
        print(f"  {deviation}: {count}")

    return results


def sentiment_by_score(reviews, tokens_by_review):
    """
    Mean net AFINN sentiment of the reviews of each (rounded) score.

    Args:
        reviews: Cleaned ``Review`` list
        tokens_by_review: Mapping review_id -> annotated tokens
    """
    grouped = defaultdict(list)
    for review in reviews:
        summary = summarize_sentiment(tokens_by_review[review.review_id])
        grouped[round_score(review.raw_score)].append(summary['afinn_sum'])

    return {
        str(score): {
            'reviews': len(values),
            'mean_afinn_sum': float(np.mean(values)),
        }
        for score, values in sorted(grouped.items())
    }


def print_feature_importance(feature_importance, top_n=10):
    """
    Pretty print signed feature importances.

    Args:
        feature_importance: List of (feature, coefficient) from
            model.get_feature_importance()
        top_n: Number of features to display per direction
    """
    print(f"\n{'='*60}")
    print("Feature Importance Analysis")
    print(f"{'='*60}")

    positive = [(name, coef) for name, coef in feature_importance if coef > 0]
    negative = [(name, coef) for name, coef in feature_importance if coef < 0]
    print(f"  Non-zero features: {len(positive) + len(negative)}")

    print("\n  Top positive features (raise the score):")
    for name, coef in positive[:top_n]:
        print(f"    {name}: {coef:.4f}")
    print("  Top negative features (lower the score):")
    for name, coef in negative[:top_n]:
        print(f"    {name}: {coef:.4f}")


def setup_output_directory(output_dir, model_name="lasso"):
    """
    Setup output directory with timestamp if not provided.

    Args:
        output_dir: Path to output directory or None for auto-generation
        model_name: Name prefix for auto-generated directory

    Returns:
        Path object for the output directory
    """
    from model_phase.config import OUTPUT_DIR

    if output_dir is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_dir = f"{OUTPUT_DIR}/{model_name}_{timestamp}"

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    return output_dir


def init_wandb_if_available(project_name, experiment_name, config, use_wandb=False):
    """
    Initialize WandB if available and requested.

    Args:
        project_name: WandB project name
        experiment_name: Name for this experiment run
        config: Configuration dictionary to log
        use_wandb: Whether to use WandB

    Returns:
        True if WandB was initialized, False otherwise
    """
    if not use_wandb:
        return False

    try:
        import wandb
    except ImportError:
        print("⚠️  WandB not available. Install with: pip install wandb")
        return False

    wandb.init(
        project=project_name,
        name=experiment_name,
        config=config
    )
    return True


def log_to_wandb(metrics, use_wandb=False):
    """
    Log scalar metrics to WandB if initialized.

    Args:
        metrics: Dictionary of metrics; only numeric values are logged
        use_wandb: Whether WandB is being used
    """
    if use_wandb:
        import wandb
        wandb.log({
            key: value for key, value in metrics.items()
            if isinstance(value, (int, float)) and not isinstance(value, bool)
        })


def finish_wandb(use_wandb=False):
    """
    Finish WandB run if initialized.

    Args:
        use_wandb: Whether WandB is being used
    """
    if use_wandb:
        import wandb
        wandb.finish()


def save_results_to_json(results, output_path):
    """
    Save results dictionary to JSON file.

    Args:
        results: Dictionary of results to save
        output_path: Path to save JSON file
    """
    output_path = Path(output_path)
    with open(output_path, 'w') as f:
        json.dump(results, f, indent=2)

    print(f"✓ Results saved to {output_path}")


def print_training_summary(results, output_dir):
    """
    Print a summary of training results.

    Args:
        results: Dictionary containing training results
        output_dir: Directory where results were saved
    """
    print(f"\n{'='*60}")
    print("Training Complete!")
    print(f"{'='*60}")
    print(f"Results saved to: {output_dir}")

    if 'best_penalty' in results:
        print(f"\nSelected penalty: {results['best_penalty']['penalty']:.6g}")
        print(f"  Validation MAE (rounded): {results['best_penalty']['mean_mae_round']:.4f}")

    if 'test_mae_round' in results:
        print(f"\nTest Metrics:")
        print(f"  MAE (rounded): {results['test_mae_round']:.4f}")
        print(f"  MAE: {results['test_mae']:.4f}")
        print(f"  Baseline MAE (rounded): {results['test_baseline_mae_round']:.4f}")

    if 'training_time' in results:
        print(f"\nTraining Time: {results['training_time']:.2f}s")


def upload_results_to_hf(results, output_dir, model_name, hf_repo_name=None, hf_token=None):
    """
    Upload training results and model artifacts to HuggingFace Hub.

    Args:
        results: Dictionary containing training results
        output_dir: Directory containing model files
        model_name: Name of the model (e.g., "lasso_regression")
        hf_repo_name: HuggingFace repo name (e.g., "username/model-results")
        hf_token: HuggingFace API token (or will use HF_TOKEN from environment)

    Returns:
        True if upload was successful, False otherwise
    """
    from huggingface_hub import HfApi, create_repo
    from huggingface_hub.utils import HfHubHTTPError

    if hf_token is None:
        hf_token = os.getenv('HF_TOKEN')

    if not hf_token:
        print("⚠️  HF_TOKEN not found. Skipping upload to HuggingFace.")
        print("   Set HF_TOKEN in .env file to enable automatic upload.")
        return False

    if hf_repo_name is None:
        username = os.getenv('HF_USERNAME', '')
        if not username:
            print("⚠️  Cannot determine HuggingFace username. Skipping upload.")
            print("   Provide --hf_repo or set HF_USERNAME in .env")
            return False
        hf_repo_name = f"{username}/{model_name}-results"

    print(f"\n{'='*60}")
    print("Uploading Results to HuggingFace Hub")
    print(f"{'='*60}")
    print(f"Repository: {hf_repo_name}")

    output_dir = Path(output_dir)
    with open(output_dir / "README.md", 'w', encoding='utf-8') as f:
        f.write(generate_model_card(results, model_name))

    try:
        create_repo(
            repo_id=hf_repo_name,
            token=hf_token,
            repo_type="model",
            exist_ok=True,
            private=False
        )
        HfApi().upload_folder(
            folder_path=str(output_dir),
            repo_id=hf_repo_name,
            repo_type="model",
            token=hf_token,
            commit_message=f"Upload {model_name} results"
        )
    except HfHubHTTPError as e:
        print(f"⚠️  Error uploading to HuggingFace: {e}")
        return False

    print(f"✓ Results uploaded successfully!")
    print(f"   View at: https://huggingface.co/{hf_repo_name}")
    return True


def generate_model_card(results, model_name):
    """
    Generate a model card (README) for HuggingFace.

    Args:
        results: Dictionary containing training results
        model_name: Name of the model

    Returns:
        String containing the model card in Markdown format
    """
    best = results.get('best_penalty', {})
    dataset_info = results.get('dataset_info', {})
    top_features = results.get('feature_importance', [])[:15]

    feature_rows = "\n".join(
        f"| {feature['feature']} | {feature['importance']:+.4f} |" for feature in top_features
    )

    return f"""---
language: en
tags:
- regression
- game-reviews
- lasso
- {model_name}
license: mit
metrics:
- mae
---

# {model_name.replace('_', ' ').title()} - Game Review Score Regression

## Model Description

Predicts the 0-10 score of a video game review from its text. Reviews are
turned into standardized tf-idf features (negated words are separate features)
plus the review length, and a Lasso regression is fitted on them.

**Training Date**: {datetime.now().strftime('%Y-%m-%d')}

## Performance

| Metric | Value |
|--------|-------|
| Selected penalty | {best.get('penalty', float('nan')):.6g} |
| Validation MAE (rounded) | {best.get('mean_mae_round', float('nan')):.4f} |
| Test MAE (rounded) | {results.get('test_mae_round', float('nan')):.4f} |
| Test MAE | {results.get('test_mae', float('nan')):.4f} |
| Test baseline MAE (rounded) | {results.get('test_baseline_mae_round', float('nan')):.4f} |

- **Training Samples**: {dataset_info.get('train_size', 'N/A')}
- **Test Samples**: {dataset_info.get('test_size', 'N/A')}

## Most Important Features

| Feature | Coefficient |
|---------|-------------|
{feature_rows}

## Files

- `preprocessor.pkl`: Vocabulary, idf weights and scaler
- `regressor.pkl`: Fitted Lasso
- `config.json`: Model configuration
- `results.json`: Complete results and metrics
- `search_results.json`: Validation error of every penalty
"""
