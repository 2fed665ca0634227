"""
Score Model: Tf-idf + Lasso Regression for Review Scores

Core Idea: The score a reviewer gives can be read off the words they use.

How it Works:
- Cleans the crawled reviews (missing scores, DLC reviews, old reviews)
- Annotates each word with AFINN / Bing sentiment, flipping it after a
  negation, and drops stop words and words of the game title
- Builds tf-idf + length features and splits train / test by score
- Picks the Lasso penalty by bootstrap validation on the training split
- Refits on the full training split and evaluates on the test split

Key Features:
- Leak-free: features are always fitted on the rows the model trains on
- Rounding-aware error metric (reviews are scored in whole points)
- Sparse, interpretable model (see the feature importances)
"""

import sys
from pathlib import Path
import argparse
import time
from datetime import datetime
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Add project root to Python path
current_file = Path(__file__).absolute()
project_root = current_file.parent.parent
sys.path.insert(0, str(project_root))

from data_prepare_phase import config as prepare_config
from data_prepare_phase.clean_reviews import ReviewCleaner
from data_prepare_phase.lexicons import load_afinn_lexicon, load_bing_lexicon, load_stop_words
from data_prepare_phase.tokenizer import SentimentAnnotator
from model_phase import config
from model_phase.features import build_document
from model_phase.lasso_search import penalty_grid, run_penalty_search, fit_final_model
from model_phase.resampling import stratified_split, bootstrap_resamples
from model_phase.utilities import (
    load_raw_reviews,
    evaluate_regressor,
    sentiment_by_score,
    print_feature_importance,
    setup_output_directory,
    init_wandb_if_available,
    log_to_wandb,
    finish_wandb,
    save_results_to_json,
    print_training_summary,
    upload_results_to_hf
)


def prepare_documents(rows, annotator, cleaner=None):
    """
    Clean raw rows and turn them into document records.

    Returns:
        Tuple (reviews, documents, tokens_by_review, cleaning_stats)
    """
    cleaner = cleaner or ReviewCleaner()
    reviews = cleaner.clean(rows)
    cleaner.print_statistics()

    tokens_by_review = annotator.annotate_all(reviews)
    documents = [build_document(review, tokens_by_review[review.review_id]) for review in reviews]

    empty = sum(1 for document in documents if document.length == 0)
    print(f"✓ Built {len(documents):,} documents ({empty} without any token)")

    return reviews, documents, tokens_by_review, dict(cleaner.stats)


def run_pipeline(rows,
                 annotator,
                 cleaner=None,
                 penalties=None,
                 train_fraction=config.TRAIN_FRACTION,
                 n_bootstraps=config.N_BOOTSTRAPS,
                 random_state=config.RANDOM_STATE,
                 n_jobs=config.N_JOBS,
                 max_iter=config.LASSO_MAX_ITER,
                 min_doc_freq=config.MIN_DOC_FREQ,
                 top_n=20):
    """
    Clean, featurize, search, refit and evaluate.

    Returns:
        Tuple (model, results)
    """
    reviews, documents, tokens_by_review, cleaning_stats = prepare_documents(rows, annotator, cleaner)

    train_docs, test_docs = stratified_split(
        documents, train_fraction=train_fraction, random_state=random_state
    )
    print(f"\nSplit: {len(train_docs)} train / {len(test_docs)} test")

    resamples = bootstrap_resamples(len(train_docs), n_bootstraps=n_bootstraps, random_state=random_state)

    train_start = time.time()
    best, summary, _ = run_penalty_search(
        train_docs,
        resamples,
        penalties=penalties,
        n_jobs=n_jobs,
        max_iter=max_iter,
        min_doc_freq=min_doc_freq,
    )

    model = fit_final_model(train_docs, best['penalty'], max_iter=max_iter, min_doc_freq=min_doc_freq)
    train_time = time.time() - train_start
    print(f"\n✓ Search and final fit completed in {train_time:.2f}s")

    test_results = evaluate_regressor(model, test_docs, "Test")

    feature_importance = model.get_feature_importance()
    print_feature_importance(feature_importance, top_n=10)

    results = {
        'model_config': {
            'train_fraction': train_fraction,
            'n_bootstraps': n_bootstraps,
            'random_state': random_state,
            'max_iter': max_iter,
            'min_doc_freq': min_doc_freq,
        },
        'cleaning': cleaning_stats,
        'dataset_info': {
            'reviews': len(reviews),
            'train_size': len(train_docs),
            'test_size': len(test_docs),
            'vocabulary_size': len(model.preprocessor.vocabulary),
        },
        'training_time': train_time,
        'best_penalty': best,
        'search_summary': summary,
        **test_results,
        'intercept': model.intercept,
        'feature_importance': [
            {'feature': name, 'importance': value}
            for name, value in feature_importance[:top_n]
        ],
        'sentiment_by_score': sentiment_by_score(reviews, tokens_by_review),
    }
    return model, results


def main(source,
         output_dir=None,
         n_bootstraps=config.N_BOOTSTRAPS,
         penalty_min=config.PENALTY_LOG10_MIN,
         penalty_max=config.PENALTY_LOG10_MAX,
         penalty_levels=config.PENALTY_LEVELS,
         train_fraction=config.TRAIN_FRACTION,
         random_state=config.RANDOM_STATE,
         n_jobs=config.N_JOBS,
         min_year=prepare_config.MIN_YEAR,
         dedupe_first=prepare_config.DEDUPE_FIRST,
         nltk_stop_words=False,
         download_nltk=False,
         use_wandb=False,
         upload_to_hf=False,
         hf_repo=None):
    """
    Main training and evaluation pipeline.

    Args:
        source: Raw review table (CSV / JSON file or Hub dataset name)
        output_dir: Directory to save results
        n_bootstraps: Number of bootstrap resamples
        penalty_min: log10 of the smallest penalty
        penalty_max: log10 of the largest penalty
        penalty_levels: Number of penalties in the grid
        train_fraction: Share of reviews used for training
        random_state: Seed of the split and the resampler
        n_jobs: Worker processes for the search
        min_year: First publication year kept
        dedupe_first: Deduplicate URLs before the year / DLC filters
        nltk_stop_words: Add NLTK's stop words to scikit-learn's
        download_nltk: Download missing NLTK corpora
        use_wandb: Whether to use WandB for tracking
        upload_to_hf: Whether to upload results to HuggingFace Hub
        hf_repo: HuggingFace repository name for results
    """
    print("\n" + "="*60)
    print("Tf-idf + Lasso Review Score Model")
    print("="*60)

    output_dir = setup_output_directory(output_dir, model_name="lasso_regression")

    wandb_initialized = init_wandb_if_available(
        project_name="game-review-score",
        experiment_name=f"lasso_{datetime.now().strftime('%Y%m%d_%H%M%S')}",
        config={
            "model": "Tf-idf + Lasso",
            "n_bootstraps": n_bootstraps,
            "penalty_range": [penalty_min, penalty_max, penalty_levels],
            "train_fraction": train_fraction,
            "random_state": random_state,
        },
        use_wandb=use_wandb
    )

    # Lexicons
    print(f"\n{'='*60}")
    print("Loading lexicons")
    print(f"{'='*60}")
    annotator = SentimentAnnotator(
        afinn_lexicon=load_afinn_lexicon(prepare_config.AFINN_LEXICON_PATH or None),
        bing_lexicon=load_bing_lexicon(
            prepare_config.BING_POSITIVE_PATH or None,
            prepare_config.BING_NEGATIVE_PATH or None,
            download=download_nltk,
        ),
        stop_words=load_stop_words(include_nltk=nltk_stop_words, download=download_nltk),
    )
    print(f"  AFINN words: {len(annotator.afinn_lexicon):,}")
    print(f"  Bing words: {len(annotator.bing_lexicon):,}")
    print(f"  Stop words: {len(annotator.stop_words):,}")

    rows = load_raw_reviews(source)

    model, results = run_pipeline(
        rows,
        annotator,
        cleaner=ReviewCleaner(min_year=min_year, dedupe_first=dedupe_first),
        penalties=penalty_grid(penalty_min, penalty_max, penalty_levels),
        train_fraction=train_fraction,
        n_bootstraps=n_bootstraps,
        random_state=random_state,
        n_jobs=n_jobs,
    )

    search_summary = results.pop('search_summary')
    save_results_to_json({'summary': search_summary}, output_dir / 'search_results.json')
    save_results_to_json(results, output_dir / 'results.json')
    model.save(output_dir)

    log_to_wandb({
        'best_penalty': results['best_penalty']['penalty'],
        'val_mae_round': results['best_penalty']['mean_mae_round'],
        'test_mae_round': results['test_mae_round'],
        'test_mae': results['test_mae'],
        'test_baseline_mae_round': results['test_baseline_mae_round'],
    }, use_wandb=wandb_initialized)
    finish_wandb(use_wandb=wandb_initialized)

    print_training_summary(results, output_dir)

    if upload_to_hf:
        upload_results_to_hf(
            results=results,
            output_dir=output_dir,
            model_name="lasso_regression",
            hf_repo_name=hf_repo
        )

    return results


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description='Train a tf-idf + Lasso model predicting game review scores'
    )
    parser.add_argument(
        '--source',
        type=str,
        default=prepare_config.RAW_REVIEWS_SOURCE,
        help='Raw reviews: CSV / JSON file or HuggingFace dataset (default: from .env RAW_REVIEWS_SOURCE)'
    )
    parser.add_argument(
        '--output_dir',
        type=str,
        default=None,
        help='Output directory for results (default: auto-generated)'
    )
    parser.add_argument(
        '--n_bootstraps',
        type=int,
        default=config.N_BOOTSTRAPS,
        help=f'Number of bootstrap resamples (default: {config.N_BOOTSTRAPS})'
    )
    parser.add_argument(
        '--penalty_min',
        type=float,
        default=config.PENALTY_LOG10_MIN,
        help=f'log10 of the smallest penalty (default: {config.PENALTY_LOG10_MIN})'
    )
    parser.add_argument(
        '--penalty_max',
        type=float,
        default=config.PENALTY_LOG10_MAX,
        help=f'log10 of the largest penalty (default: {config.PENALTY_LOG10_MAX})'
    )
    parser.add_argument(
        '--penalty_levels',
        type=int,
        default=config.PENALTY_LEVELS,
        help=f'Number of penalties in the grid (default: {config.PENALTY_LEVELS})'
    )
    parser.add_argument(
        '--train_fraction',
        type=float,
        default=config.TRAIN_FRACTION,
        help=f'Share of reviews used for training (default: {config.TRAIN_FRACTION})'
    )
    parser.add_argument(
        '--random_state',
        type=int,
        default=config.RANDOM_STATE,
        help=f'Random seed (default: {config.RANDOM_STATE})'
    )
    parser.add_argument(
        '--n_jobs',
        type=int,
        default=config.N_JOBS,
        help='Number of worker processes (default: CPU count - 1)'
    )
    parser.add_argument(
        '--min_year',
        type=int,
        default=prepare_config.MIN_YEAR,
        help=f'First publication year kept (default: {prepare_config.MIN_YEAR})'
    )
    parser.add_argument(
        '--dedupe_last',
        action='store_true',
        help='Remove duplicated URLs after the year / DLC filters instead of before'
    )
    parser.add_argument(
        '--nltk_stop_words',
        action='store_true',
        help="Add NLTK's English stop words to scikit-learn's list"
    )
    parser.add_argument(
        '--download_nltk',
        action='store_true',
        help='Download missing NLTK corpora (opinion_lexicon, stopwords)'
    )
    parser.add_argument(
        '--use_wandb',
        action='store_true',
        help='Use WandB for experiment tracking'
    )
    parser.add_argument(
        '--upload_to_hf',
        action='store_true',
        help='Upload results to HuggingFace Hub'
    )
    parser.add_argument(
        '--hf_repo',
        type=str,
        default=None,
        help='HuggingFace repository name for results (default: from HF_USERNAME)'
    )

    args = parser.parse_args()

    main(
        source=args.source,
        output_dir=args.output_dir,
        n_bootstraps=args.n_bootstraps,
        penalty_min=args.penalty_min,
        penalty_max=args.penalty_max,
        penalty_levels=args.penalty_levels,
        train_fraction=args.train_fraction,
        random_state=args.random_state,
        n_jobs=args.n_jobs,
        min_year=args.min_year,
        dedupe_first=prepare_config.DEDUPE_FIRST and not args.dedupe_last,
        nltk_stop_words=args.nltk_stop_words,
        download_nltk=args.download_nltk,
        use_wandb=args.use_wandb,
        upload_to_hf=args.upload_to_hf,
        hf_repo=args.hf_repo
    )
