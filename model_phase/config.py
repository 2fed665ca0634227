"""
Configuration for the score regression (split, resampling and penalty search)
"""
import os
import multiprocessing
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Random seed shared by the split and the resampler
RANDOM_STATE = int(os.getenv('RANDOM_STATE', '42'))

# Share of the reviews used for training; the rest is the test set
TRAIN_FRACTION = float(os.getenv('TRAIN_FRACTION', '0.6'))

# Number of bootstrap resamples of the training set
N_BOOTSTRAPS = int(os.getenv('N_BOOTSTRAPS', '25'))

# Lasso penalty grid: PENALTY_LEVELS values spaced evenly on a log10 scale
PENALTY_LOG10_MIN = float(os.getenv('PENALTY_LOG10_MIN', '-3'))
PENALTY_LOG10_MAX = float(os.getenv('PENALTY_LOG10_MAX', '0.5'))
PENALTY_LEVELS = int(os.getenv('PENALTY_LEVELS', '30'))

# Lasso solver
LASSO_MAX_ITER = int(os.getenv('LASSO_MAX_ITER', '10000'))

# Vocabulary terms seen in fewer training documents are ignored
MIN_DOC_FREQ = int(os.getenv('MIN_DOC_FREQ', '1'))

# Worker processes for the penalty search (leave one core for orchestration)
N_JOBS = int(os.getenv('N_JOBS', str(max(1, multiprocessing.cpu_count() - 1))))

# Name of the document length column of the feature matrix
LENGTH_FEATURE = 'review_length'

# Output settings
OUTPUT_DIR = os.getenv('OUTPUT_DIR', 'model_phase/results')
