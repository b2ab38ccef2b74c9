import os
import logging
from typing import Dict, Any

# Folder Configuration
INPUT_FILE = "data/publications.xlsx"
OUTPUT_FOLDER = "Output"

# Ingestion
LANGUAGE_CODE = "eng"  # Only records written in English are kept
JOURNAL_ARTICLE_TYPES = ("1.01", "1.02", "1.03")  # Scientific, review and short scientific articles

# Term Weighting
TFIDF_CUTOFF_QUANTILE = 0.5  # Median cutoff: keep entries strictly above this quantile

# Topic Count Selection
MIN_TOPICS = 2  # Smallest candidate number of topics
MAX_TOPICS = 15  # Largest candidate number of topics (inclusive)
TOPIC_STEP = 1  # Step between candidate topic counts
RANDOM_SEED = 1234  # Seed shared by every stochastic stage

# Variational LDA
LDA_PASSES = 10  # Passes over the corpus
LDA_ITERATIONS = 100  # Maximum inference iterations per document
LDA_WORKERS = 1  # >1 switches to LdaMulticore (results may vary between runs)

# Gibbs sampling LDA
GIBBS_BURN_IN = 100  # Sweeps discarded before the log-likelihood trace starts
GIBBS_ITERATIONS = 200  # Sweeps kept after burn-in
GIBBS_THIN = 10  # Keep every n-th sweep in the log-likelihood trace
GIBBS_BETA = 0.1  # Topic-term prior

# Self-Organizing Map
SOM_XDIM = 6  # Hexagonal grid width
SOM_YDIM = 6  # Hexagonal grid height
SOM_PASSES = 500  # Training passes over the data
SOM_BUDGETS = (500, 1000)  # Pass budgets compared in the training progress plot
SOM_JITTER = 0.3  # Half-width of the uniform jitter added to node coordinates

# Report Configuration
TOP_TERMS = 10  # Number of top terms reported per topic

def setup_folders() -> None:
    """Create necessary folders if they don't exist"""
    folders = [OUTPUT_FOLDER]
    for folder in folders:
        try:
            os.makedirs(folder, exist_ok=True)
            logging.info(f"Ensured folder exists: {folder}")
        except Exception as e:
            logging.error(f"Failed to create folder {folder}: {str(e)}")
            raise

def validate_thresholds() -> None:
    """Validate threshold values"""
    if not 0 <= TFIDF_CUTOFF_QUANTILE < 1:
        raise ValueError("TFIDF_CUTOFF_QUANTILE must be in [0, 1)")

    if SOM_JITTER < 0:
        raise ValueError("SOM_JITTER must be non-negative")

    if GIBBS_BETA <= 0:
        raise ValueError("GIBBS_BETA must be positive")

def validate_topic_settings() -> None:
    """Validate topic analysis settings"""
    if MIN_TOPICS < 2:
        raise ValueError("MIN_TOPICS must be at least 2")

    if MIN_TOPICS > MAX_TOPICS:
        raise ValueError("MIN_TOPICS must not exceed MAX_TOPICS")

    if TOPIC_STEP <= 0:
        raise ValueError("TOPIC_STEP must be positive")

    if LDA_PASSES <= 0 or LDA_ITERATIONS <= 0:
        raise ValueError("LDA_PASSES and LDA_ITERATIONS must be positive")

    if LDA_WORKERS <= 0:
        raise ValueError("LDA_WORKERS must be positive")

    if GIBBS_BURN_IN < 0 or GIBBS_ITERATIONS <= 0 or GIBBS_THIN <= 0:
        raise ValueError("GIBBS_ITERATIONS and GIBBS_THIN must be positive, GIBBS_BURN_IN non-negative")

    if TOP_TERMS <= 0:
        raise ValueError("TOP_TERMS must be positive")

def validate_som_settings() -> None:
    """Validate self-organizing map settings"""
    if SOM_XDIM <= 0 or SOM_YDIM <= 0:
        raise ValueError("SOM_XDIM and SOM_YDIM must be positive")

    if SOM_PASSES <= 0:
        raise ValueError("SOM_PASSES must be positive")

    if any(budget <= 0 for budget in SOM_BUDGETS):
        raise ValueError("SOM_BUDGETS must all be positive")

def validate_config() -> None:
    """
    Validate all configuration settings.
    Raises ValueError if any validation fails.
    """
    try:
        setup_folders()
        validate_thresholds()
        validate_topic_settings()
        validate_som_settings()
        logging.info("Configuration validated successfully")
    except Exception as e:
        logging.error(f"Configuration validation failed: {str(e)}")
        raise

def get_config() -> Dict[str, Any]:
    """
    Get configuration as a dictionary.
    Validates configuration before returning.
    """
    validate_config()
    return {
        # Folders
        'input_file': INPUT_FILE,
        'output_folder': OUTPUT_FOLDER,

        # Ingestion
        'language_code': LANGUAGE_CODE,
        'journal_article_types': JOURNAL_ARTICLE_TYPES,

        # Term Weighting
        'tfidf_cutoff_quantile': TFIDF_CUTOFF_QUANTILE,

        # Topic Count Selection
        'min_topics': MIN_TOPICS,
        'max_topics': MAX_TOPICS,
        'topic_step': TOPIC_STEP,
        'random_seed': RANDOM_SEED,

        # Variational LDA
        'lda_passes': LDA_PASSES,
        'lda_iterations': LDA_ITERATIONS,
        'lda_workers': LDA_WORKERS,

        # Gibbs sampling LDA
        'gibbs_burn_in': GIBBS_BURN_IN,
        'gibbs_iterations': GIBBS_ITERATIONS,
        'gibbs_thin': GIBBS_THIN,
        'gibbs_beta': GIBBS_BETA,

        # Self-Organizing Map
        'som_xdim': SOM_XDIM,
        'som_ydim': SOM_YDIM,
        'som_passes': SOM_PASSES,
        'som_budgets': SOM_BUDGETS,
        'som_jitter': SOM_JITTER,

        # Report Configuration
        'top_terms': TOP_TERMS
    }

if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )
    validate_config()
