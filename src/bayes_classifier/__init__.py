"""Bayes Classifier -- naive Bayes ranking of categories for featuresets."""

__version__ = "1.0.0"

from .config import Settings, configure_logging
from .engine import BayesClassifier
from .errors import ClassificationError, LikelihoodSourceError, UndefinedPriorError
from .models import Classification
from .source import FrequencyTable, LikelihoodSource
from .text import extract_features, ngrams, tokenize

__all__ = [
    # Core
    "BayesClassifier",
    "Classification",
    # Likelihood sources
    "LikelihoodSource",
    "FrequencyTable",
    # Errors
    "ClassificationError",
    "UndefinedPriorError",
    "LikelihoodSourceError",
    # Text features
    "extract_features",
    "tokenize",
    "ngrams",
    # Configuration
    "Settings",
    "configure_logging",
]
