"""Bayesian Graph -- Naive Bayes text classification over a counting graph."""

__version__ = "0.1.0"

from .engine import ClassificationEngine, accept_all, rank_classifications
from .graph import GraphStore
from .locking import ReadWriteLock
from .models import (
    CategoryNode,
    Classification,
    DataRow,
    Link,
    LinkView,
    SentenceInput,
    WordNode,
)
from .persistence import (
    JsonModelReader,
    JsonModelWriter,
    ModelFormatError,
    ModelStreamError,
    ModelWriteError,
    PersistenceError,
    load_model,
    save_model,
)
from .report import AccuracyCalculator, ConfusionMatrix
from .system import BayesianSystem
from .text import STOP_WORDS, is_content_word, tokenize, unique_words

__all__ = [
    # Core
    "GraphStore",
    "ClassificationEngine",
    "BayesianSystem",
    "accept_all",
    "rank_classifications",
    # Models
    "CategoryNode",
    "WordNode",
    "Link",
    "LinkView",
    "Classification",
    "DataRow",
    "SentenceInput",
    # Concurrency
    "ReadWriteLock",
    # Persistence
    "JsonModelReader",
    "JsonModelWriter",
    "PersistenceError",
    "ModelFormatError",
    "ModelStreamError",
    "ModelWriteError",
    "load_model",
    "save_model",
    # Reporting
    "AccuracyCalculator",
    "ConfusionMatrix",
    # Text
    "STOP_WORDS",
    "is_content_word",
    "tokenize",
    "unique_words",
]
