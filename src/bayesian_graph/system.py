"""High-level train/classify entry point.

``BayesianSystem`` hosts the active ``GraphStore`` and a
``ClassificationEngine``. It has its own lock, separate from the store's,
that only guards which store is active: classification holds it shared so
the store cannot be swapped mid-call, ``set_store`` holds it exclusively,
and training does not take it at all.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Optional

from .engine import ClassificationEngine, WordFilter
from .graph import GraphStore
from .locking import ReadWriteLock
from .models import Classification, DataRow, SentenceInput

logger = logging.getLogger(__name__)


class BayesianSystem:
    """Train a counting graph and classify sentences against it.

    Example::

        system = BayesianSystem()
        system.train_on_rows([
            DataRow.from_text("sports", "The striker scored a late goal"),
            DataRow.from_text("politics", "The senate vote was delayed"),
        ])

        results = system.classify_row(SentenceInput.from_text("a goal"))
        print(results[0].category)  # "sports"

    Args:
        store: Store to start with. A new empty ``GraphStore`` by default.
        word_filter: Predicate passed to the engine to pick evidence words.
    """

    def __init__(
        self,
        store: Optional[GraphStore] = None,
        word_filter: Optional[WordFilter] = None,
    ) -> None:
        self._swap_lock = ReadWriteLock()
        self._store = store if store is not None else GraphStore()
        self._engine = ClassificationEngine(word_filter=word_filter)

    @property
    def store(self) -> GraphStore:
        """The currently active store."""
        with self._swap_lock.read_locked():
            return self._store

    @property
    def engine(self) -> ClassificationEngine:
        return self._engine

    def set_store(self, store: GraphStore) -> None:
        """Replace the active store.

        Raises:
            ValueError: If ``store`` is ``None``.
        """
        if store is None:
            raise ValueError("Cannot set a None model store")
        with self._swap_lock.write_locked():
            self._store = store
        logger.info("Active model store replaced: %r", store)

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def classify_row(
        self,
        sentence_input: SentenceInput,
        max_results: int = 0,
    ) -> list[Classification]:
        """Classify a sentence (or a ``DataRow``) by its distinct words.

        Args:
            sentence_input: Object with a ``unique_words`` attribute. A
                ``None`` word set is classified as an empty one.
            max_results: Truncate to this many results when positive.

        Returns:
            Classifications ordered from most to least probable.

        Raises:
            ValueError: If ``sentence_input`` is ``None``.
        """
        if sentence_input is None:
            raise ValueError("Cannot classify a None sentence input")
        with self._swap_lock.read_locked():
            return self._engine.classify(self._store, sentence_input.unique_words, max_results)

    def classify_words(
        self,
        words: Iterable[str],
        max_results: int = 0,
    ) -> list[Classification]:
        """Classify a plain collection of words.

        Raises:
            ValueError: If ``words`` is ``None`` or a single string.
        """
        if words is None:
            raise ValueError("Cannot classify None words")
        if isinstance(words, str):
            raise ValueError("Expected a collection of words, got a single string")
        return self.classify_row(SentenceInput(unique_words=frozenset(words)), max_results)

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def train_on_row(self, row: Optional[DataRow]) -> bool:
        """Add one row to the active store. ``None`` is ignored."""
        if row is None:
            return False
        return self._store.add_data_row(row.category, row.unique_words)

    def train_on_rows(self, rows: Optional[Iterable[Optional[DataRow]]]) -> int:
        """Add a batch of rows to the active store, returning how many were kept."""
        if rows is None:
            return 0
        added = self._store.add_data_rows(rows)
        logger.debug("Trained on %d rows", added)
        return added
