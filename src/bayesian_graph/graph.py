"""The counting graph behind the Bayesian classifier.

``GraphStore`` keeps one ``CategoryNode`` per category and one ``WordNode``
per distinct word, joined by shared ``Link`` objects whose weight counts
how many trained rows had both. After every public call the store
satisfies these invariants:

1. ``total_rows()`` equals the sum of all category counts.
2. A category's count is at least the weight of each of its links. Rows
   with several words raise several weights by one, so only the per-link
   bound holds, not a bound on the sum.
3. A word's count equals the sum of its link weights.
4. A link exists only while at least one row had both of its ends.
5. ``None`` is never stored as a key.

Every public method is thread-safe: mutations hold the store's lock
exclusively, reads hold it shared. Each read is consistent on its own; to
see one frozen state across several reads, wrap them in ``read_locked()``.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Iterable, Iterator
from contextlib import contextmanager
from typing import Optional

from .locking import ReadWriteLock
from .models import CategoryNode, DataRow, Link, LinkView, WordNode

logger = logging.getLogger(__name__)


class GraphStore:
    """Thread-safe store of category, word, and link counts.

    Example::

        store = GraphStore()
        store.add_data_row("sports", {"ball", "goal"})
        store.add_data_row("politics", {"vote"})

        store.total_rows()                                  # 2
        store.count_rows_with_category_and_word("sports", "goal")  # 1

    Absent keys are never an error: lookups return 0, ``False``, ``None``
    or an empty collection.
    """

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._categories: dict[Hashable, CategoryNode] = {}
        self._words: dict[str, WordNode] = {}
        self._total_rows = 0

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def add_category(self, category: Hashable) -> bool:
        """Create an empty category node.

        Returns:
            ``True`` if the category was created, ``False`` if it is
            ``None`` or already present.
        """
        with self._lock.write_locked():
            return self._add_category(category)

    def add_categories(self, categories: Optional[Iterable[Hashable]]) -> int:
        """Create several categories and return how many were new."""
        if categories is None:
            return 0
        with self._lock.write_locked():
            return sum(1 for category in categories if self._add_category(category))

    def remove_category(self, category: Hashable) -> Optional[Hashable]:
        """Remove a category and every link it owns.

        Words that end up with no count and no links are removed too.

        Returns:
            The removed category key, or ``None`` if it was not present.
        """
        if category is None:
            return None
        with self._lock.write_locked():
            return self._remove_category(category)

    def remove_categories(self, categories: Optional[Iterable[Hashable]]) -> list[Hashable]:
        """Remove several categories, returning the removed keys in input order."""
        removed: list[Hashable] = []
        if categories is None:
            return removed
        with self._lock.write_locked():
            for category in categories:
                key = self._remove_category(category)
                if key is not None:
                    removed.append(key)
        return removed

    # ------------------------------------------------------------------
    # Words
    # ------------------------------------------------------------------

    def add_word(self, word: str) -> bool:
        with self._lock.write_locked():
            return self._add_word(word)

    def add_words(self, words: Optional[Iterable[str]]) -> int:
        if words is None:
            return 0
        with self._lock.write_locked():
            return sum(1 for word in words if self._add_word(word))

    # ------------------------------------------------------------------
    # Training rows
    # ------------------------------------------------------------------

    def add_data_row(self, category: Hashable, unique_words: Optional[Iterable[str]]) -> bool:
        """Record one trained row.

        Increments the total row count and the category count by one and,
        for each distinct word, the word count and the category/word link
        weight by one.

        Args:
            category: Row label. Must not be ``None``.
            unique_words: Distinct words of the row. May be empty.

        Returns:
            ``True`` if the row was recorded, ``False`` if it was rejected.
        """
        with self._lock.write_locked():
            return self._add_data_row(category, unique_words)

    def add_data_rows(self, rows: Optional[Iterable[Optional[DataRow]]]) -> int:
        """Record a batch of ``DataRow`` objects, skipping invalid ones.

        Rows that are ``None``, that lack a ``category`` or ``unique_words``
        attribute, or whose values are rejected by ``add_data_row`` are
        skipped.

        Returns:
            Number of rows actually recorded.
        """
        if rows is None:
            return 0
        added = 0
        with self._lock.write_locked():
            for row in rows:
                category = getattr(row, "category", None)
                words = getattr(row, "unique_words", None)
                if self._add_data_row(category, words):
                    added += 1
        return added

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def total_rows(self) -> int:
        with self._lock.read_locked():
            return self._total_rows

    def unique_categories(self) -> frozenset[Hashable]:
        """Snapshot of every category key."""
        with self._lock.read_locked():
            return frozenset(self._categories)

    def unique_words(self) -> frozenset[str]:
        """Snapshot of every word key."""
        with self._lock.read_locked():
            return frozenset(self._words)

    def count_rows_with_category(self, category: Hashable) -> int:
        if category is None:
            return 0
        with self._lock.read_locked():
            node = self._categories.get(category)
            return node.count if node is not None else 0

    def count_rows_with_word(self, word: str) -> int:
        if word is None:
            return 0
        with self._lock.read_locked():
            node = self._words.get(word)
            return node.count if node is not None else 0

    def count_rows_with_category_and_word(self, category: Hashable, word: str) -> int:
        """Weight of the category/word link, or 0 if either end is missing."""
        if category is None or word is None:
            return 0
        with self._lock.read_locked():
            node = self._categories.get(category)
            return node.link_strength(word) if node is not None else 0

    def all_links(self) -> list[LinkView]:
        """Every link as a read-only view, grouped by category."""
        with self._lock.read_locked():
            return [
                link.view()
                for node in self._categories.values()
                for link in node.links.values()
            ]

    @contextmanager
    def read_locked(self) -> Iterator["GraphStore"]:
        """Hold the store's shared lock so several reads see one state.

        Example::

            with store.read_locked():
                results = engine.classify(store, words)
        """
        with self._lock.read_locked():
            yield self

    # ------------------------------------------------------------------
    # Hydration (used by model readers)
    # ------------------------------------------------------------------

    def set_total_rows(self, total_rows: int) -> None:
        if total_rows is None or total_rows < 0:
            return
        with self._lock.write_locked():
            self._total_rows = total_rows

    def set_category_count(self, category: Hashable, count: int) -> None:
        if category is None or count is None or count < 0:
            return
        with self._lock.write_locked():
            self._add_category(category)
            self._categories[category].count = count

    def set_word_count(self, word: str, count: int) -> None:
        if word is None or count is None or count < 0:
            return
        with self._lock.write_locked():
            self._add_word(word)
            self._words[word].count = count

    def set_link_weight(self, category: Hashable, word: str, weight: int) -> None:
        """Force the weight of a link, creating its nodes and the link as needed.

        A weight of 0 removes the link instead.
        """
        if category is None or word is None or weight is None or weight < 0:
            return
        with self._lock.write_locked():
            self._add_category(category)
            self._add_word(word)
            category_node = self._categories[category]
            word_node = self._words[word]
            if weight == 0:
                category_node.remove_link(word)
                word_node.remove_link(category)
                return
            self._link(category_node, word_node).weight = weight

    # ------------------------------------------------------------------
    # Lock-free internals (callers hold the write lock)
    # ------------------------------------------------------------------

    def _add_category(self, category: Hashable) -> bool:
        if category is None or category in self._categories:
            return False
        self._categories[category] = CategoryNode(category)
        return True

    def _add_word(self, word: str) -> bool:
        if word is None or word in self._words:
            return False
        self._words[word] = WordNode(word)
        return True

    def _add_data_row(self, category: Hashable, unique_words: Optional[Iterable[str]]) -> bool:
        if category is None or unique_words is None or isinstance(unique_words, str):
            return False

        words = {word for word in unique_words if word is not None}

        self._add_category(category)
        category_node = self._categories[category]
        self._total_rows += 1
        category_node.count += 1

        for word in words:
            self._add_word(word)
            word_node = self._words[word]
            word_node.count += 1
            self._link(category_node, word_node).weight += 1

        return True

    def _link(self, category_node: CategoryNode, word_node: WordNode) -> Link:
        """Return the shared link between two nodes, creating it at weight 0."""
        link = category_node.get_link(word_node.value)
        if link is None:
            link = Link(category_node, word_node)
            category_node.add_link(link)
            word_node.add_link(link)
        return link

    def _remove_category(self, category: Hashable) -> Optional[Hashable]:
        if category is None:
            return None
        category_node = self._categories.pop(category, None)
        if category_node is None:
            return None

        self._total_rows -= category_node.count

        orphaned = 0
        for word, link in category_node.links.items():
            word_node = self._words.get(word)
            if word_node is None:
                continue
            word_node.remove_link(category)
            word_node.count = max(0, word_node.count - link.weight)
            if word_node.count == 0 and not word_node.links:
                del self._words[word]
                orphaned += 1

        logger.debug(
            "Removed category %r (%d rows, %d links, %d orphaned words)",
            category, category_node.count, len(category_node.links), orphaned,
        )
        return category_node.value

    def __repr__(self) -> str:
        with self._lock.read_locked():
            return (
                f"GraphStore(total_rows={self._total_rows}, "
                f"categories={len(self._categories)}, words={len(self._words)})"
            )
