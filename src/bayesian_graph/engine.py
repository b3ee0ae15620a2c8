"""Naive Bayes classification over a ``GraphStore``.

For each category ``c`` with ``count(c)`` rows out of ``N`` total, and each
accepted input word ``w``::

    prior(c)      = count(c) / N
    P(w | c)      = count(c, w) / count(c)    if count(c, w) > 0
                  = 1 / N                     otherwise
    score(c)      = prior(c) * prod(P(w | c))

Scores are normalized to sum to one. If no word passes the word filter,
every likelihood is zero and the raw priors are returned instead. With no
trained rows at all, every category gets the same probability.

The engine reads the store through independent calls. Each call is
consistent, but a concurrent writer may land between them; callers that
need one frozen view wrap ``classify`` in ``store.read_locked()``.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable
from typing import Callable, Optional

from .models import Classification

WordFilter = Callable[[str], bool]


def accept_all(word: str) -> bool:
    """Default word filter: every word counts as evidence."""
    return True


def _tie_break_key(category: Hashable) -> tuple[str, str]:
    return (str(category), type(category).__qualname__)


def rank_classifications(
    classifications: Iterable[Classification],
    max_results: int = 0,
) -> list[Classification]:
    """Sort by probability, highest first, and optionally truncate.

    Equal probabilities are ordered by the category's string form and then
    its type name, so the result order is stable across runs.

    Args:
        classifications: Results to rank.
        max_results: Keep only the first ``max_results`` entries when
            positive; keep everything otherwise.
    """
    ranked = sorted(classifications, key=lambda c: _tie_break_key(c.category))
    ranked.sort(key=lambda c: c.probability, reverse=True)
    if max_results > 0:
        return ranked[:max_results]
    return ranked


class ClassificationEngine:
    """Stateless Naive Bayes scorer.

    Example::

        engine = ClassificationEngine(word_filter=is_content_word)
        results = engine.classify(store, {"goal", "the", "ball"}, max_results=3)
        results[0].category      # most likely category
        results[0].probability   # its probability

    Args:
        word_filter: Predicate deciding which input words count as
            evidence. Defaults to ``accept_all``.
    """

    def __init__(self, word_filter: Optional[WordFilter] = None) -> None:
        self._word_filter: WordFilter = word_filter or accept_all

    @property
    def word_filter(self) -> WordFilter:
        return self._word_filter

    def is_word_allowed(self, word: str) -> bool:
        return bool(self._word_filter(word))

    def classify(
        self,
        store,
        words: Optional[Iterable[str]],
        max_results: int = 0,
    ) -> list[Classification]:
        """Rank every category of ``store`` for a set of distinct words.

        Args:
            store: Anything exposing the ``GraphStore`` read methods
                (``unique_categories``, ``total_rows``,
                ``count_rows_with_category``,
                ``count_rows_with_category_and_word``).
            words: Distinct candidate words. ``None`` is treated as empty.
            max_results: Truncate to this many results when positive.

        Returns:
            Classifications ordered from most to least probable. Empty when
            the store has no categories.

        Raises:
            ValueError: If ``words`` is a single string rather than a
                collection of words.
        """
        if isinstance(words, str):
            raise ValueError("Expected a collection of words, got a single string")

        categories = set(store.unique_categories() or ())
        categories.discard(None)
        if not categories:
            return []

        accepted = [word for word in set(words or ()) if self.is_word_allowed(word)]

        total_rows = store.total_rows()
        if total_rows == 0:
            uniform = 1.0 / len(categories)
            return rank_classifications(
                (Classification(category, uniform) for category in categories),
                max_results,
            )

        priors: dict[Hashable, float] = {}
        scores: dict[Hashable, float] = {}
        for category in categories:
            category_rows = store.count_rows_with_category(category)
            prior = category_rows / total_rows
            likelihood = self._likelihood(store, category, category_rows, total_rows, accepted)
            priors[category] = prior
            scores[category] = prior * likelihood

        score_sum = sum(scores.values())
        if score_sum == 0:
            probabilities = priors
        else:
            probabilities = {category: score / score_sum for category, score in scores.items()}

        return rank_classifications(
            (Classification(category, _clamp(p)) for category, p in probabilities.items()),
            max_results,
        )

    @staticmethod
    def _likelihood(
        store,
        category: Hashable,
        category_rows: int,
        total_rows: int,
        words: list[str],
    ) -> float:
        if not words:
            return 0.0
        likelihood = 1.0
        for word in words:
            joint = store.count_rows_with_category_and_word(category, word)
            if joint == 0 or category_rows == 0:
                likelihood *= 1.0 / total_rows
            else:
                likelihood *= joint / category_rows
        return likelihood


def _clamp(probability: float) -> float:
    # Counts read through separate calls can drift under concurrent writes.
    return min(1.0, max(0.0, probability))
