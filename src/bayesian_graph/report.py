"""Accuracy and confusion-matrix reporting over a ``BayesianSystem``.

Both calculators only use the public classification contract: each labeled
row is classified, its top-ranked category is compared with the row's own
category, and running counts are kept. Rows that are ``None`` or that get
an empty classification list are skipped.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Hashable, Iterable
from typing import Optional

from .locking import ReadWriteLock
from .models import DataRow
from .system import BayesianSystem

_CORNER_LABEL = "actual \\ predicted"


class AccuracyCalculator:
    """Running top-1 accuracy of a system over labeled rows.

    Example::

        calc = AccuracyCalculator(system)
        calc.calculate_accuracy(test_rows)   # 0.83
        calc.correct_count, calc.total_count # (5, 6)

    Raises:
        ValueError: If ``system`` is ``None``.
    """

    def __init__(self, system: BayesianSystem) -> None:
        self._lock = ReadWriteLock()
        self._system: BayesianSystem
        self._total = 0
        self._correct = 0
        self.set_system(system)

    def set_system(self, system: BayesianSystem) -> None:
        if system is None:
            raise ValueError("AccuracyCalculator cannot use a None system")
        with self._lock.write_locked():
            self._system = system

    def calculate_accuracy(
        self,
        rows: Optional[Iterable[Optional[DataRow]]],
        clean_slate: bool = True,
    ) -> float:
        """Classify ``rows`` and fold the outcomes into the running counts.

        Args:
            rows: Labeled rows to check.
            clean_slate: Reset counts before counting these rows.

        Returns:
            Accuracy over every row counted so far.
        """
        with self._lock.write_locked():
            if clean_slate:
                self._reset_counts()
            for row in rows or ():
                if row is None:
                    continue
                classifications = self._system.classify_row(row)
                if not classifications:
                    continue
                predicted = classifications[0].category
                self._total += 1
                if predicted == row.category:
                    self._correct += 1
                self._record(row.category, predicted)
            return self._accuracy()

    @property
    def accuracy(self) -> float:
        with self._lock.read_locked():
            return self._accuracy()

    @property
    def correct_count(self) -> int:
        with self._lock.read_locked():
            return self._correct

    @property
    def incorrect_count(self) -> int:
        with self._lock.read_locked():
            return self._total - self._correct

    @property
    def total_count(self) -> int:
        with self._lock.read_locked():
            return self._total

    def reset_counts(self) -> None:
        with self._lock.write_locked():
            self._reset_counts()

    def to_dict(self) -> dict:
        with self._lock.read_locked():
            return {
                "accuracy": round(self._accuracy(), 4),
                "correct": self._correct,
                "incorrect": self._total - self._correct,
                "total": self._total,
            }

    # Callers of the underscore methods hold the lock.

    def _accuracy(self) -> float:
        return self._correct / self._total if self._total else 0.0

    def _reset_counts(self) -> None:
        self._total = 0
        self._correct = 0

    def _record(self, actual: Hashable, predicted: Hashable) -> None:
        """Hook for subclasses that keep per-category tallies."""


class ConfusionMatrix(AccuracyCalculator):
    """Accuracy calculator that also counts (actual, predicted) pairs."""

    def __init__(self, system: BayesianSystem) -> None:
        self._matrix: dict[Hashable, dict[Hashable, int]] = defaultdict(lambda: defaultdict(int))
        super().__init__(system)

    def cell_count(self, actual: Hashable, classified: Hashable) -> int:
        """Rows labeled ``actual`` whose top classification was ``classified``."""
        with self._lock.read_locked():
            row = self._matrix.get(actual)
            return row.get(classified, 0) if row is not None else 0

    def categories(self) -> list[Hashable]:
        """Every category seen as an actual or a predicted label."""
        with self._lock.read_locked():
            return self._categories()

    def to_dict(self) -> dict:
        result = super().to_dict()
        with self._lock.read_locked():
            labels = self._categories()
            result["confusion_matrix"] = {
                str(actual): {
                    str(predicted): self._matrix.get(actual, {}).get(predicted, 0)
                    for predicted in labels
                }
                for actual in labels
            }
        return result

    def summary(self) -> str:
        """Human-readable accuracy line and matrix table."""
        with self._lock.read_locked():
            labels = self._categories()
            lines = [
                f"Accuracy: {self._accuracy():.2%} ({self._correct}/{self._total})",
                "",
                f"{_CORNER_LABEL:<20} " + " ".join(f"{str(p):>10}" for p in labels),
                "-" * (21 + 11 * len(labels)),
            ]
            for actual in labels:
                row = self._matrix.get(actual, {})
                lines.append(
                    f"{str(actual):<20} " + " ".join(f"{row.get(p, 0):>10}" for p in labels)
                )
            return "\n".join(lines)

    def _categories(self) -> list[Hashable]:
        seen = set(self._matrix)
        for row in self._matrix.values():
            seen.update(row)
        return sorted(seen, key=lambda c: (str(c), type(c).__qualname__))

    def _reset_counts(self) -> None:
        super()._reset_counts()
        self._matrix.clear()

    def _record(self, actual: Hashable, predicted: Hashable) -> None:
        self._matrix[actual][predicted] += 1
