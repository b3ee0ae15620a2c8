"""Data models for the Bayesian counting graph.

The graph is made of ``CategoryNode`` and ``WordNode`` objects joined by
``Link`` objects. A single ``Link`` instance is referenced from both of the
nodes it connects, so the weight seen from the category side and from the
word side is always the same value.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .text import tokenize


class CategoryNode:
    """A category in the counting graph.

    Attributes:
        value: The category key. Never ``None``.
        count: Number of trained rows labeled with this category.
        links: Outgoing edges keyed by word.
    """

    def __init__(self, value: Hashable) -> None:
        self._value: Hashable = None
        self.value = value
        self.count = 0
        self.links: dict[str, Link] = {}

    @property
    def value(self) -> Hashable:
        return self._value

    @value.setter
    def value(self, value: Hashable) -> None:
        if value is None:
            raise ValueError("A node cannot have a None value")
        self._value = value

    def get_link(self, word: str) -> Optional[Link]:
        return self.links.get(word)

    def add_link(self, link: Link) -> None:
        """Attach a link, replacing any existing link to the same word.

        Raises:
            ValueError: If the link is ``None`` or belongs to another category.
        """
        if link is None:
            raise ValueError("Category node cannot add a None link")
        if link.category_node is not self:
            raise ValueError("Category node cannot add a link that points to a different category node")
        self.links[link.word_node.value] = link

    def remove_link(self, word: str) -> Optional[Link]:
        return self.links.pop(word, None)

    def link_strength(self, word: str) -> int:
        """Weight of the link to ``word``, or 0 when there is none."""
        link = self.links.get(word)
        return link.weight if link is not None else 0

    @property
    def link_weight_total(self) -> int:
        return sum(link.weight for link in self.links.values())

    def __repr__(self) -> str:
        return f"CategoryNode(value={self._value!r}, count={self.count}, links={len(self.links)})"


class WordNode:
    """A distinct word in the counting graph.

    Attributes:
        value: The word. Never ``None``.
        count: Number of trained rows containing this word.
        links: Outgoing edges keyed by category key.
    """

    def __init__(self, value: str) -> None:
        self._value: str = ""
        self.value = value
        self.count = 0
        self.links: dict[Hashable, Link] = {}

    @property
    def value(self) -> str:
        return self._value

    @value.setter
    def value(self, value: str) -> None:
        if value is None:
            raise ValueError("A node cannot have a None value")
        self._value = value

    def get_link(self, category: Hashable) -> Optional[Link]:
        return self.links.get(category)

    def add_link(self, link: Link) -> None:
        if link is None:
            raise ValueError("Word node cannot add a None link")
        if link.word_node is not self:
            raise ValueError("Word node cannot add a link that points to a different word node")
        self.links[link.category_node.value] = link

    def remove_link(self, category: Hashable) -> Optional[Link]:
        return self.links.pop(category, None)

    def link_strength(self, category: Hashable) -> int:
        link = self.links.get(category)
        return link.weight if link is not None else 0

    @property
    def link_weight_total(self) -> int:
        return sum(link.weight for link in self.links.values())

    def __repr__(self) -> str:
        return f"WordNode(value={self._value!r}, count={self.count}, links={len(self.links)})"


class Link:
    """Weighted edge between one category node and one word node."""

    def __init__(self, category_node: CategoryNode, word_node: WordNode, weight: int = 0) -> None:
        if category_node is None:
            raise ValueError("Link cannot have a None category node")
        if word_node is None:
            raise ValueError("Link cannot have a None word node")
        self._category_node = category_node
        self._word_node = word_node
        self._weight = 0
        self.weight = weight

    @property
    def category_node(self) -> CategoryNode:
        return self._category_node

    @property
    def word_node(self) -> WordNode:
        return self._word_node

    @property
    def category(self) -> Hashable:
        return self._category_node.value

    @property
    def word(self) -> str:
        return self._word_node.value

    @property
    def weight(self) -> int:
        return self._weight

    @weight.setter
    def weight(self, weight: int) -> None:
        if weight < 0:
            raise ValueError("Link weight cannot be a negative number")
        self._weight = weight

    def view(self) -> LinkView:
        return LinkView(category=self.category, word=self.word, weight=self._weight)

    def __repr__(self) -> str:
        return f"Link(category={self.category!r}, word={self.word!r}, weight={self._weight})"


@dataclass(frozen=True)
class LinkView:
    """Read-only snapshot of a link, safe to hand out of the store."""

    category: Hashable
    word: str
    weight: int

    def to_dict(self) -> dict:
        return {"category": self.category, "word": self.word, "weight": self.weight}


@dataclass(frozen=True)
class Classification:
    """A ranked classification result.

    Raises:
        ValueError: If ``category`` is ``None`` or ``probability`` is
            outside ``[0.0, 1.0]``.
    """

    category: Hashable
    probability: float

    def __post_init__(self) -> None:
        if self.category is None:
            raise ValueError("Cannot create a Classification with a None category")
        if not 0.0 <= self.probability <= 1.0:
            raise ValueError(
                f"Cannot create a Classification with a probability outside of [0.0, 1.0]: {self.probability}"
            )

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "probability": round(self.probability, 4),
        }


@dataclass
class SentenceInput:
    """A sentence to classify, reduced to its set of distinct words."""

    unique_words: Optional[frozenset[str]]
    sentence: str = ""

    @classmethod
    def from_text(
        cls,
        text: str,
        tokenizer: Callable[[str], list[str]] = tokenize,
    ) -> "SentenceInput":
        return cls(unique_words=frozenset(tokenizer(text)), sentence=text)


@dataclass
class DataRow:
    """A labeled training row: one category and the distinct words of its text.

    Attributes:
        category: The row label. Rows with a ``None`` category are rejected
            by the graph.
        unique_words: Distinct words of the row. An empty set is a valid
            wordless row; ``None`` is rejected.
        sentence: Original text, when known.
        row_id: Caller-assigned identifier.
        metadata: Free-form extra fields.
    """

    category: Any
    unique_words: Optional[Iterable[str]]
    sentence: str = ""
    row_id: int = 0
    metadata: dict = field(default_factory=dict)

    @classmethod
    def from_text(
        cls,
        category: Any,
        text: str,
        row_id: int = 0,
        tokenizer: Callable[[str], list[str]] = tokenize,
    ) -> "DataRow":
        return cls(
            category=category,
            unique_words=frozenset(tokenizer(text)),
            sentence=text,
            row_id=row_id,
        )
