"""Shared test fixtures for bayesian-graph tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from bayesian_graph.graph import GraphStore
from bayesian_graph.models import DataRow


def assert_invariants(store: GraphStore) -> None:
    """Check the model-wide count invariants of a store."""
    links = store.all_links()
    categories = store.unique_categories()
    words = store.unique_words()

    assert None not in categories
    assert None not in words
    assert store.total_rows() == sum(store.count_rows_with_category(c) for c in categories)

    for link in links:
        assert link.weight <= store.count_rows_with_category(link.category)

    for word in words:
        weights = sum(l.weight for l in links if l.word == word)
        assert store.count_rows_with_word(word) == weights

    for link in links:
        assert link.weight > 0
        assert link.category in categories
        assert link.word in words


@pytest.fixture
def news_rows() -> list[DataRow]:
    """Small labeled corpus with distinctive vocabulary per category."""
    return [
        DataRow.from_text("sports", "The striker scored a late goal in the final", row_id=1),
        DataRow.from_text("sports", "The keeper saved a penalty and the team won the match", row_id=2),
        DataRow.from_text("sports", "Fans cheered as the team lifted the trophy", row_id=3),
        DataRow.from_text("politics", "The senate vote on the budget bill was delayed", row_id=4),
        DataRow.from_text("politics", "The minister announced a new election date", row_id=5),
        DataRow.from_text("tech", "The new phone ships with a faster chip and better camera", row_id=6),
    ]


@pytest.fixture
def trained_store(news_rows: list[DataRow]) -> GraphStore:
    store = GraphStore()
    store.add_data_rows(news_rows)
    return store


@pytest.fixture
def abc_store() -> GraphStore:
    """Store with categories a:1, b:2, c:3 rows over the words one/two/tre.

    Joint counts:
        a: one=1
        b: one=2, tre=1
        c: one=1, two=1, tre=3
    """
    store = GraphStore()
    store.add_data_row("a", {"one"})
    store.add_data_row("b", {"one", "tre"})
    store.add_data_row("b", {"one"})
    store.add_data_row("c", {"one", "two", "tre"})
    store.add_data_row("c", {"tre"})
    store.add_data_row("c", {"tre"})
    return store


@pytest.fixture
def news_tsv(tmp_path: Path) -> Path:
    """Tab-separated training file for CLI tests."""
    file = tmp_path / "news.tsv"
    file.write_text(
        "# category<TAB>text\n"
        "sports\tThe striker scored a late goal in the final\n"
        "sports\tThe keeper saved a penalty and the team won the match\n"
        "politics\tThe senate vote on the budget bill was delayed\n"
        "\n"
        "politics\tThe minister announced a new election date\n",
        encoding="utf-8",
    )
    return file
