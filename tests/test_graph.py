"""Tests for GraphStore mutations, reads, invariants and thread safety."""

from __future__ import annotations

import random
import threading

import pytest

from bayesian_graph.graph import GraphStore
from bayesian_graph.models import DataRow, LinkView

from conftest import assert_invariants


@pytest.fixture
def store() -> GraphStore:
    return GraphStore()


# ---------------------------------------------------------------------------
# Categories and words
# ---------------------------------------------------------------------------


class TestCategories:
    """Tests for add/remove category operations."""

    def test_add_category_twice(self, store: GraphStore) -> None:
        assert store.add_category("sports") is True
        assert store.add_category("sports") is False
        assert store.count_rows_with_category("sports") == 0
        assert store.unique_categories() == frozenset({"sports"})

    def test_duplicate_add_keeps_count(self, store: GraphStore) -> None:
        store.add_data_row("sports", {"goal"})
        assert store.add_category("sports") is False
        assert store.count_rows_with_category("sports") == 1

    def test_add_none_category(self, store: GraphStore) -> None:
        assert store.add_category(None) is False
        assert store.unique_categories() == frozenset()

    def test_add_categories_counts_new_only(self, store: GraphStore) -> None:
        store.add_category("a")
        assert store.add_categories(["a", "b", "c", "b", None]) == 2
        assert store.unique_categories() == frozenset({"a", "b", "c"})

    def test_add_categories_none(self, store: GraphStore) -> None:
        assert store.add_categories(None) == 0

    def test_non_string_keys(self, store: GraphStore) -> None:
        assert store.add_category(1) is True
        store.add_data_row(2, {"x"})
        assert store.unique_categories() == frozenset({1, 2})
        assert store.count_rows_with_category_and_word(2, "x") == 1

    def test_remove_missing_category(self, store: GraphStore) -> None:
        assert store.remove_category("missing") is None
        assert store.remove_category(None) is None

    def test_remove_empty_category(self, store: GraphStore) -> None:
        store.add_category("a")
        assert store.remove_category("a") == "a"
        assert store.unique_categories() == frozenset()

    def test_remove_categories_preserves_order(self, trained_store: GraphStore) -> None:
        removed = trained_store.remove_categories(["tech", None, "missing", "sports", "tech"])
        assert removed == ["tech", "sports"]
        assert trained_store.unique_categories() == frozenset({"politics"})
        assert_invariants(trained_store)

    def test_remove_categories_none(self, store: GraphStore) -> None:
        assert store.remove_categories(None) == []


class TestWords:
    """Tests for add_word / add_words."""

    def test_add_word_twice(self, store: GraphStore) -> None:
        assert store.add_word("goal") is True
        assert store.add_word("goal") is False
        assert store.count_rows_with_word("goal") == 0

    def test_add_words_does_not_touch_rows(self, store: GraphStore) -> None:
        assert store.add_words(["a", "b", "a", None]) == 2
        assert store.total_rows() == 0
        assert store.all_links() == []

    def test_add_words_none(self, store: GraphStore) -> None:
        assert store.add_words(None) == 0

    def test_add_none_word(self, store: GraphStore) -> None:
        assert store.add_word(None) is False


# ---------------------------------------------------------------------------
# Training rows
# ---------------------------------------------------------------------------


class TestDataRows:
    """Tests for add_data_row / add_data_rows."""

    def test_add_data_row_counts(self, store: GraphStore) -> None:
        assert store.add_data_row("sports", {"goal", "team"}) is True
        assert store.add_data_row("sports", {"goal"}) is True
        assert store.add_data_row("politics", {"vote", "team"}) is True

        assert store.total_rows() == 3
        assert store.count_rows_with_category("sports") == 2
        assert store.count_rows_with_word("goal") == 2
        assert store.count_rows_with_word("team") == 2
        assert store.count_rows_with_category_and_word("sports", "goal") == 2
        assert store.count_rows_with_category_and_word("politics", "team") == 1
        assert store.count_rows_with_category_and_word("politics", "goal") == 0
        assert_invariants(store)

    def test_category_count_bounds_each_link(self, store: GraphStore) -> None:
        store.add_data_row("sports", {"goal", "team"})
        store.add_data_row("sports", {"goal"})
        weights = sum(link.weight for link in store.all_links())
        assert store.count_rows_with_category("sports") == 2
        assert weights == 3
        assert max(link.weight for link in store.all_links()) <= 2
        assert_invariants(store)

    def test_single_word_rows_bound_link_sum(self, store: GraphStore) -> None:
        store.add_data_row("a", {"x"})
        store.add_data_row("a", {"y"})
        store.add_data_row("a", set())
        weights = sum(link.weight for link in store.all_links())
        assert store.count_rows_with_category("a") >= weights

    def test_wordless_row(self, store: GraphStore) -> None:
        assert store.add_data_row("empty", set()) is True
        assert store.total_rows() == 1
        assert store.count_rows_with_category("empty") == 1
        assert store.all_links() == []
        assert_invariants(store)

    @pytest.mark.parametrize("category,words", [(None, {"a"}), ("a", None), ("a", "word")])
    def test_invalid_row_rejected(self, store: GraphStore, category, words) -> None:
        assert store.add_data_row(category, words) is False
        assert store.total_rows() == 0
        assert store.unique_categories() == frozenset()

    def test_duplicate_words_counted_once(self, store: GraphStore) -> None:
        store.add_data_row("a", ["x", "x", "y"])
        assert store.count_rows_with_word("x") == 1
        assert store.count_rows_with_category_and_word("a", "x") == 1
        assert_invariants(store)

    def test_none_words_skipped(self, store: GraphStore) -> None:
        store.add_data_row("a", {"x", None})
        assert store.unique_words() == frozenset({"x"})

    def test_add_data_rows_skips_invalid(self, store: GraphStore) -> None:
        rows = [
            DataRow("a", {"x"}),
            None,
            DataRow(None, {"y"}),
            DataRow("b", None),
            DataRow("b", frozenset()),
        ]
        assert store.add_data_rows(rows) == 2
        assert store.total_rows() == 2
        assert store.unique_words() == frozenset({"x"})

    def test_add_data_rows_skips_rows_without_attributes(self, store: GraphStore) -> None:
        rows = [DataRow("a", {"x"}), ("b", {"y"}), {"category": "c"}, DataRow("d", {"z"})]
        assert store.add_data_rows(rows) == 2
        assert store.unique_categories() == frozenset({"a", "d"})
        assert_invariants(store)

    def test_add_data_rows_none(self, store: GraphStore) -> None:
        assert store.add_data_rows(None) == 0

    def test_row_conservation_random(self, store: GraphStore) -> None:
        rng = random.Random(7)
        vocabulary = [f"w{i}" for i in range(30)]
        added = 0
        for _ in range(300):
            category = rng.choice(["a", "b", "c", "d", None])
            words = set(rng.sample(vocabulary, rng.randint(0, 6)))
            if store.add_data_row(category, words):
                added += 1
        assert store.total_rows() == added
        assert_invariants(store)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


class TestReads:
    """Tests for read accessors."""

    def test_counts_for_absent_keys(self, store: GraphStore) -> None:
        assert store.count_rows_with_category("missing") == 0
        assert store.count_rows_with_word("missing") == 0
        assert store.count_rows_with_category_and_word("missing", "missing") == 0
        assert store.count_rows_with_category(None) == 0
        assert store.count_rows_with_word(None) == 0
        assert store.count_rows_with_category_and_word(None, None) == 0

    def test_unique_sets_are_snapshots(self, store: GraphStore) -> None:
        store.add_category("a")
        snapshot = store.unique_categories()
        store.add_category("b")
        assert snapshot == frozenset({"a"})

    def test_all_links(self, abc_store: GraphStore) -> None:
        links = abc_store.all_links()
        assert len(links) == 6
        assert all(isinstance(link, LinkView) for link in links)
        assert LinkView("c", "tre", 3) in links
        assert LinkView("b", "one", 2) in links

    def test_all_links_category_major(self, abc_store: GraphStore) -> None:
        categories = [link.category for link in abc_store.all_links()]
        seen: list = []
        for category in categories:
            if not seen or seen[-1] != category:
                assert category not in seen
                seen.append(category)

    def test_read_locked_allows_nested_reads(self, trained_store: GraphStore) -> None:
        with trained_store.read_locked() as locked:
            assert locked is trained_store
            assert locked.total_rows() == 6
            assert "sports" in locked.unique_categories()

    def test_repr(self, abc_store: GraphStore) -> None:
        assert repr(abc_store) == "GraphStore(total_rows=6, categories=3, words=3)"


# ---------------------------------------------------------------------------
# Removal cascade
# ---------------------------------------------------------------------------


class TestRemovalCascade:
    """Removing a category removes its rows, links and orphaned words."""

    def test_cascade(self, store: GraphStore) -> None:
        store.add_data_row("a", {"shared", "only_a"})
        store.add_data_row("a", {"shared"})
        store.add_data_row("b", {"shared", "only_b"})
        store.add_data_row("b", set())

        assert store.remove_category("a") == "a"

        assert store.total_rows() == 2
        assert store.unique_categories() == frozenset({"b"})
        assert store.unique_words() == frozenset({"shared", "only_b"})
        assert store.count_rows_with_word("shared") == 1
        assert store.count_rows_with_category_and_word("a", "shared") == 0
        assert {link.category for link in store.all_links()} == {"b"}
        assert_invariants(store)

    def test_remove_everything(self, trained_store: GraphStore) -> None:
        trained_store.remove_categories(list(trained_store.unique_categories()))
        assert trained_store.total_rows() == 0
        assert trained_store.unique_words() == frozenset()
        assert trained_store.all_links() == []

    def test_standalone_word_survives(self, store: GraphStore) -> None:
        store.add_word("lonely")
        store.add_data_row("a", {"x"})
        store.remove_category("a")
        assert store.unique_words() == frozenset({"lonely"})

    def test_readding_after_removal(self, store: GraphStore) -> None:
        store.add_data_row("a", {"x"})
        store.remove_category("a")
        store.add_data_row("a", {"x"})
        assert store.count_rows_with_category_and_word("a", "x") == 1
        assert store.count_rows_with_word("x") == 1
        assert_invariants(store)


# ---------------------------------------------------------------------------
# Hydration
# ---------------------------------------------------------------------------


class TestHydration:
    """Tests for the set_* methods used by model readers."""

    def test_rebuild_from_counts(self, store: GraphStore) -> None:
        store.set_total_rows(3)
        store.set_category_count("a", 2)
        store.set_category_count("b", 1)
        store.set_word_count("x", 2)
        store.set_link_weight("a", "x", 1)
        store.set_link_weight("b", "x", 1)

        assert store.total_rows() == 3
        assert store.count_rows_with_category_and_word("a", "x") == 1
        assert_invariants(store)

    def test_set_link_weight_overwrites(self, store: GraphStore) -> None:
        store.set_link_weight("a", "x", 1)
        store.set_link_weight("a", "x", 4)
        assert store.count_rows_with_category_and_word("a", "x") == 4
        assert len(store.all_links()) == 1

    def test_zero_weight_removes_link(self, store: GraphStore) -> None:
        store.set_link_weight("a", "x", 2)
        store.set_link_weight("a", "x", 0)
        store.set_link_weight("b", "y", 0)
        assert store.all_links() == []
        assert store.count_rows_with_category_and_word("a", "x") == 0

    def test_invalid_values_ignored(self, store: GraphStore) -> None:
        store.set_total_rows(-1)
        store.set_category_count(None, 3)
        store.set_category_count("a", -1)
        store.set_word_count(None, 1)
        store.set_link_weight("a", None, 1)
        store.set_link_weight("a", "x", -2)
        assert store.total_rows() == 0
        assert store.unique_categories() == frozenset()
        assert store.unique_words() == frozenset()


# ---------------------------------------------------------------------------
# Thread safety
# ---------------------------------------------------------------------------


class TestConcurrency:
    """Concurrent writers and readers keep the invariants."""

    def test_concurrent_training_conserves_rows(self, store: GraphStore) -> None:
        def worker(seed: int) -> None:
            rng = random.Random(seed)
            for _ in range(200):
                category = rng.choice(["a", "b", "c"])
                store.add_data_row(category, {f"w{rng.randint(0, 9)}" for _ in range(3)})

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.total_rows() == 8 * 200
        assert_invariants(store)

    def test_reads_during_writes(self, store: GraphStore) -> None:
        errors: list[str] = []
        done = threading.Event()

        def writer() -> None:
            for i in range(500):
                store.add_data_row("a" if i % 2 else "b", {"x", f"y{i % 5}"})
            done.set()

        def reader() -> None:
            while not done.is_set():
                with store.read_locked():
                    total = store.total_rows()
                    counted = sum(
                        store.count_rows_with_category(c) for c in store.unique_categories()
                    )
                if total != counted:
                    errors.append(f"{total} != {counted}")

        threads = [threading.Thread(target=writer)] + [
            threading.Thread(target=reader) for _ in range(3)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert store.total_rows() == 500
