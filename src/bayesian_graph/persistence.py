"""JSON persistence for ``GraphStore`` models.

A model is stored as a single JSON object::

    {
      "rows-count": 6,
      "unique-categories-count": 2,
      "unique-categories": [{"category": "sports", "count": 4}, ...],
      "unique-words-count": 3,
      "unique-words": [{"word": "goal", "count": 3}, ...],
      "links-count": 4,
      "links": [{"category": "sports", "word": "goal", "weight": 3}, ...]
    }

Entry order carries no meaning. Category keys are written with ``str()``
and turned back into keys by a caller-supplied parser on read.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Hashable
from pathlib import Path
from typing import IO, Any, Callable, Optional

from .graph import GraphStore

logger = logging.getLogger(__name__)

CategoryParser = Callable[[str], Hashable]

KEY_ROWS_COUNT = "rows-count"
KEY_UNIQUE_CATEGORIES_COUNT = "unique-categories-count"
KEY_UNIQUE_WORDS_COUNT = "unique-words-count"
KEY_LINKS_COUNT = "links-count"
KEY_UNIQUE_CATEGORIES = "unique-categories"
KEY_UNIQUE_WORDS = "unique-words"
KEY_CATEGORY = "category"
KEY_WORD = "word"
KEY_LINKS = "links"
KEY_WEIGHT = "weight"
KEY_COUNT = "count"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class PersistenceError(Exception):
    """Base class for model read/write failures."""


class ModelFormatError(PersistenceError):
    """The serialized model is malformed or incomplete."""


class ModelStreamError(PersistenceError):
    """The underlying stream could not be read or written."""


class ModelWriteError(PersistenceError):
    """The writer was misused (no model, or a second model)."""


# ---------------------------------------------------------------------------
# Writer
# ---------------------------------------------------------------------------

class JsonModelWriter:
    """Serialize one model to a text stream.

    A writer instance writes at most one model; a second ``write_model``
    call raises ``ModelWriteError``.

    Args:
        stream: Writable text stream.
        indent: ``json.dump`` indentation.
    """

    def __init__(self, stream: IO[str], indent: Optional[int] = 2) -> None:
        if stream is None:
            raise ValueError("Cannot create a JsonModelWriter with a None stream")
        self._stream = stream
        self._indent = indent
        self._json_object: Optional[dict] = None

    @property
    def json_object(self) -> Optional[dict]:
        """The record written by ``write_model``, or ``None`` before it."""
        return self._json_object

    def write_model(self, store: GraphStore) -> None:
        """Write ``store`` to the stream.

        Raises:
            ModelWriteError: If a model was already written or ``store`` is ``None``.
            ModelStreamError: If the stream rejects the write.
        """
        if self._json_object is not None:
            raise ModelWriteError("JsonModelWriter can only write a single model")
        if store is None:
            raise ModelWriteError("Cannot write a None model")

        record = model_to_dict(store)
        try:
            json.dump(record, self._stream, indent=self._indent)
        except (OSError, ValueError) as exc:
            raise ModelStreamError(f"Failed to write model: {exc}") from exc
        self._json_object = record

    def close(self) -> None:
        try:
            self._stream.close()
        except OSError as exc:
            raise ModelStreamError(f"Failed to close model stream: {exc}") from exc

    def __enter__(self) -> "JsonModelWriter":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def model_to_dict(store: GraphStore) -> dict:
    """Build the JSON record for a store.

    The whole record is built under the store's shared lock, so the counts
    are mutually consistent.
    """
    with store.read_locked():
        categories = [
            {KEY_CATEGORY: str(category), KEY_COUNT: store.count_rows_with_category(category)}
            for category in store.unique_categories()
        ]
        words = [
            {KEY_WORD: word, KEY_COUNT: store.count_rows_with_word(word)}
            for word in store.unique_words()
        ]
        links = [
            {KEY_CATEGORY: str(link.category), KEY_WORD: link.word, KEY_WEIGHT: link.weight}
            for link in store.all_links()
        ]
        total_rows = store.total_rows()

    return {
        KEY_ROWS_COUNT: total_rows,
        KEY_UNIQUE_CATEGORIES_COUNT: len(categories),
        KEY_UNIQUE_CATEGORIES: categories,
        KEY_UNIQUE_WORDS_COUNT: len(words),
        KEY_UNIQUE_WORDS: words,
        KEY_LINKS_COUNT: len(links),
        KEY_LINKS: links,
    }


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------

class JsonModelReader:
    """Rebuild a ``GraphStore`` from a text stream written by ``JsonModelWriter``.

    Args:
        stream: Readable text stream.
    """

    def __init__(self, stream: IO[str]) -> None:
        if stream is None:
            raise ValueError("Cannot create a JsonModelReader with a None stream")
        self._stream = stream

    def read_model(self, parser: CategoryParser = str) -> GraphStore:
        """Read and validate a model.

        Args:
            parser: Turns a serialized category string back into a key.

        Raises:
            ModelFormatError: If the content is not a valid model.
            ModelStreamError: If the stream cannot be read.
        """
        if parser is None:
            raise ValueError("Cannot read a model with a None category parser")
        try:
            text = self._stream.read()
        except UnicodeDecodeError as exc:
            raise ModelFormatError(f"Model is not valid UTF-8 text: {exc}") from exc
        except OSError as exc:
            raise ModelStreamError(f"Failed to read model: {exc}") from exc

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ModelFormatError(f"Model is not valid JSON: {exc}") from exc

        return model_from_dict(data, parser)

    def close(self) -> None:
        try:
            self._stream.close()
        except OSError as exc:
            raise ModelStreamError(f"Failed to close model stream: {exc}") from exc

    def __enter__(self) -> "JsonModelReader":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def model_from_dict(data: Any, parser: CategoryParser = str) -> GraphStore:
    """Build a new store from a parsed JSON record.

    Raises:
        ModelFormatError: If a field is missing, mistyped or negative, the
            parser rejects a category, or the counts contradict each other.
    """
    if not isinstance(data, dict):
        raise ModelFormatError("Model root must be a JSON object")

    store = GraphStore()
    try:
        declared = {
            KEY_UNIQUE_CATEGORIES_COUNT: _count(data, KEY_UNIQUE_CATEGORIES_COUNT),
            KEY_UNIQUE_WORDS_COUNT: _count(data, KEY_UNIQUE_WORDS_COUNT),
            KEY_LINKS_COUNT: _count(data, KEY_LINKS_COUNT),
        }
        store.set_total_rows(_count(data, KEY_ROWS_COUNT))
        for entry in _entries(data, KEY_UNIQUE_CATEGORIES):
            store.set_category_count(
                _parse_category(parser, _string(entry, KEY_CATEGORY)),
                _count(entry, KEY_COUNT),
            )
        for entry in _entries(data, KEY_UNIQUE_WORDS):
            store.set_word_count(_string(entry, KEY_WORD), _count(entry, KEY_COUNT))
        for entry in _entries(data, KEY_LINKS):
            store.set_link_weight(
                _parse_category(parser, _string(entry, KEY_CATEGORY)),
                _string(entry, KEY_WORD),
                _count(entry, KEY_WEIGHT),
            )
    except KeyError as exc:
        raise ModelFormatError(f"Model is missing required field {exc}") from exc
    _check_consistency(store, declared)
    return store


def _check_consistency(store: GraphStore, declared: dict[str, int]) -> None:
    """Reject a hydrated store whose counts break the graph invariants."""
    categories = store.unique_categories()
    words = store.unique_words()
    links = store.all_links()

    actual = {
        KEY_UNIQUE_CATEGORIES_COUNT: len(categories),
        KEY_UNIQUE_WORDS_COUNT: len(words),
        KEY_LINKS_COUNT: len(links),
    }
    for key, expected in declared.items():
        if actual[key] != expected:
            raise ModelFormatError(
                f"Field '{key}' declares {expected} but the model holds {actual[key]}"
            )

    category_total = sum(store.count_rows_with_category(c) for c in categories)
    if store.total_rows() != category_total:
        raise ModelFormatError(
            f"Field '{KEY_ROWS_COUNT}' is {store.total_rows()} but category counts sum to {category_total}"
        )

    word_weights: dict[str, int] = {}
    for link in links:
        if link.weight > store.count_rows_with_category(link.category):
            raise ModelFormatError(
                f"Link {link.category!r}/{link.word!r} has weight {link.weight} "
                f"above its category count"
            )
        word_weights[link.word] = word_weights.get(link.word, 0) + link.weight

    for word in words:
        count = store.count_rows_with_word(word)
        if count != word_weights.get(word, 0):
            raise ModelFormatError(
                f"Word {word!r} has count {count} but its links weigh {word_weights.get(word, 0)}"
            )


def _entries(data: dict, key: str) -> list[dict]:
    entries = data[key]
    if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
        raise ModelFormatError(f"Field '{key}' must be a list of objects")
    return entries


def _count(data: dict, key: str) -> int:
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ModelFormatError(f"Field '{key}' must be an integer, got {value!r}")
    if value < 0:
        raise ModelFormatError(f"Field '{key}' cannot be negative, got {value}")
    return value


def _string(data: dict, key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise ModelFormatError(f"Field '{key}' must be a string, got {value!r}")
    return value


def _parse_category(parser: CategoryParser, raw: str) -> Hashable:
    try:
        category = parser(raw)
    except Exception as exc:
        raise ModelFormatError(f"Cannot parse category {raw!r}: {exc}") from exc
    if category is None:
        raise ModelFormatError(f"Category parser returned None for {raw!r}")
    return category


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------

def save_model(store: GraphStore, path: str | Path) -> None:
    """Save a store to a JSON file, creating parent directories.

    Raises:
        ModelWriteError: If ``store`` is ``None``.
        ModelStreamError: If the file cannot be written.
    """
    if store is None:
        raise ModelWriteError("Cannot write a None model")
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            JsonModelWriter(f).write_model(store)
    except OSError as exc:
        raise ModelStreamError(f"Cannot write model to {path}: {exc}") from exc
    logger.info("Saved model to %s", path)


def load_model(path: str | Path, parser: CategoryParser = str) -> GraphStore:
    """Load a store from a JSON file.

    Raises:
        ModelStreamError: If the file cannot be opened or read.
        ModelFormatError: If the file is not a valid model.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            store = JsonModelReader(f).read_model(parser)
    except OSError as exc:
        raise ModelStreamError(f"Cannot read model from {path}: {exc}") from exc
    logger.info("Loaded model from %s: %r", path, store)
    return store
