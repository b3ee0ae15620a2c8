"""Command-line interface for the Bayesian graph classifier.

Provides ``train``, ``classify``, ``evaluate``, ``inspect`` and ``forget``
commands with rich terminal output using the ``click`` and ``rich``
libraries. The model file comes from ``--model``, the
``BAYESIAN_GRAPH_MODEL`` environment variable, or a ``.env`` file.

Training and evaluation data are plain text files with one labeled row per
line: the category, a tab, then the text.

Usage::

    bayesian-graph train news.tsv
    bayesian-graph classify "the striker scored a late goal" --top 3
    bayesian-graph evaluate holdout.tsv
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .graph import GraphStore
from .models import DataRow, SentenceInput
from .persistence import PersistenceError, load_model, save_model
from .report import ConfusionMatrix
from .system import BayesianSystem
from .text import is_content_word

console = Console()
logger = logging.getLogger(__name__)

DEFAULT_MODEL_PATH = "model.json"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def read_rows(path: Path) -> list[DataRow]:
    """Parse ``category<TAB>text`` lines into data rows.

    Blank lines and lines starting with ``#`` are ignored.

    Raises:
        click.BadParameter: If the file is not UTF-8 text or a line has no
            tab separator.
        click.FileError: If the file cannot be read.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            lines = f.readlines()
    except UnicodeDecodeError as e:
        raise click.BadParameter(f"not valid UTF-8 text ({e.reason})", param_hint=str(path)) from e
    except OSError as e:
        raise click.FileError(str(path), hint=e.strerror or str(e)) from e

    rows: list[DataRow] = []
    for line_no, line in enumerate(lines, 1):
        line = line.rstrip("\n")
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        category, sep, text = line.partition("\t")
        if not sep or not category.strip():
            raise click.BadParameter(
                f"line {line_no}: expected 'category<TAB>text'", param_hint=str(path)
            )
        rows.append(DataRow.from_text(category.strip(), text, row_id=line_no))
    return rows


def _load_or_exit(model: Path) -> GraphStore:
    try:
        return load_model(model)
    except PersistenceError as e:
        console.print(f"[bold red]Error:[/] {e}")
        sys.exit(1)


def _save_or_exit(store: GraphStore, model: Path) -> None:
    try:
        save_model(store, model)
    except PersistenceError as e:
        console.print(f"[bold red]Error:[/] {e}")
        sys.exit(1)


@click.group()
@click.version_option(package_name="bayesian-graph")
@click.option("--model", "-m", type=click.Path(path_type=Path), envvar="BAYESIAN_GRAPH_MODEL",
              default=DEFAULT_MODEL_PATH, show_default=True, help="Model JSON file.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, model: Path, verbose: bool) -> None:
    """Naive Bayes text classifier backed by a word/category counting graph."""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["model"] = model


# ``.env`` must be loaded before click resolves ``envvar`` defaults.
def run() -> None:
    load_dotenv()
    main(obj={})


@main.command()
@click.argument("data", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--fresh", is_flag=True, help="Ignore any existing model and start empty.")
@click.pass_context
def train(ctx: click.Context, data: Path, fresh: bool) -> None:
    """Train the model on a file of labeled rows.

    Example: bayesian-graph train news.tsv
    """
    model: Path = ctx.obj["model"]
    store = GraphStore() if fresh or not model.exists() else _load_or_exit(model)
    system = BayesianSystem(store)

    rows = read_rows(data)
    added = system.train_on_rows(rows)
    _save_or_exit(store, model)

    console.print(Panel(
        f"Rows trained: [bold]{added}[/] of {len(rows)}\n"
        f"Total rows: {store.total_rows()} | "
        f"Categories: {len(store.unique_categories())} | "
        f"Words: {len(store.unique_words())}",
        title=f"Model saved to {model}",
        border_style="blue",
    ))


@main.command()
@click.argument("text")
@click.option("--top", "-n", type=int, default=0, help="Show only the N most likely categories.")
@click.option("--stop-words/--no-stop-words", default=False,
              help="Ignore English stop words when weighing evidence.")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
@click.pass_context
def classify(ctx: click.Context, text: str, top: int, stop_words: bool, output: str) -> None:
    """Rank categories for a piece of text.

    Example: bayesian-graph classify "a late goal" --top 3
    """
    store = _load_or_exit(ctx.obj["model"])
    system = BayesianSystem(store, word_filter=is_content_word if stop_words else None)
    results = system.classify_row(SentenceInput.from_text(text), max_results=top)

    if output == "json":
        click.echo(json.dumps([r.to_dict() for r in results], indent=2))
        return

    if not results:
        console.print("[yellow]The model has no categories.[/]")
        return

    table = Table(title="Classification", show_lines=False)
    table.add_column("#", justify="right", width=4)
    table.add_column("Category", style="cyan")
    table.add_column("Probability", justify="right")
    for i, result in enumerate(results, 1):
        probability = f"{result.probability:.2%}"
        if i == 1:
            probability = f"[bold green]{probability}[/]"
        table.add_row(str(i), str(result.category), probability)
    console.print(table)


@main.command()
@click.argument("data", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--stop-words/--no-stop-words", default=False,
              help="Ignore English stop words when weighing evidence.")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
@click.pass_context
def evaluate(ctx: click.Context, data: Path, stop_words: bool, output: str) -> None:
    """Measure accuracy and the confusion matrix on labeled rows.

    Example: bayesian-graph evaluate holdout.tsv
    """
    store = _load_or_exit(ctx.obj["model"])
    system = BayesianSystem(store, word_filter=is_content_word if stop_words else None)
    matrix = ConfusionMatrix(system)
    matrix.calculate_accuracy(read_rows(data))

    if output == "json":
        click.echo(json.dumps(matrix.to_dict(), indent=2))
        return

    _render_matrix(matrix)


@main.command()
@click.pass_context
def inspect(ctx: click.Context) -> None:
    """Show per-category and overall model counts."""
    store = _load_or_exit(ctx.obj["model"])

    with store.read_locked():
        total = store.total_rows()
        table = Table(title=f"Model — {ctx.obj['model']}", show_lines=False)
        table.add_column("Category", style="cyan")
        table.add_column("Rows", justify="right")
        table.add_column("Share", justify="right")
        for category in sorted(store.unique_categories(), key=str):
            count = store.count_rows_with_category(category)
            share = count / total if total else 0.0
            table.add_row(str(category), str(count), f"{share:.0%}")
        words = len(store.unique_words())
        links = len(store.all_links())

    console.print(table)
    console.print(f"Total rows: {total} | Words: {words} | Links: {links}")


@main.command()
@click.argument("categories", nargs=-1, required=True)
@click.pass_context
def forget(ctx: click.Context, categories: tuple[str, ...]) -> None:
    """Remove categories (and words only they used) from the model.

    Example: bayesian-graph forget spam promotions
    """
    model: Path = ctx.obj["model"]
    store = _load_or_exit(model)
    removed = store.remove_categories(categories)
    missing = [c for c in categories if c not in removed]

    _save_or_exit(store, model)

    if removed:
        console.print(f"[green]Removed:[/] {', '.join(map(str, removed))}")
    if missing:
        console.print(f"[yellow]Not found:[/] {', '.join(missing)}")


# ------------------------------------------------------------------
# Rich rendering helpers
# ------------------------------------------------------------------

def _render_matrix(matrix: ConfusionMatrix) -> None:
    """Render accuracy and the confusion matrix with rich formatting."""
    accuracy = matrix.accuracy
    if accuracy > 0.8:
        style = "bold green"
    elif accuracy > 0.5:
        style = "bold yellow"
    else:
        style = "bold red"

    console.print()
    console.print(Panel(
        f"Accuracy: [{style}]{accuracy:.2%}[/]\n"
        f"Correct: {matrix.correct_count} | Incorrect: {matrix.incorrect_count} | "
        f"Total: {matrix.total_count}",
        title="Evaluation",
        border_style="blue",
    ))

    labels = matrix.categories()
    if not labels:
        return

    table = Table(title="Confusion Matrix (rows: actual, columns: predicted)", show_lines=True)
    table.add_column("", style="cyan")
    for label in labels:
        table.add_column(str(label), justify="right")
    for actual in labels:
        cells = []
        for predicted in labels:
            count = matrix.cell_count(actual, predicted)
            cells.append(f"[bold]{count}[/]" if actual == predicted and count else str(count))
        table.add_row(str(actual), *cells)
    console.print(table)
    console.print()


if __name__ == "__main__":
    run()
