"""Command-line interface for the Bayes classifier.

Provides ``train``, ``classify``, and ``info`` commands with rich terminal
output using the ``click`` and ``rich`` libraries.

Usage::

    bayes-classifier train observations.jsonl -o model.json
    bayes-classifier classify -m model.json "Claim your free prize now"
    bayes-classifier classify -m model.json --features free,prize --detailed
    bayes-classifier info -m model.json
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .config import LOG_LEVELS, Settings, configure_logging
from .engine import BayesClassifier
from .errors import ClassificationError
from .models import Classification
from .source import FrequencyTable
from .text import extract_features

console = Console()


@click.group()
@click.version_option(package_name="bayes-classifier")
@click.option("--log-level", type=click.Choice(LOG_LEVELS, case_sensitive=False), default=None,
              help="Log level (defaults to BAYES_LOG_LEVEL or WARNING).")
@click.pass_context
def main(ctx: click.Context, log_level: str | None) -> None:
    """🧮 Bayes Classifier — naive Bayes ranking of categories.

    Train a frequency model from labeled observations and rank categories
    for new featuresets.
    """
    try:
        settings = Settings.from_env()
    except ValueError as e:
        console.print(f"[bold red]Error:[/] {escape(str(e))}")
        sys.exit(1)
    if log_level:
        settings.log_level = log_level.upper()
    configure_logging(settings.log_level)
    ctx.obj = settings


@main.command()
@click.argument("data", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--output", "-o", "model", type=click.Path(path_type=Path), default=None,
              help="Where to write the model (defaults to BAYES_MODEL_PATH).")
@click.option("--ngram", default=1, show_default=True, type=click.IntRange(min=1),
              help="Largest n-gram extracted from text observations.")
@click.option("--keep-stopwords", is_flag=True, default=False,
              help="Keep common English stopwords in text observations.")
@click.pass_obj
def train(settings: Settings, data: Path, model: Path | None, ngram: int,
          keep_stopwords: bool) -> None:
    """Learn a model from a JSON Lines file of labeled observations.

    Each line holds a ``category`` and either a ``features`` list or a
    ``text`` string.

    Example: bayes-classifier train observations.jsonl -o model.json
    """
    model = _resolve_model_path(model, settings)
    try:
        featuresets, labels = _read_observations(
            data, ngram_range=(1, ngram), use_stopwords=not keep_stopwords,
        )
        table = FrequencyTable(
            weight=settings.smoothing_weight,
            assumed_probability=settings.assumed_probability,
        ).fit(featuresets, labels)
        table.save(model)
    except (OSError, TypeError, ValueError) as e:
        console.print(f"[bold red]Error:[/] {escape(str(e))}")
        sys.exit(1)

    console.print(
        f"Learned [bold]{len(labels)}[/] observations across "
        f"[bold]{len(table.known_categories())}[/] categories → {escape(str(model))}"
    )


@main.command()
@click.argument("text", required=False)
@click.option("--model", "-m", type=click.Path(path_type=Path), default=None,
              help="Model file (defaults to BAYES_MODEL_PATH).")
@click.option("--features", "-f", default=None,
              help="Comma-separated features to classify instead of TEXT.")
@click.option("--ngram", default=1, show_default=True, type=click.IntRange(min=1),
              help="Largest n-gram extracted from TEXT.")
@click.option("--keep-stopwords", is_flag=True, default=False,
              help="Keep common English stopwords in TEXT.")
@click.option("--detailed", "-d", is_flag=True, default=False,
              help="Show the score of every category.")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
@click.pass_obj
def classify(settings: Settings, text: str | None, model: Path | None,
             features: str | None, ngram: int, keep_stopwords: bool,
             detailed: bool, output: str) -> None:
    """Rank categories for a text or an explicit featureset.

    Example: bayes-classifier classify -m model.json "free money inside"
    """
    if features is not None:
        featureset = [f.strip() for f in features.split(",") if f.strip()]
    elif text is not None:
        featureset = extract_features(
            text, ngram_range=(1, ngram), use_stopwords=not keep_stopwords,
        )
    else:
        raise click.UsageError("Provide TEXT or --features.")

    classifier = BayesClassifier(_load_model(model, settings), precision=settings.precision)
    try:
        if detailed:
            ranked = classifier.classify_detailed(featureset)
            best = ranked[-1] if ranked else None
        else:
            best = classifier.classify(featureset)
            ranked = [best] if best is not None else []
    except ClassificationError as e:
        console.print(f"[bold red]Error:[/] {escape(str(e))}")
        sys.exit(1)

    if output == "json":
        if detailed:
            click.echo(json.dumps([c.to_dict() for c in reversed(ranked)], indent=2))
        else:
            click.echo(json.dumps(best.to_dict() if best is not None else None, indent=2))
        return

    if best is None:
        console.print("[yellow]No classification[/]: the model knows no categories.")
        return
    if detailed:
        _render_ranking(ranked, best)
    else:
        console.print(Panel(
            f"[bold cyan]{escape(str(best.category))}[/]  probability={best.probability}",
            title=f"🧮 Classification ({len(featureset)} features)",
            border_style="blue",
        ))


@main.command()
@click.option("--model", "-m", type=click.Path(path_type=Path), default=None,
              help="Model file (defaults to BAYES_MODEL_PATH).")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
@click.pass_obj
def info(settings: Settings, model: Path | None, output: str) -> None:
    """Show the categories of a model with their counts and priors.

    Example: bayes-classifier info -m model.json
    """
    table = _load_model(model, settings)
    classifier = BayesClassifier(table, precision=settings.precision)
    categories = sorted(table.known_categories(), key=repr)

    try:
        rows = [
            (category, table.category_count(category), classifier.category_prior(category))
            for category in categories
        ]
    except ClassificationError as e:
        console.print(f"[bold red]Error:[/] {escape(str(e))}")
        sys.exit(1)

    if output == "json":
        click.echo(json.dumps({
            "categories_total": table.categories_total(),
            "feature_count": len(table.features),
            "categories": [
                {"category": c, "count": n, "prior": str(p)} for c, n, p in rows
            ],
        }, indent=2))
        return

    grid = Table(title="Model categories", show_lines=False)
    grid.add_column("Category", style="cyan")
    grid.add_column("Count", justify="right")
    grid.add_column("Prior", justify="right")
    for category, count, prior in rows:
        grid.add_row(escape(str(category)), str(count), str(prior))

    console.print(grid)
    console.print(
        f"[dim]{table.categories_total()} observations, "
        f"{len(table.features)} distinct features[/]"
    )


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _resolve_model_path(model: Path | None, settings: Settings) -> Path:
    path = model or settings.model_path
    if path is None:
        raise click.UsageError("No model path given; use --model/--output or set BAYES_MODEL_PATH.")
    return path


def _load_model(model: Path | None, settings: Settings) -> FrequencyTable:
    path = _resolve_model_path(model, settings)
    try:
        return FrequencyTable.load(path)
    except (OSError, ValueError) as e:
        console.print(
            f"[bold red]Error:[/] could not load model {escape(str(path))}: {escape(str(e))}"
        )
        sys.exit(1)


def _read_observations(
    path: Path,
    ngram_range: tuple[int, int],
    use_stopwords: bool,
) -> tuple[list[list], list]:
    """Parse a JSON Lines file into featuresets and labels."""
    featuresets: list[list] = []
    labels: list = []
    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                raise ValueError(f"{path.name}:{lineno}: invalid JSON ({e.msg})") from None
            if not isinstance(record, dict) or "category" not in record:
                raise ValueError(f"{path.name}:{lineno}: expected an object with a 'category'")

            if "features" in record:
                if not isinstance(record["features"], list):
                    raise ValueError(f"{path.name}:{lineno}: 'features' must be a list")
                featuresets.append(record["features"])
            elif "text" in record:
                featuresets.append(
                    extract_features(record["text"], ngram_range=ngram_range,
                                     use_stopwords=use_stopwords)
                )
            else:
                raise ValueError(f"{path.name}:{lineno}: expected 'features' or 'text'")
            labels.append(record["category"])
    return featuresets, labels


def _render_ranking(ranked: list[Classification], best: Classification) -> None:
    """Render a ranking as a rich table, best category first."""
    table = Table(title=f"Ranking — {len(best.featureset)} features", show_lines=False)
    table.add_column("#", justify="right", width=4)
    table.add_column("Category", style="cyan")
    table.add_column("Probability", justify="right")

    for i, entry in enumerate(reversed(ranked), 1):
        style = "bold green" if entry is best else ""
        table.add_row(str(i), escape(str(entry.category)), str(entry.probability), style=style)

    console.print(table)
    console.print()


if __name__ == "__main__":
    main()
