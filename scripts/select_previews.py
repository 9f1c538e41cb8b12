#!/usr/bin/env python3
"""
Select preview images for a links.json file.

The links file is a JSON list of content records (title, keywords, images,
meta/fallbackImages, thumbnail, category, url).

Examples:
    # Select previews and print results as JSON
    python scripts/select_previews.py select links.json

    # Write results to a file, with a stricter threshold and a persistent cache
    python scripts/select_previews.py select links.json -o previews.json --threshold 0.1 --cache-db outs/selections.db

    # Show how the candidates of the third record rank
    python scripts/select_previews.py rank links.json 2

    # Inspect or empty the persistent cache
    python scripts/select_previews.py cache-stats --cache-db outs/selections.db
    python scripts/select_previews.py clear-cache --cache-db outs/selections.db
"""

import json
import time
from collections import Counter
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from typing_extensions import Annotated

from viralnexus.contexts.selection import (
    ContentRecord,
    ImageSelector,
    InvalidRecordError,
    SelectionCache,
    SelectorConfigError,
    SqliteSelectionStore,
    link_tokens,
    load_selector_config,
    score_breakdown,
)
from viralnexus.contexts.selection.logger import log_selection_summary, setup_selection_logger
from viralnexus.utils.timestamp import format_age

load_dotenv()

app = typer.Typer(
    add_completion=False,
    help="Select deterministic preview images for curated links",
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _load_links(links_file: Path) -> list:
    if not links_file.exists():
        typer.secho(f"Links file not found: {links_file}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    try:
        links = json.loads(links_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        typer.secho(f"Invalid JSON in {links_file}: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if not isinstance(links, list):
        typer.secho("Links file must contain a JSON list of records", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return links


def _load_config(config: Optional[Path], overrides: dict):
    try:
        return load_selector_config(config, overrides=overrides)
    except (FileNotFoundError, SelectorConfigError) as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


@app.command("select")
def select_command(
    links_file: Annotated[Path, typer.Argument(help="JSON list of content records")],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write results here instead of stdout"),
    ] = None,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Selector YAML config (defaults to SELECTOR_CONFIG_PATH)"),
    ] = None,
    threshold: Annotated[
        Optional[float],
        typer.Option("--threshold", "-t", help="Minimum score to accept a scored match"),
    ] = None,
    cache_db: Annotated[
        Optional[Path],
        typer.Option("--cache-db", help="SQLite file mirroring selection results"),
    ] = None,
    debug: Annotated[
        bool,
        typer.Option("--debug", "-d", help="Trace tokens, rankings and decisions"),
    ] = False,
    log_dir: Annotated[
        Optional[Path],
        typer.Option("--log-dir", help="Write a session log to this directory"),
    ] = None,
):
    """
    Select a preview image for every record in a links file.

    Examples:\n
        $ select_previews.py select links.json

        $ select_previews.py select links.json -o previews.json --cache-db outs/selections.db
    """
    overrides = {"debug_logging": True} if debug else {}
    if threshold is not None:
        overrides["threshold"] = threshold
    selector_config = _load_config(config, overrides)

    if log_dir is not None:
        log_file = setup_selection_logger(log_dir, config=selector_config, verbose=debug)
        typer.echo(f"Logging to: {log_file}", err=True)

    links = _load_links(links_file)
    store = SqliteSelectionStore(cache_db) if cache_db else None
    selector = ImageSelector(config=selector_config, cache=SelectionCache(store=store))

    start = time.time()
    results = []
    for link in links:
        result = selector.select_preview_image(link)
        url = link.get("url") if isinstance(link, dict) else None
        results.append({"url": url, **result.to_dict()})
    elapsed = time.time() - start

    reason_counts = Counter(entry["reason"] for entry in results)
    if log_dir is not None:
        log_selection_summary(len(results), reason_counts, elapsed)

    payload = json.dumps(results, indent=2)
    if output:
        output.write_text(payload + "\n", encoding="utf-8")
        typer.secho(f"✓ Selected previews for {len(results)} records", fg=typer.colors.GREEN, bold=True)
        typer.echo(f"  Output: {output}")
        for reason, count in reason_counts.most_common():
            typer.echo(f"  • {reason}: {count}")
    else:
        typer.echo(payload)


@app.command("rank")
def rank_command(
    links_file: Annotated[Path, typer.Argument(help="JSON list of content records")],
    index: Annotated[int, typer.Argument(help="Position of the record in the list (0-based)")],
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Selector YAML config (defaults to SELECTOR_CONFIG_PATH)"),
    ] = None,
):
    """
    Show ranked candidates for one record with a per-signal score breakdown.

    Examples:\n
        $ select_previews.py rank links.json 0
    """
    links = _load_links(links_file)
    if not 0 <= index < len(links):
        typer.secho(f"Index {index} out of range (0-{len(links) - 1})", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    try:
        record = ContentRecord.from_dict(links[index])
    except InvalidRecordError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    selector_config = _load_config(config, {})
    selector = ImageSelector(config=selector_config)
    tokens = link_tokens(record)
    ranked = selector.rank_candidates(
        selector.score_candidates(selector.collect_candidates(record), tokens, record.keywords)
    )

    typer.secho(record.title or record.cache_key, bold=True)
    typer.echo(f"Tokens: {', '.join(sorted(tokens)) or '(none)'}")
    typer.echo(f"Threshold: {selector_config.threshold}")

    if not ranked:
        typer.echo("\nNo candidates")
        return

    typer.echo(f"\n{'#':>2}  {'score':>6}  {'file':>6}  {'alt':>6}  {'kw':>6}  {'res':>6}  source            url")
    for position, scored in enumerate(ranked, start=1):
        parts = score_breakdown(
            scored.candidate,
            tokens,
            record.keywords,
            weights=selector_config.weights,
            resolution=selector_config.resolution,
        )
        marker = "*" if scored.score >= selector_config.threshold else " "
        typer.echo(
            f"{position:>2}{marker} {scored.score:6.3f}  {parts.filename:6.3f}  {parts.alt_caption:6.3f}  "
            f"{parts.keyword:6.3f}  {parts.resolution:6.3f}  {scored.provenance.value:<16}  {scored.url}"
        )


@app.command("cache-stats")
def cache_stats_command(
    cache_db: Annotated[Path, typer.Option("--cache-db", help="SQLite selection cache file")],
):
    """List mirrored selections with their age."""
    if not cache_db.exists():
        typer.secho(f"Cache database not found: {cache_db}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    entries = SqliteSelectionStore(cache_db).entries()
    typer.secho(f"{len(entries)} cached selections", bold=True)
    for key, result_json, stored_at in entries:
        try:
            reason = json.loads(result_json).get("reason", "?")
        except (json.JSONDecodeError, AttributeError):
            reason = "corrupt"
        typer.echo(f"  {key}  [{reason}]  {format_age(stored_at)} old")


@app.command("clear-cache")
def clear_cache_command(
    cache_db: Annotated[Path, typer.Option("--cache-db", help="SQLite selection cache file")],
):
    """Remove every mirrored selection."""
    if not cache_db.exists():
        typer.secho(f"Cache database not found: {cache_db}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    removed = SqliteSelectionStore(cache_db).clear()
    typer.secho(f"✓ Cleared {removed} cached selections", fg=typer.colors.GREEN, bold=True)


if __name__ == "__main__":
    app()
