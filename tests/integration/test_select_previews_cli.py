"""
Integration test for the select_previews command line script.
Tests: links.json → select/rank commands → JSON output and cache administration.
"""

import importlib.util
import json
import sys
from pathlib import Path

import pytest
from loguru import logger
from typer.testing import CliRunner

SCRIPT_PATH = Path(__file__).resolve().parents[2] / "scripts" / "select_previews.py"

LINKS = [
    {
        "url": "https://example.com/venezuela",
        "title": "Venezuela Breaking News",
        "keywords": ["Venezuela", "Politics"],
        "images": [
            {"url": "https://example.com/random-cat.jpg", "alt": "Cat picture"},
            {"url": "https://example.com/venezuela-protest-2026.jpg", "alt": "Venezuela protest"},
        ],
    },
    {
        "url": "https://example.com/og-only",
        "title": "Article",
        "meta": {"ogImage": "https://example.com/og-image.jpg"},
    },
    {"url": "https://example.com/empty", "title": "Nothing here", "category": "memes"},
]


def load_script():
    spec = importlib.util.spec_from_file_location("select_previews", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def app(monkeypatch):
    monkeypatch.delenv("SELECTOR_CONFIG_PATH", raising=False)
    return load_script().app


@pytest.fixture
def links_file(tmp_path):
    path = tmp_path / "links.json"
    path.write_text(json.dumps(LINKS), encoding="utf-8")
    return path


runner = CliRunner()


@pytest.mark.integration
def test_select_prints_json(app, links_file):
    """Test that select emits one result per record in input order."""
    result = runner.invoke(app, ["select", str(links_file)])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert [entry["url"] for entry in payload] == [link["url"] for link in LINKS]
    assert [entry["reason"] for entry in payload] == [
        "scored_match",
        "fallback_og_image",
        "fallback_placeholder",
    ]
    assert payload[0]["imageUrl"] == "https://example.com/venezuela-protest-2026.jpg"
    assert "Meme" in payload[2]["imageUrl"]


@pytest.mark.integration
def test_select_writes_output_file(app, links_file, tmp_path):
    """Test that -o writes the results and prints a summary."""
    output = tmp_path / "previews.json"

    result = runner.invoke(app, ["select", str(links_file), "-o", str(output)])

    assert result.exit_code == 0, result.output
    assert "Selected previews for 3 records" in result.output
    assert len(json.loads(output.read_text(encoding="utf-8"))) == 3


@pytest.mark.integration
def test_select_threshold_option(app, links_file):
    """Test that a strict threshold turns the scored match into a fallback."""
    result = runner.invoke(app, ["select", str(links_file), "--threshold", "0.9"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)[0]["reason"] == "fallback_primary_image"


@pytest.mark.integration
def test_select_writes_session_log(app, links_file, tmp_path):
    """Test that --log-dir records the settings header and the run summary."""
    log_dir = tmp_path / "logs"
    output = tmp_path / "previews.json"

    try:
        result = runner.invoke(app, ["select", str(links_file), "-o", str(output), "--log-dir", str(log_dir)])
    finally:
        logger.remove()
        logger.add(sys.__stderr__)

    assert result.exit_code == 0, result.output
    text = (log_dir / "select.log").read_text(encoding="utf-8")
    assert "Threshold: 0.05" in text
    assert "[select] Selected previews for 3 records" in text
    assert "[select]   scored_match: 1" in text


@pytest.mark.integration
def test_select_missing_links_file(app, tmp_path):
    """Test that a missing links file exits with an error."""
    result = runner.invoke(app, ["select", str(tmp_path / "absent.json")])

    assert result.exit_code == 1


@pytest.mark.integration
def test_select_rejects_non_list(app, tmp_path):
    path = tmp_path / "links.json"
    path.write_text(json.dumps({"url": "https://example.com"}), encoding="utf-8")

    result = runner.invoke(app, ["select", str(path)])

    assert result.exit_code == 1


@pytest.mark.integration
def test_rank_shows_breakdown(app, links_file):
    """Test that rank lists candidates best-first with the accepted one marked."""
    result = runner.invoke(app, ["rank", str(links_file), "0"])

    assert result.exit_code == 0, result.output
    lines = [line for line in result.stdout.splitlines() if "https://example.com/" in line]
    assert "venezuela-protest-2026.jpg" in lines[0]
    assert lines[0].lstrip().startswith("1*")
    assert "random-cat.jpg" in lines[1]


@pytest.mark.integration
def test_rank_index_out_of_range(app, links_file):
    result = runner.invoke(app, ["rank", str(links_file), "7"])

    assert result.exit_code == 1


@pytest.mark.integration
def test_cache_stats_and_clear(app, links_file, tmp_path):
    """Test that selections mirrored with --cache-db can be listed and cleared."""
    cache_db = tmp_path / "selections.db"

    result = runner.invoke(app, ["select", str(links_file), "--cache-db", str(cache_db)])
    assert result.exit_code == 0, result.output

    stats = runner.invoke(app, ["cache-stats", "--cache-db", str(cache_db)])
    assert stats.exit_code == 0, stats.output
    assert "3 cached selections" in stats.stdout
    assert "https://example.com/og-only  [fallback_og_image]" in stats.stdout
    assert "s old" in stats.stdout

    cleared = runner.invoke(app, ["clear-cache", "--cache-db", str(cache_db)])
    assert cleared.exit_code == 0, cleared.output
    assert "Cleared 3 cached selections" in cleared.stdout

    stats = runner.invoke(app, ["cache-stats", "--cache-db", str(cache_db)])
    assert "0 cached selections" in stats.stdout


@pytest.mark.integration
def test_cache_stats_missing_database(app, tmp_path):
    result = runner.invoke(app, ["cache-stats", "--cache-db", str(tmp_path / "absent.db")])

    assert result.exit_code == 1
