"""
Unit tests for selection logging.

Covers the session log file with its settings header, the debug trace sink
that forwards selection events to loguru, and cache entry ages.
"""

import sys
from datetime import datetime

import pytest
from loguru import logger

from viralnexus import __version__
from viralnexus.contexts.selection import LoguruDiagnosticSink, SelectorConfig
from viralnexus.contexts.selection.logger import log_selection_summary, setup_selection_logger
from viralnexus.contexts.selection.tokenizer import STOPWORDS
from viralnexus.utils.timestamp import format_age, now_exact


@pytest.fixture
def restore_logger():
    yield
    logger.remove()
    logger.add(sys.__stderr__)


@pytest.mark.unit
class TestSelectionLogger:
    def test_session_header(self, tmp_path, restore_logger):
        log_file = setup_selection_logger(tmp_path / "session", config=SelectorConfig())
        log_selection_summary(3, {"scored_match": 2, "fallback_placeholder": 1}, 0.5)
        logger.remove()

        text = log_file.read_text(encoding="utf-8")
        assert log_file.name == "select.log"
        assert f"viralnexus {__version__} select session" in text
        assert "Threshold: 0.05" in text
        assert "Tie epsilon: 0.001" in text
        assert "Resolution policy: threshold" in text
        assert f"Tokenizer: min length 3, {len(STOPWORDS)} stopwords" in text
        assert "[select] Selected previews for 3 records" in text
        assert "[select]   scored_match: 2" in text

    def test_console_echo_leaves_stdout_clean(self, tmp_path, capsys, restore_logger):
        """Session output goes to the log file and stderr, never stdout."""
        setup_selection_logger(tmp_path / "session", config=SelectorConfig())
        log_selection_summary(1, {"scored_match": 1}, 0.1)
        logger.remove()

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Selected previews for 1 records" in captured.err

    def test_diagnostic_sink_writes_debug_lines(self, tmp_path, restore_logger):
        log_file = setup_selection_logger(tmp_path / "session")
        LoguruDiagnosticSink().emit("tokens", link_tokens={"volcano", "eruption"})
        logger.remove()

        assert '[select] tokens: {"link_tokens": ["eruption", "volcano"]}' in log_file.read_text(
            encoding="utf-8"
        )


@pytest.mark.unit
class TestFormatAge:
    NOW = datetime(2026, 10, 18, 20, 50, 0)

    @pytest.mark.parametrize(
        "stored_at, expected",
        [
            ("2026-10-18T20:49:15", "45s"),
            ("2026-10-18T20:38:00", "12m"),
            ("2026-10-18T18:45:40.572549", "2h"),
            ("2026-10-15T20:50:00", "3d"),
        ],
    )
    def test_largest_whole_unit(self, stored_at, expected):
        assert format_age(stored_at, now=self.NOW) == expected

    def test_future_timestamp_is_zero(self):
        assert format_age("2026-10-19T00:00:00", now=self.NOW) == "0s"

    @pytest.mark.parametrize("stored_at", [None, "", "yesterday"])
    def test_unreadable_timestamp(self, stored_at):
        assert format_age(stored_at, now=self.NOW) == "unknown"

    def test_now_exact_round_trips(self):
        assert format_age(now_exact()) in {"0s", "1s"}
