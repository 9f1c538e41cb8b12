"""
Diagnostic sinks for selection traces.

When debug logging is enabled for a selection, the selector emits structured
events (token sets, candidate counts, top-ranked candidates, final decision)
to a DiagnosticSink. The default sink forwards them to loguru at DEBUG level;
tests and tools can inject their own.
"""

import json
from typing import Any, Protocol

from viralnexus.contexts.selection.logger import _log_debug


class DiagnosticSink(Protocol):
    def emit(self, event: str, **fields: Any) -> None: ...


class LoguruDiagnosticSink:
    """Writes each event as one [select] DEBUG line with JSON-encoded fields."""

    def emit(self, event: str, **fields: Any) -> None:
        payload = json.dumps(fields, sort_keys=True, default=_jsonable)
        _log_debug(f"{event}: {payload}")


class CollectingDiagnosticSink:
    """Keeps events in memory as (event, fields) pairs."""

    def __init__(self):
        self.events: list[tuple[str, dict]] = []

    def emit(self, event: str, **fields: Any) -> None:
        self.events.append((event, fields))

    def names(self) -> list[str]:
        return [event for event, _ in self.events]

    def last(self, event: str) -> dict:
        """Fields of the most recent event with this name."""
        for name, fields in reversed(self.events):
            if name == event:
                return fields
        raise KeyError(event)


def _jsonable(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    if hasattr(value, "value"):
        return value.value
    return str(value)
