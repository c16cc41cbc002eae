"""JSON and console formatting for orchestrator log records."""

import json
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterator

from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text
from rich.theme import Theme

# Fields lifted to the top level of a JSON entry so runs can be filtered
# by instance, action and result without digging into "fields".
PROMOTED_FIELDS = ("instance_id", "action", "instance_event", "outcome")

_RECORD_ATTRIBUTES = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


class RunContext:
    """Fields bound to every record logged while a workflow run is active.

    Bindings are per thread, so concurrent runs for different instances
    do not see each other's instance id.
    """

    def __init__(self) -> None:
        self._local = threading.local()

    def current(self) -> Dict[str, Any]:
        """Fields bound on the calling thread."""
        return dict(getattr(self._local, "fields", {}))

    @contextmanager
    def bind(self, **fields: Any) -> Iterator[None]:
        """Bind fields for the duration of the block, restoring the outer ones after."""
        outer = self.current()
        self._local.fields = {**outer, **fields}
        try:
            yield
        finally:
            self._local.fields = outer


_run_context = RunContext()


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, with run fields at the top level."""

    def __init__(self, include_context: bool = True) -> None:
        super().__init__()
        self.include_context = include_context

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        fields = _run_context.current() if self.include_context else {}
        fields.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRIBUTES
        )
        for name in PROMOTED_FIELDS:
            if name in fields:
                entry[name] = _plain(fields.pop(name))
        if fields:
            entry["fields"] = {key: _plain(value) for key, value in fields.items()}

        if record.exc_info and record.exc_info[0] is not None:
            entry["error"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(entry, default=str)


class OrchestratorRichHandler(RichHandler):
    """Console handler highlighting instance events and failed runs."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        theme = Theme(
            {
                "logging.level.info": "dim blue",
                "logging.level.warning": "yellow",
                "logging.level.error": "red",
                "orchestrator.instance": "bright_cyan",
                "orchestrator.failure": "bold red",
            }
        )
        super().__init__(*args, console=Console(theme=theme, stderr=True), **kwargs)

    def render_message(self, record: logging.LogRecord, message: str) -> Text:
        text = Text(message)
        outcome = _plain(getattr(record, "outcome", None))
        if outcome is not None and outcome != "success":
            text.stylize("orchestrator.failure")
        elif getattr(record, "event_type", None) == "instance":
            text.stylize("orchestrator.instance")
        return text
