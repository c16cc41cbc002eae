"""Structured logging system with JSON output and rich terminal formatting."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union, Protocol

from .log_formatters import StructuredFormatter, OrchestratorRichHandler, _run_context

ROOT_LOGGER_NAME = "aem_orchestrator"


class Logger(Protocol):
    """Protocol for logger instances to enable dependency injection."""

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log debug message."""

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log info message."""

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log warning message."""

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log error message."""

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log exception with traceback."""


class LogManager:
    """Central logging configuration and management.

    Handlers are attached to the package root logger only, so loggers
    created with ``get_logger(__name__)`` inherit them while third-party
    libraries (boto3, urllib3) keep their own configuration.
    """

    def __init__(self) -> None:
        self._configured = False
        self._handlers: list[logging.Handler] = []

    @property
    def is_configured(self) -> bool:
        return self._configured

    def configure(
        self,
        level: Union[int, str] = logging.INFO,
        log_file: Optional[Path] = None,
        enable_json: bool = True,
        enable_console: bool = True,
        console_level: Optional[Union[int, str]] = None,
    ) -> None:
        """Configure logging system."""
        if self._configured:
            return

        root = logging.getLogger(ROOT_LOGGER_NAME)
        root.setLevel(logging.DEBUG)
        root.propagate = False

        if enable_json and log_file:
            log_file = Path(log_file)
            log_file.parent.mkdir(parents=True, exist_ok=True)
            json_handler = logging.FileHandler(log_file)
            json_handler.setFormatter(StructuredFormatter(include_context=True))
            json_handler.setLevel(level)
            self._add_handler(root, json_handler)

        if enable_console:
            console_handler = OrchestratorRichHandler(
                show_time=True, show_path=False, markup=False
            )
            console_handler.setLevel(console_level or level)
            self._add_handler(root, console_handler)

        self._configured = True

    def get_logger(self, name: str) -> logging.Logger:
        """Get a logger instance under the package namespace."""
        if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
            name = f"{ROOT_LOGGER_NAME}.{name}"
        return logging.getLogger(name)

    def shutdown(self) -> None:
        """Detach and close every handler this manager installed."""
        root = logging.getLogger(ROOT_LOGGER_NAME)
        for handler in self._handlers:
            root.removeHandler(handler)
            try:
                handler.close()
            except (OSError, RuntimeError):
                pass  # Ignore handler close errors
        self._handlers.clear()

    def reset_configuration(self) -> None:
        """Reset configuration to allow reconfiguration."""
        self.shutdown()
        self._configured = False

    def _add_handler(self, logger: logging.Logger, handler: logging.Handler) -> None:
        logger.addHandler(handler)
        self._handlers.append(handler)


# Global log manager instance
_log_manager = LogManager()


def configure_logging(**kwargs: Any) -> None:
    """Configure the global logging system."""
    _log_manager.configure(**kwargs)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return _log_manager.get_logger(name)


def shutdown_logging() -> None:
    """Shutdown the logging system."""
    _log_manager.shutdown()


def reset_logging() -> None:
    """Reset logging configuration to allow reconfiguration.

    This is useful for test isolation where different tests
    might need different logging configurations.
    """
    _log_manager.reset_configuration()


def log_instance_event(
    logger: Logger, event: str, instance_id: Optional[str] = None, **kwargs: Any
) -> None:
    """Log an instance-related event."""
    extra: Dict[str, Any] = {"event_type": "instance", "instance_event": event}
    if instance_id is not None:
        extra["instance_id"] = instance_id
    extra.update(kwargs)
    logger.info("Instance %s %s", instance_id, event, extra=extra)


def log_context(**kwargs: Any) -> Any:
    """Bind fields to every record logged on this thread inside the block."""
    return _run_context.bind(**kwargs)
