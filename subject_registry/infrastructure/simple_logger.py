"""Logger adapter over the standard logging module."""

import logging
from typing import Any

from ..ports.logger import LoggerPort

# LogRecord attributes that structured context must not overwrite
_RESERVED = frozenset(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {"message"}


class SimpleLogger(LoggerPort):
    """Logger implementation using Python's standard logging.

    Keyword context is attached to each record via ``extra``; keys that
    clash with LogRecord attributes are prefixed with ``ctx_``.
    """

    def __init__(self, name: str = "subject_registry", level: int = logging.INFO):
        """Initialize the logger.

        Args:
            name: Logger name (default: "subject_registry")
            level: Logging level (default: INFO)
        """
        self._logger = logging.getLogger(name)
        self._logger.setLevel(level)

        if not self._logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            handler.setFormatter(formatter)
            self._logger.addHandler(handler)

    @staticmethod
    def _extra(kwargs: dict[str, Any]) -> dict[str, Any]:
        return {f"ctx_{k}" if k in _RESERVED else k: v for k, v in kwargs.items()}

    def debug(self, message: str, **kwargs: Any) -> None:
        self._logger.debug(message, extra=self._extra(kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        self._logger.info(message, extra=self._extra(kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.warning(message, extra=self._extra(kwargs))

    def error(self, message: str, **kwargs: Any) -> None:
        self._logger.error(message, extra=self._extra(kwargs))

    def exception(self, message: str, exc_info: Exception | None = None, **kwargs: Any) -> None:
        self._logger.error(message, exc_info=exc_info or True, extra=self._extra(kwargs))
