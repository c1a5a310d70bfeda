"""Logging port shared by the pipeline and its collaborators.

Two audiences are served. Audit lines are short messages printed for the
person running the build. Everything, audit lines included, is also written
to the operator log file once it has been configured.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"


class BuildLogger:
    def __init__(self, name: str = "eib", audit_stream: Optional[TextIO] = None) -> None:
        self._logger = logging.getLogger(name)
        self._logger.setLevel(logging.DEBUG)
        self._logger.propagate = False
        self._attach_console()

        self._audit_stream = audit_stream
        self._file_handler: Optional[logging.FileHandler] = None
        self.log_file: Optional[Path] = None

    def _attach_console(self) -> None:
        # Without a build log, problems go to stderr.
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(logging.WARNING)
        console.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        self._logger.handlers.clear()
        self._logger.addHandler(console)

    @property
    def configured(self) -> bool:
        return self._file_handler is not None

    def configure(self, log_file: str | Path) -> Path:
        """Attach the operator log file. Raises ``OSError`` if it cannot be opened."""

        log_file = Path(log_file)
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))

        self._logger.handlers.clear()
        self._logger.addHandler(handler)
        self._file_handler = handler
        self.log_file = log_file

        self._logger.debug("Build log file: %s", log_file)
        return log_file

    def audit(self, message: str, *args: object) -> None:
        text = message % args if args else message
        stream = self._audit_stream or sys.stdout
        print(text, file=stream)
        stream.flush()
        self._logger.info(text)

    def debug(self, message: str, *args: object) -> None:
        self._logger.debug(message, *args)

    def info(self, message: str, *args: object) -> None:
        self._logger.info(message, *args)

    def error(self, message: str, *args: object) -> None:
        self._logger.error(message, *args)

    def fatal(self, message: str, *args: object, exc_info: object = None) -> None:
        """Record an unrecoverable failure. Termination is left to the caller."""

        self._logger.critical(message, *args, exc_info=exc_info)

    def close(self) -> None:
        if self._file_handler is None:
            return
        self._logger.removeHandler(self._file_handler)
        self._file_handler.close()
        self._file_handler = None
        self._attach_console()
