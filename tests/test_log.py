from __future__ import annotations

import io
import logging
from pathlib import Path

import pytest

from eib.log import BuildLogger


def test_audit_lines_reach_stream_and_log_file(tmp_path: Path) -> None:
    stream = io.StringIO()
    logger = BuildLogger("eib.test.audit", audit_stream=stream)
    log_file = logger.configure(tmp_path / "eib-build.log")

    logger.audit("Checking %s...", "image")
    logger.debug("detail only")
    logger.close()

    assert stream.getvalue() == "Checking image...\n"
    text = log_file.read_text(encoding="utf-8")
    assert "| INFO | Checking image..." in text
    assert "| DEBUG | detail only" in text


def test_close_restores_console_handler(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    logger = BuildLogger("eib.test.close", audit_stream=io.StringIO())
    logger.configure(tmp_path / "eib-build.log")
    logger.close()

    handlers = logging.getLogger("eib.test.close").handlers
    assert len(handlers) == 1
    assert not isinstance(handlers[0], logging.FileHandler)
    assert not logger.configured

    logger.fatal("Pipeline crashed after the build log was closed.")
    assert "CRITICAL: Pipeline crashed after the build log was closed." in capsys.readouterr().err


def test_close_without_configure_keeps_console(capsys: pytest.CaptureFixture[str]) -> None:
    logger = BuildLogger("eib.test.unconfigured")
    logger.close()

    logger.error("no build log yet")
    assert "ERROR: no build log yet" in capsys.readouterr().err
