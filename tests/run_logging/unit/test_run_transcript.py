"""Run transcript logging tests."""

from __future__ import annotations

import logging
from pathlib import Path

from sdk_test_matrix.run_logging import PACKAGE_LOGGER_NAME, open_run_transcript


def test_package_records_are_written_to_transcript_while_open(tmp_path: Path) -> None:
    logger = logging.getLogger("sdk_test_matrix.service_control.service_controller")
    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    handlers_before = list(package_logger.handlers)

    with open_run_transcript(tmp_path, echo=False) as transcript_path:
        logger.info("Waiting for peer start on 127.0.0.1:7051 ...")
    logger.info("after the run")

    text = transcript_path.read_text(encoding="utf-8")
    assert transcript_path == tmp_path / "log"
    assert "INFO" in text
    assert "Waiting for peer start on 127.0.0.1:7051 ..." in text
    assert "after the run" not in text
    assert package_logger.handlers == handlers_before


def test_echo_adds_stderr_output(tmp_path: Path, capsys) -> None:
    with open_run_transcript(tmp_path, echo=True):
        logger = logging.getLogger("sdk_test_matrix.matrix_orchestration")
        logger.info("Running TLS-enabled tests...")

    assert "Running TLS-enabled tests..." in capsys.readouterr().err
