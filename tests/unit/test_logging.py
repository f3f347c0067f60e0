"""Unit tests for logging infrastructure."""
import logging
from fbc.infrastructure.logging import setup_logging


def test_setup_logging_creates_log_file(tmp_path):
    output_dir = tmp_path / "output"
    output_dir.mkdir()

    logger = setup_logging(output_dir, debug=False)

    assert isinstance(logger, logging.Logger)
    assert (output_dir / "conversion.log").exists()


def test_setup_logging_debug_mode(tmp_path):
    logger = setup_logging(tmp_path, debug=True)
    assert logger.getEffectiveLevel() == logging.DEBUG


def test_setup_logging_normal_mode(tmp_path):
    logger = setup_logging(tmp_path, debug=False)
    assert logger.getEffectiveLevel() == logging.INFO


def test_setup_logging_creates_output_dir(tmp_path):
    output_dir = tmp_path / "missing" / "output"

    setup_logging(output_dir, debug=False)

    assert output_dir.is_dir()


def test_setup_logging_custom_log_path(tmp_path):
    log_path = tmp_path / "logs" / "custom.log"

    logger = setup_logging(tmp_path / "out", log_path=log_path)
    logger.info("custom path message")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert "custom path message" in log_path.read_text()
    assert not (tmp_path / "out" / "conversion.log").exists()
