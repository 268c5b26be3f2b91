import logging

from fworld.logging_config import ROOT_LOGGER, get_logger, setup_logging


def test_setup_logging_writes_run_log(tmp_path):
    logger = setup_logging(tmp_path, level=logging.WARNING)
    try:
        get_logger("fworld.engine").debug("probe message")
        for handler in logger.handlers:
            handler.flush()
        text = (tmp_path / "run.log").read_text()
        assert "FWorld run started" in text
        assert "[fworld.engine] DEBUG: probe message" in text
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
        for child in ("brain", "experiments"):
            logging.getLogger(child).handlers.clear()
    assert logger.name == ROOT_LOGGER
