import logging

from portal_cli.utils.logging_config import LoggingConfig, parse_level


def test_parse_level():
    assert parse_level("debug") == logging.DEBUG
    assert parse_level("WARNING") == logging.WARNING
    assert parse_level(None, logging.ERROR) == logging.ERROR
    assert parse_level("loud") == logging.INFO


def test_specialized_logger_writes_its_own_file(tmp_path):
    config = LoggingConfig(str(tmp_path / "logs"))

    logger = config.create_specialized_logger("test.portal.audit_file", "audit.log")
    again = config.create_specialized_logger("test.portal.audit_file", "audit.log")
    logger.info("C -> A")
    for handler in logger.handlers:
        handler.flush()

    assert again is logger
    assert len(logger.handlers) == 1
    assert "C -> A" in (tmp_path / "logs" / "audit.log").read_text(encoding="utf-8")

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
