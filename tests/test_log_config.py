from __future__ import annotations

import logging

from menu_builder.log_config import LOG_FORMAT, ContextFormatter, setup_logging


def test_setup_logging_levels_and_single_handler():
    root = logging.getLogger()
    before = list(root.handlers)
    try:
        setup_logging(verbose=True)
        assert root.level == logging.DEBUG
        setup_logging(quiet=True)
        assert root.level == logging.WARNING
        setup_logging()
        assert root.level == logging.INFO
        added = [handler for handler in root.handlers if handler not in before]
        assert len(added) == 1
        assert isinstance(added[0].formatter, ContextFormatter)
    finally:
        for handler in list(root.handlers):
            if handler not in before:
                root.removeHandler(handler)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("menu_builder.app", logging.ERROR, __file__, 1, "Menu creation failed", (), None)
    record.__dict__.update(extra)
    return record


def test_formatter_writes_extra_context():
    line = ContextFormatter(LOG_FORMAT).format(_record(shop="my-store.myshopify.com", error="connection reset"))

    assert "ERROR menu_builder.app: Menu creation failed" in line
    assert "error='connection reset'" in line
    assert "shop='my-store.myshopify.com'" in line


def test_formatter_without_context_is_plain():
    line = ContextFormatter(LOG_FORMAT).format(_record())
    assert line.endswith("menu_builder.app: Menu creation failed")
