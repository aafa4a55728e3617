"""
Logging setup
=============
Every record carries the correlation ID of the request it was written in
("-" outside a request), so separate services' lines can be joined up.
"""

import logging
import sys

from src.core.middleware.correlation import get_correlation_id

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] - %(message)s"

_installed = False


def install_correlation_log_factory() -> None:
    """Wraps the current log record factory once to add `correlation_id`"""
    global _installed
    if _installed:
        return

    base_factory = logging.getLogRecordFactory()

    def record_factory(*args, **kwargs):
        record = base_factory(*args, **kwargs)
        record.correlation_id = get_correlation_id() or "-"
        return record

    logging.setLogRecordFactory(record_factory)
    _installed = True


def setup_logging(level: str = "INFO") -> None:
    install_correlation_log_factory()
    logging.basicConfig(
        level=level.upper(),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)]
    )
