import logging

import structlog
from structlog.testing import capture_logs

from config.logging import configure_logging, log_error


def test_configure_logging_sets_root_level():
    configure_logging("debug", json_output=False)
    try:
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("asyncio").level == logging.WARNING
    finally:
        structlog.reset_defaults()


def test_log_error_records_type_and_context():
    with capture_logs() as logs:
        log_error(structlog.get_logger(), KeyError("p1"), {"request_type": "GetProductById"})

    assert logs == [{
        "event": "pipeline_request_failed",
        "log_level": "error",
        "error_type": "KeyError",
        "error_message": "'p1'",
        "request_type": "GetProductById",
    }]
