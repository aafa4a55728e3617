"""
Correlation ID tests
====================
Header handling of CorrelationIdMiddleware and the correlation_id stamped
on log records.
"""

import logging

from src.core.logging_config import LOG_FORMAT
from src.core.middleware.correlation import (
    CORRELATION_HEADER_NAME,
    _correlation_id,
    get_correlation_id,
)


def records_with_message(caplog, text):
    return [r for r in caplog.records if text in r.getMessage()]


class TestCorrelationMiddleware:

    def test_new_id_is_logged_and_returned(self, client, caplog):
        with caplog.at_level(logging.INFO):
            response = client.get("/api/customers")

        cid = response.headers[CORRELATION_HEADER_NAME]
        added = records_with_message(caplog, "Request has no correlation header")

        assert len(added) == 1
        assert cid in added[0].getMessage()
        assert added[0].correlation_id == "-"

        # Everything logged while the request runs carries the new id
        service_records = [r for r in caplog.records if r.name == "src.api.services.customer_service"]
        assert service_records
        assert {r.correlation_id for r in service_records} == {cid}

    def test_existing_id_is_kept(self, client, caplog):
        with caplog.at_level(logging.INFO):
            response = client.get("/api/customers", headers={CORRELATION_HEADER_NAME: "keep-me"})

        assert response.headers[CORRELATION_HEADER_NAME] == "keep-me"
        assert not records_with_message(caplog, "Request has no correlation header")
        assert records_with_message(caplog, "Request correlation ID: keep-me")[0].correlation_id == "keep-me"

    def test_id_is_cleared_after_the_request(self, client):
        client.get("/api/customers", headers={CORRELATION_HEADER_NAME: "short-lived"})

        assert get_correlation_id() is None


class TestLogRecords:

    def test_outside_a_request(self, caplog):
        with caplog.at_level(logging.INFO):
            logging.getLogger("tests").info("no request")

        assert caplog.records[-1].correlation_id == "-"

    def test_inside_a_request_context(self, caplog):
        token = _correlation_id.set("ctx-1")
        try:
            with caplog.at_level(logging.INFO):
                logging.getLogger("tests").info("in request")
        finally:
            _correlation_id.reset(token)

        record = caplog.records[-1]
        assert record.correlation_id == "ctx-1"
        assert "[ctx-1] - in request" in logging.Formatter(LOG_FORMAT).format(record)
