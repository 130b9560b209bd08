"""
Test suite for logging configuration and correlation IDs.

System role: Verification of observability helpers
"""

import logging

from fastapi import FastAPI
from fastapi.testclient import TestClient

from gofigure.core.exceptions import MeshServiceError
from gofigure.core.mesh_status import ExternalMeshStatus
from gofigure.observability.correlation import (
    clear_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from gofigure.observability.log_utils import log_exception_with_context, log_value
from gofigure.observability.logger import CorrelationIdFilter
from gofigure.observability.middleware import CorrelationMiddleware


class TestCorrelationId:
    """Test suite for correlation ID context helpers."""

    def test_set_should_generate_id_when_missing(self) -> None:
        generated = set_correlation_id()
        try:
            assert generated
            assert get_correlation_id() == generated
        finally:
            clear_correlation_id()

    def test_filter_should_attach_current_id(self) -> None:
        set_correlation_id("req-1")
        record = logging.LogRecord("t", logging.INFO, __file__, 1, "msg", None, None)
        try:
            CorrelationIdFilter().filter(record)
        finally:
            clear_correlation_id()

        assert record.correlation_id == "req-1"

    def test_filter_should_use_placeholder_outside_requests(self) -> None:
        record = logging.LogRecord("t", logging.INFO, __file__, 1, "msg", None, None)

        CorrelationIdFilter().filter(record)

        assert record.correlation_id == "-"


def test_middleware_should_echo_incoming_correlation_id() -> None:
    app = FastAPI()
    app.add_middleware(CorrelationMiddleware)

    @app.get("/ping")
    async def ping() -> dict:
        return {"correlation_id": get_correlation_id()}

    response = TestClient(app).get("/ping", headers={"X-Correlation-ID": "abc-123"})

    assert response.headers["X-Correlation-ID"] == "abc-123"
    assert response.json() == {"correlation_id": "abc-123"}


class TestJobEventLogging:
    """Test suite for structured job event helpers."""

    def test_log_value_should_keep_numbers_and_unwrap_enums(self) -> None:
        assert log_value(1500) == 1500
        assert log_value(None) is None
        assert log_value(ExternalMeshStatus.IN_PROGRESS) == "IN_PROGRESS"

    def test_log_value_should_truncate_long_upstream_text(self) -> None:
        logged = log_value("x" * 600)

        assert logged.startswith("x" * 300)
        assert logged.endswith("... (600 chars)")

    def test_exception_should_carry_upstream_status_code(self, caplog) -> None:
        logger = logging.getLogger("gofigure.tests.log_utils")
        error = MeshServiceError("Failed to get mesh task: 503", status_code=503)

        with caplog.at_level(logging.ERROR, logger=logger.name):
            try:
                raise error
            except MeshServiceError as e:
                log_exception_with_context(logger, "Mesh status query failed", e, job_id="j-1")

        record = caplog.records[-1]
        assert record.job_id == "j-1"
        assert record.error_type == "MeshServiceError"
        assert record.status_code == 503
        assert record.exc_info is not None
