"""
Unit Tests for Core Modules
Tests for: exceptions, configuration parsing, logging context, middleware helpers
"""
import json
import logging
import pytest

from portal.core.config import Settings, parse_cors_origins
from portal.core.exceptions import (
    PortalError,
    ReportNotFoundError,
    ProgramNotFoundError,
    CollegeReportsNotFoundError,
    NoDataToExportError,
    InvalidFinancialCategoryError,
    DuplicateProgramError,
    StorageReadError,
    StorageWriteError,
    error_response,
)
from portal.core.logging_config import (
    JSONFormatter,
    set_request_id,
    set_report_id,
    get_request_id,
    generate_request_id,
)
from portal.core.middleware import extract_report_id, should_skip_logging


class TestExceptions:
    """Test exception status codes and payloads"""

    def test_report_not_found(self):
        error = ReportNotFoundError("1700000000000")

        assert error.status_code == 404
        assert error.code == "REPORT_NOT_FOUND"
        assert "1700000000000" in error.message

    def test_program_not_found_details(self):
        error = ProgramNotFoundError("42", "IOE", "Bachelor", "Civil")

        assert error.status_code == 404
        assert error.details["program_name"] == "Civil"
        assert error.details["report_id"] == "42"

    def test_college_and_export_not_found(self):
        assert CollegeReportsNotFoundError("C1").code == "COLLEGE_REPORTS_NOT_FOUND"
        assert NoDataToExportError().message == "No data to export"
        assert NoDataToExportError().status_code == 404

    def test_invalid_category(self):
        error = InvalidFinancialCategoryError("travel", ["salaries", "capital"])

        assert error.status_code == 400
        assert error.code == "INVALID_FINANCIAL_CATEGORY"
        assert error.details["field"] == "category"

    def test_duplicate_program(self):
        error = DuplicateProgramError("42", "IOE", "Bachelor", "Civil")

        assert error.status_code == 400
        assert error.code == "PROGRAM_ALREADY_EXISTS"

    def test_storage_errors(self):
        read_error = StorageReadError("/data/reports.json", "malformed JSON")
        write_error = StorageWriteError("/data/reports.json")

        assert read_error.status_code == 500
        assert read_error.details["path"] == "/data/reports.json"
        assert "malformed JSON" in read_error.message
        assert write_error.code == "STORAGE_WRITE_FAILED"

    def test_error_response(self):
        body = error_response(PortalError("boom"))

        assert body == {
            "success": False,
            "error": {"code": "INTERNAL_ERROR", "message": "boom", "details": {}},
        }


class TestConfig:

    def test_parse_cors_comma_separated(self):
        assert parse_cors_origins("http://a.test, http://b.test,") == ["http://a.test", "http://b.test"]

    def test_parse_cors_json(self):
        assert parse_cors_origins('["http://a.test"]') == ["http://a.test"]

    def test_reports_data_path(self):
        settings = Settings(REPORTS_DATA_FILE="/srv/portal/reports.json")
        assert str(settings.REPORTS_DATA_PATH) == "/srv/portal/reports.json"


class TestLoggingContext:

    def test_request_id_roundtrip(self):
        request_id = generate_request_id()
        set_request_id(request_id)
        try:
            assert get_request_id() == request_id
        finally:
            set_request_id("")

    def test_json_formatter_includes_context(self):
        set_request_id("req-1")
        set_report_id("1700000000000")
        try:
            record = logging.LogRecord("portal", logging.INFO, __file__, 1, "hello", None, None)
            payload = json.loads(JSONFormatter().format(record))
        finally:
            set_request_id("")
            set_report_id("")

        assert payload["message"] == "hello"
        assert payload["request_id"] == "req-1"
        assert payload["report_id"] == "1700000000000"


class TestPortalLogger:

    def test_log_performance_warns_over_threshold(self, caplog):
        from portal.core.logging_config import logger

        with caplog.at_level(logging.DEBUG, logger="portal"):
            logger.log_performance("analytics", 1500, threshold_ms=1000)

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.exceeded_threshold is True

    def test_log_request(self, caplog):
        from portal.core.logging_config import logger

        with caplog.at_level(logging.INFO, logger="portal"):
            logger.log_request("GET", "/api/v1/reports", 200, 12.5)

        record = caplog.records[-1]
        assert record.http_status == 200
        assert "GET /api/v1/reports - 200" in record.getMessage()


class TestMiddlewareHelpers:

    @pytest.mark.parametrize("path, expected", [
        ("/api/v1/reports/1700000000000", "1700000000000"),
        ("/api/v1/reports/1700000000000/programs", "1700000000000"),
        ("/api/v1/reports/export/csv", ""),
        ("/api/v1/reports/college/C1", ""),
        ("/api/v1/reports/year/2080", ""),
        ("/api/v1/reports", ""),
        ("/api/v1/analytics", ""),
    ])
    def test_extract_report_id(self, path, expected):
        assert extract_report_id(path) == expected

    def test_should_skip_logging(self):
        assert should_skip_logging("/health")
        assert should_skip_logging("/static/app.js")
        assert not should_skip_logging("/api/v1/reports")
