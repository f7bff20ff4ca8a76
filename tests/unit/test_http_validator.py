import json

import httpx
import pytest

from invoice_service.validation.exceptions import ValidationServiceError
from invoice_service.validation.http_validator import HttpDocumentValidator
from invoice_service.validation.models import Severity


def _make_validator(handler) -> HttpDocumentValidator:
    client = httpx.Client(base_url="http://validator.test", transport=httpx.MockTransport(handler))
    return HttpDocumentValidator(base_url="http://validator.test", timeout_seconds=5, client=client)


def _outcome(*issues: dict) -> httpx.Response:
    return httpx.Response(200, json={"resourceType": "OperationOutcome", "issue": list(issues)})


class TestValidate:
    def test_posts_resource_to_validate_endpoint(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _outcome()

        _make_validator(handler).validate("Invoice", {"resourceType": "Invoice"})

        assert seen[0].method == "POST"
        assert seen[0].url.path == "/Invoice/$validate"
        assert json.loads(seen[0].content) == {"resourceType": "Invoice"}

    def test_maps_issues_to_messages(self) -> None:
        validator = _make_validator(
            lambda _: _outcome(
                {"severity": "error", "diagnostics": "bad total", "expression": ["Invoice.totalGross"]},
                {"severity": "information", "code": "informational"},
            )
        )

        messages = validator.validate("Invoice", {})

        assert messages[0].severity is Severity.ERROR
        assert messages[0].message == "bad total"
        assert messages[0].location == "Invoice.totalGross"
        assert messages[1].severity is Severity.INFORMATION
        assert messages[1].message == "informational"
        assert messages[1].location is None

    def test_unknown_severity_counts_as_error(self) -> None:
        validator = _make_validator(lambda _: _outcome({"severity": "catastrophic"}))
        assert validator.validate("Invoice", {})[0].severity is Severity.ERROR

    def test_unprocessable_response_still_yields_messages(self) -> None:
        validator = _make_validator(
            lambda _: httpx.Response(422, json={"issue": [{"severity": "fatal", "diagnostics": "x"}]})
        )
        assert validator.validate("Invoice", {})[0].severity is Severity.FATAL


class TestFailures:
    def test_server_error_raises(self) -> None:
        validator = _make_validator(lambda _: httpx.Response(503))
        with pytest.raises(ValidationServiceError, match="503"):
            validator.validate("Invoice", {})

    def test_invalid_json_raises(self) -> None:
        validator = _make_validator(lambda _: httpx.Response(200, content=b"<html>"))
        with pytest.raises(ValidationServiceError, match="invalid JSON"):
            validator.validate("Invoice", {})

    def test_connection_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ValidationServiceError, match="request failed"):
            _make_validator(handler).validate("Invoice", {})
