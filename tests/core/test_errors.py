"""Tests for the error hierarchy — codes, statuses and the failure envelope."""

from mcp_gateway.core.errors import (
    AuthenticationError, ErrorContext, ExecutionError, InvalidRequestError,
    NoAvailableInstanceError, RateLimitExceededError, ServiceNotFoundError,
    ServiceOfflineError,
)


def test_caller_visible_codes_and_statuses():
    cases = [
        (InvalidRequestError("missing"), "INVALID_REQUEST", 400),
        (ServiceNotFoundError("x", []), "SERVICE_NOT_FOUND", 404),
        (ServiceOfflineError("x", "down"), "SERVICE_OFFLINE", 503),
        (NoAvailableInstanceError(), "NO_AVAILABLE_INSTANCE", 503),
        (ExecutionError("boom"), "EXECUTION_ERROR", 500),
    ]
    for error, code, http_status in cases:
        assert error.code == code
        assert error.http_status == http_status


def test_not_found_lists_available_services():
    error = ServiceNotFoundError("missing", ["svc-a", "svc-b"])
    assert "svc-a, svc-b" in error.message
    assert error.to_response()["error"]["details"] == {
        "availableServices": ["svc-a", "svc-b"],
    }


def test_offline_details_carry_cached_error():
    body = ServiceOfflineError("svc", "connection refused").to_response()
    assert body["error"]["details"] == "connection refused"


def test_to_response_includes_request_meta():
    context = ErrorContext(
        request_id="req-9", service_name="svc", operation_name="op",
        execution_time_ms=1.5,
    )
    body = ExecutionError("boom", context=context).to_response()
    assert body["success"] is False
    assert body["error"] == {"code": "EXECUTION_ERROR", "message": "boom"}
    assert body["meta"]["requestId"] == "req-9"
    assert body["meta"]["serviceName"] == "svc"
    assert body["meta"]["operationName"] == "op"
    assert body["meta"]["executionTimeMs"] == 1.5


def test_to_response_without_context_still_has_request_id():
    body = InvalidRequestError("x").to_response()
    assert body["meta"]["requestId"] == "unknown"
    assert "serviceName" not in body["meta"]


def test_authentication_error_names_the_credential():
    assert "secret" in AuthenticationError("INVALID_API_SECRET").message
    assert AuthenticationError().http_status == 401


def test_rate_limit_error_carries_retry_after():
    error = RateLimitExceededError(1500)
    assert error.http_status == 429
    assert error.details == {"retryAfterMs": 1500}
