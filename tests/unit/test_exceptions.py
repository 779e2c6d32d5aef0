"""Unit tests for custom exceptions and error handling."""

import asyncio

from npm_readme_mcp.exceptions import (
    ErrorCode,
    ErrorHandler,
    MCPError,
    NetworkError,
    PackageNotFoundError,
    RateLimitError,
    TimeoutError,
    ValidationError,
    VersionNotFoundError,
)


class TestMCPError:
    """Test MCPError base class."""

    def test_mcp_error_creation(self):
        """Test creating MCPError."""
        error = MCPError("Test error", ErrorCode.INTERNAL_ERROR, {"detail": "test"})

        assert str(error) == "Test error"
        assert error.code == ErrorCode.INTERNAL_ERROR
        assert error.kind == "INTERNAL_ERROR"
        assert error.data == {"detail": "test"}

    def test_mcp_error_to_dict(self):
        """The kind is always present in data."""
        error = MCPError("Test error", ErrorCode.VALIDATION_ERROR, {"field": "query"}, kind="CUSTOM")

        assert error.to_dict() == {
            "code": ErrorCode.VALIDATION_ERROR.value,
            "message": "Test error",
            "data": {"kind": "CUSTOM", "field": "query"},
        }


class TestDomainErrors:
    """Test the kind/code table of domain errors."""

    def test_validation_error(self):
        """Long values are truncated to 100 characters."""
        error = ValidationError("bad", kind="INVALID_LIMIT", field="limit", value="x" * 500)

        assert error.code == ErrorCode.VALIDATION_ERROR
        assert error.kind == "INVALID_LIMIT"
        assert error.data["field"] == "limit"
        assert len(error.data["value"]) == 100

    def test_not_found_errors(self):
        package_error = PackageNotFoundError("ghost")
        version_error = VersionNotFoundError("lodash", "9.9.9")

        assert package_error.code == ErrorCode.RESOURCE_NOT_FOUND
        assert package_error.kind == "PACKAGE_NOT_FOUND"
        assert "ghost" in package_error.message
        assert version_error.code == ErrorCode.RESOURCE_NOT_FOUND
        assert version_error.kind == "VERSION_NOT_FOUND"
        assert version_error.data["version"] == "9.9.9"

    def test_network_error(self):
        error = NetworkError("connection refused", service="npm", status_code=502)

        assert error.code == ErrorCode.NETWORK_ERROR
        assert error.kind == "NETWORK_ERROR"
        assert error.message == "Network error: connection refused"
        assert error.data == {"service": "npm", "status_code": 502}

    def test_rate_limit_error(self):
        error = RateLimitError("github", retry_after=60)

        assert error.code == ErrorCode.RATE_LIMIT_ERROR
        assert error.kind == "RATE_LIMIT_EXCEEDED"
        assert error.data["retry_after_human"] == "60 seconds"

    def test_timeout_error(self):
        error = TimeoutError(operation="get", timeout_seconds=30)

        assert error.code == ErrorCode.TIMEOUT_ERROR
        assert error.kind == "TIMEOUT"
        assert error.data == {"operation": "get", "timeout_seconds": 30}


class TestErrorHandler:
    """Test ErrorHandler conversions."""

    def test_handle_mcp_error(self):
        """MCP errors keep their code and kind."""
        response = ErrorHandler.handle_error(PackageNotFoundError("ghost"), request_id="req-1")

        assert response["jsonrpc"] == "2.0"
        assert response["id"] == "req-1"
        assert response["error"]["code"] == ErrorCode.RESOURCE_NOT_FOUND.value
        assert response["error"]["data"]["kind"] == "PACKAGE_NOT_FOUND"

    def test_handle_asyncio_timeout(self):
        response = ErrorHandler.handle_error(asyncio.TimeoutError())

        assert response["error"]["code"] == ErrorCode.TIMEOUT_ERROR.value
        assert response["error"]["data"]["kind"] == "TIMEOUT"

    def test_handle_value_error(self):
        response = ErrorHandler.handle_error(ValueError("bad input"))

        assert response["error"]["code"] == ErrorCode.VALIDATION_ERROR.value
        assert response["error"]["message"] == "bad input"

    def test_handle_unexpected_error(self):
        """Unknown exceptions become internal errors."""
        response = ErrorHandler.handle_error(RuntimeError("kaboom"))

        assert response["error"]["code"] == ErrorCode.INTERNAL_ERROR.value
        assert response["error"]["message"] == "Internal server error"
        assert response["error"]["data"]["exception_type"] == "RuntimeError"

    def test_create_error_context(self):
        context = ErrorHandler.create_error_context(
            ValidationError("bad", kind="INVALID_LIMIT"),
            method="tools/call",
            tool_name="search_packages",
        )

        assert context["error_type"] == "ValidationError"
        assert context["error_kind"] == "INVALID_LIMIT"
        assert context["error_code"] == ErrorCode.VALIDATION_ERROR.value
        assert context["tool_name"] == "search_packages"
