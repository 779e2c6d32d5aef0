"""Error handling middleware for MCP server."""

from typing import Any, Dict, Optional
import traceback
from datetime import datetime, timezone

import structlog
from fastmcp.server.middleware import Middleware, MiddlewareContext, CallNext

from ..exceptions import (
    MCPError,
    ErrorHandler,
    NetworkError,
    PackageNotFoundError,
    RateLimitError,
    TimeoutError,
    ValidationError,
    VersionNotFoundError,
)

logger = structlog.get_logger(__name__)


def find_mcp_error(error: BaseException) -> Optional[MCPError]:
    """Return the MCPError itself or the one a ToolError was raised from."""
    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        if isinstance(current, MCPError):
            return current
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return None


class ErrorHandlerMiddleware(Middleware):
    """Middleware for handling and logging errors consistently."""

    def __init__(
        self,
        capture_stack_trace: bool = True,
        include_error_details: bool = True,
        max_error_log_length: int = 5000
    ):
        """Initialize error handler middleware.

        Args:
            capture_stack_trace: Whether to capture full stack traces
            include_error_details: Whether to include error data in logs
            max_error_log_length: Maximum length of error logs
        """
        self.capture_stack_trace = capture_stack_trace
        self.include_error_details = include_error_details
        self.max_error_log_length = max_error_log_length

        # Error statistics
        self._error_counts = {
            "total": 0,
            "by_type": {},
            "by_method": {}
        }

    async def on_message(self, context: MiddlewareContext, call_next: CallNext) -> Any:
        """Handle errors from downstream handlers."""
        method = context.method or "unknown"
        tool_name = getattr(context.message, "name", None)

        try:
            return await call_next(context)

        except Exception as e:
            # Tools raise ToolError from the domain error
            mcp_error = find_mcp_error(e)
            if mcp_error is not None:
                self._log_mcp_error(mcp_error, method, tool_name)
            else:
                self._log_unexpected_error(e, method, tool_name)

            # Re-raise to let FastMCP handle the error response format
            raise

    def _record(self, error_type: str, method: str) -> None:
        self._error_counts["total"] += 1
        self._error_counts["by_type"][error_type] = self._error_counts["by_type"].get(error_type, 0) + 1
        self._error_counts["by_method"][method] = self._error_counts["by_method"].get(method, 0) + 1

    def _log_mcp_error(self, error: MCPError, method: str, tool_name: Optional[str]):
        """Log MCP errors with appropriate severity."""
        error_context = ErrorHandler.create_error_context(
            error,
            method=method,
            tool_name=tool_name
        )
        if not self.include_error_details:
            error_context.pop("error_data", None)

        self._record(type(error).__name__, method)

        # Choose log level based on error type
        if isinstance(error, RateLimitError):
            logger.info("Rate limit error", **error_context)
        elif isinstance(error, (ValidationError, PackageNotFoundError, VersionNotFoundError)):
            logger.warning("Client error", **error_context)
        elif isinstance(error, (TimeoutError, NetworkError)):
            logger.error("Upstream error", **error_context)
        else:
            logger.error("MCP error", **error_context)

    def _log_unexpected_error(self, error: Exception, method: str, tool_name: Optional[str]):
        """Log unexpected errors with full stack trace."""
        error_context: Dict[str, Any] = {
            "method": method,
            "tool_name": tool_name,
            "error_type": type(error).__name__,
            "error_message": str(error),
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

        # Capture stack trace if enabled
        if self.capture_stack_trace:
            stack_trace = "".join(traceback.format_exception(error))
            if len(stack_trace) > self.max_error_log_length:
                stack_trace = stack_trace[:self.max_error_log_length] + "... [TRUNCATED]"
            error_context["stack_trace"] = stack_trace

        self._record("UnexpectedError", method)

        logger.error(
            "Unexpected error in request processing",
            **error_context
        )

    def get_error_statistics(self) -> Dict[str, Any]:
        """Get current error statistics."""
        by_type = self._error_counts["by_type"]
        by_method = self._error_counts["by_method"]
        return {
            "total_errors": self._error_counts["total"],
            "errors_by_type": dict(by_type),
            "errors_by_method": dict(by_method),
            "most_common_error": max(by_type.items(), key=lambda x: x[1])[0] if by_type else None,
            "most_error_prone_method": max(by_method.items(), key=lambda x: x[1])[0] if by_method else None
        }

    def reset_statistics(self):
        """Reset error statistics."""
        self._error_counts = {
            "total": 0,
            "by_type": {},
            "by_method": {}
        }
