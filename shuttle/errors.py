"""Structured error hierarchy for the orchestration loop."""

from __future__ import annotations


class ShuttleError(Exception):
    def __init__(self, code: str, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.cause = cause

    @classmethod
    def wrap(cls, err: BaseException) -> ShuttleError:
        if isinstance(err, ShuttleError):
            return err
        return ShuttleError("UNKNOWN", str(err), err if isinstance(err, Exception) else None)


class ToolNotFoundError(ShuttleError):
    def __init__(self, tool_name: str) -> None:
        super().__init__("TOOL_NOT_FOUND", f"Tool not found: {tool_name}")
        self.tool_name = tool_name


class ToolExecutionError(ShuttleError):
    def __init__(
        self,
        tool_name: str,
        message: str | None = None,
        cause: Exception | None = None,
        code: str = "TOOL_EXECUTION_ERROR",
    ) -> None:
        super().__init__(code, message or f"Tool execution failed: {tool_name}", cause)
        self.tool_name = tool_name


class ToolTimeoutError(ToolExecutionError):
    def __init__(self, tool_name: str, timeout_ms: int) -> None:
        super().__init__(
            tool_name,
            f"Tool execution timed out after {timeout_ms}ms",
            code="TOOL_TIMEOUT",
        )
        self.timeout_ms = timeout_ms


class MaxStepsExceededError(ShuttleError):
    def __init__(self, max_steps: int, partial_content: str = "") -> None:
        super().__init__("MAX_STEPS_EXCEEDED", f"Max steps exceeded: {max_steps}")
        self.max_steps = max_steps
        self.partial_content = partial_content


class InferenceError(ShuttleError):
    def __init__(
        self,
        provider: str,
        message: str,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__("INFERENCE_ERROR", message, cause)
        self.provider = provider
        self.status_code = status_code


class AgentAbortError(ShuttleError):
    def __init__(self) -> None:
        super().__init__("AGENT_ABORT", "Agent execution was aborted")


class McpError(ShuttleError):
    def __init__(self, server: str, message: str, cause: Exception | None = None) -> None:
        super().__init__("MCP_ERROR", message, cause)
        self.server = server
