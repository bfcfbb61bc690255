"""Core type definitions: re-exported from sub-modules."""

from .messages import (
    ContentBlock, Message, Role, TextBlock, ToolCallBlock, ToolResultBlock, generate_id,
)
from .tools import ExecutionContext, JSONSchema, Tool, ToolDefinition, ToolExecute, ToolResult
from .llm import (
    FinishReason, Finish, InferenceEvent, InferenceProvider, InferenceRequest,
    InferenceResponse, StreamError, TextDelta, ToolCallDelta, ToolCallEnd, ToolCallStart, Usage,
)
from .events import (
    AgentEvent, DoneEvent, ErrorEvent, MessageEndEvent, MessageStartEvent, StepEvent,
    TextDoneEvent, TextEvent, ToolCallEvent, ToolResultEvent,
)

__all__ = [
    "ContentBlock", "Message", "Role", "TextBlock", "ToolCallBlock", "ToolResultBlock", "generate_id",
    "ExecutionContext", "JSONSchema", "Tool", "ToolDefinition", "ToolExecute", "ToolResult",
    "FinishReason", "Finish", "InferenceEvent", "InferenceProvider", "InferenceRequest",
    "InferenceResponse", "StreamError", "TextDelta", "ToolCallDelta", "ToolCallEnd",
    "ToolCallStart", "Usage",
    "AgentEvent", "DoneEvent", "ErrorEvent", "MessageEndEvent", "MessageStartEvent", "StepEvent",
    "TextDoneEvent", "TextEvent", "ToolCallEvent", "ToolResultEvent",
]
