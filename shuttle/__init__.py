"""shuttle: an agent orchestration engine.

The loop alternates between an inference backend and the tool calls the
model requests, until the model answers without tool calls or the step
budget runs out::

    from shuttle import Agent, AgentConfig, define_tool, ToolResult
    from shuttle.providers import OpenAIProvider

    agent = Agent(OpenAIProvider(), AgentConfig(max_steps=10), tools=[...])
    session = agent.create_session("You are helpful.")
    await agent.run(session, "What's the weather in Tokyo?")

    async for event in agent.stream(session, "And in Paris?"):
        ...
"""

from .agent import Agent, create_agent
from .config import AgentConfig
from .errors import (
    AgentAbortError,
    InferenceError,
    MaxStepsExceededError,
    McpError,
    ShuttleError,
    ToolExecutionError,
    ToolNotFoundError,
    ToolTimeoutError,
)
from .events import EventBus
from .session import (
    ModelConfig,
    Session,
    SessionStatus,
    add_user_message,
    clear_session_messages,
    create_session,
    get_last_assistant_message,
    get_text_content,
    update_session_status,
)
from .tools import (
    ExecutorOptions,
    McpClient,
    McpManager,
    McpServerConfig,
    ToolExecutor,
    ToolRegistry,
    connect_mcp,
    define_model_tool,
    define_tool,
)
from .types import (
    AgentEvent,
    ExecutionContext,
    Message,
    TextBlock,
    Tool,
    ToolCallBlock,
    ToolDefinition,
    ToolResult,
    ToolResultBlock,
)

__version__ = "0.1.0"

__all__ = [
    "Agent", "create_agent", "AgentConfig",
    "AgentAbortError", "InferenceError", "MaxStepsExceededError", "McpError", "ShuttleError",
    "ToolExecutionError", "ToolNotFoundError", "ToolTimeoutError",
    "EventBus",
    "ModelConfig", "Session", "SessionStatus", "add_user_message", "clear_session_messages",
    "create_session", "get_last_assistant_message", "get_text_content", "update_session_status",
    "ExecutorOptions", "McpClient", "McpManager", "McpServerConfig", "ToolExecutor",
    "ToolRegistry", "connect_mcp", "define_model_tool", "define_tool",
    "AgentEvent", "ExecutionContext", "Message", "TextBlock", "Tool", "ToolCallBlock",
    "ToolDefinition", "ToolResult", "ToolResultBlock",
]
