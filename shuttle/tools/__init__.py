"""Tool registry, executor and external tool sources."""

from .executor import ExecutorOptions, ToolExecutor
from .mcp_client import McpClient, McpServerConfig, connect_mcp
from .mcp_manager import McpManager
from .registry import ToolRegistry, define_model_tool, define_tool
from .schema import PydanticSchema

__all__ = [
    "ExecutorOptions", "ToolExecutor",
    "McpClient", "McpServerConfig", "connect_mcp", "McpManager",
    "ToolRegistry", "define_model_tool", "define_tool",
    "PydanticSchema",
]
