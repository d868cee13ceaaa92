"""Tool system — registry, executor, builtin Amap tools."""
from .registry import register_tool, get_tool, all_tools, openai_tools, check_registry, ToolName, ToolParam
from .amap import ToolContext
from .executor import execute_tool

# Auto-import builtin tools to trigger @register_tool decorators
from .builtin import *  # noqa

check_registry()
