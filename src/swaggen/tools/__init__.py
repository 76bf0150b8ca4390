"""Tool surface: handler implementations and the MCP server exposing them."""

from swaggen.tools.handlers import ToolHandlers
from swaggen.tools.server import create_server, run_server

__all__ = ["ToolHandlers", "create_server", "run_server"]
