"""Tool registration modules for the indexkit MCP server."""

from .index import register_index_tools

__all__ = [
    "register_index_tools",
]
