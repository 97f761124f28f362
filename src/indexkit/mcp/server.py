"""indexkit MCP server entrypoint using FastMCP.

Exposes index operations (search, batched writes, atomic rebuilds, task
tracking) as tools.
Run with:
  - indexkit-mcp
  - or: python -m indexkit.mcp.server (ensure PYTHONPATH includes ./src)
"""
from __future__ import annotations

from typing import Optional

import structlog
from fastmcp import FastMCP

from indexkit.client.dispatcher import Dispatcher, HttpDispatcher
from indexkit.config import Settings, load_settings
from indexkit.exceptions import ConfigError
from indexkit.log import configure_logging
from indexkit.mcp.tools import register_index_tools

log = structlog.get_logger()


class AppState:
    """Application state shared by MCP tools."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.dispatcher: Optional[Dispatcher] = None

    def init_dispatcher(self) -> None:
        """Build the HTTP dispatcher from configuration, if configured."""
        try:
            self.dispatcher = HttpDispatcher.from_config(self.settings.search)
        except ConfigError as exc:
            log.warning("mcp.search_not_configured", reason=str(exc))
            self.dispatcher = None


# Global state and server instance
_state: Optional[AppState] = None
mcp = FastMCP("indexkit MCP Server")


# ----- Tools -----

@mcp.tool
def health() -> str:
    """Simple health check tool."""
    return "ok"


# ----- Entrypoint -----

def main() -> None:
    """Initialize state and run the MCP server."""
    global _state
    settings = load_settings()
    configure_logging(level=settings.app.log_level, json_format=settings.app.log_json)
    _state = AppState(settings)
    _state.init_dispatcher()
    register_index_tools(mcp, get_state=lambda: _state)
    # Choose transport based on configuration: stdio (default), http, or sse
    transport = settings.app.transport
    if transport in ("http", "sse"):
        mcp.run(transport=transport, host=settings.app.host, port=settings.app.port)
    else:
        mcp.run()


if __name__ == "__main__":  # pragma: no cover
    main()
