"""Main MCP server implementation for Factorio blueprint editing."""

import asyncio
import json
import logging
from typing import Optional

from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions
from mcp.shared.exceptions import McpError
from mcp.types import (
    CallToolRequest,
    CallToolResult,
    ServerResult,
    TextContent,
    Tool,
)

from .config.settings import Settings, is_enabled
from .core.catalog import get_catalog
from .core.layout_store import LayoutStore
from .persistence.blueprint_persistence import BlueprintPersistence
from .tools.blueprint_tools import BlueprintTools

logger = logging.getLogger(__name__)

SERVER_NAME = "factorio-mcp-server"
SERVER_VERSION = "0.1.0"


class FactorioBlueprintMCPServer:
    """MCP Server exposing blueprint editing tools."""

    def __init__(self, store: LayoutStore, persistence: Optional[BlueprintPersistence] = None):
        """Initialize the MCP server around a layout store.

        Args:
            store: Layout store holding the blueprint being edited
            persistence: Blueprint file writer for saving after changes
        """
        self.store = store
        self.persistence = persistence
        self.blueprint_tools = BlueprintTools(store, persistence)

        # Create MCP server instance
        self.server = Server(SERVER_NAME)

        # Register handlers
        self._register_handlers()

    def _register_handlers(self):
        """Register all MCP handlers."""

        @self.server.list_tools()
        async def handle_list_tools() -> list[Tool]:
            """List all available tools."""
            return self.blueprint_tools.get_tools()

        async def handle_call_tool(request: CallToolRequest) -> ServerResult:
            """Route tool calls to the blueprint tools.

            Registered directly so that McpError reaches the session and is
            sent as a JSON-RPC error carrying its code.
            """
            name = request.params.name
            try:
                result = await self.blueprint_tools.handle_tool(name, request.params.arguments)
            except McpError as e:
                logger.error(f"Tool {name} failed: {e.error.message}")
                raise

            return ServerResult(CallToolResult(
                content=[TextContent(type="text", text=json.dumps(result, indent=2))],
                isError=False,
            ))

        self.server.request_handlers[CallToolRequest] = handle_call_tool

    async def run(self):
        """Run the MCP server over stdio."""
        from mcp.server.stdio import stdio_server

        if self.persistence is not None:
            # Make sure the blueprint file exists from the first moment on
            self.persistence.ensure_dir()
            self.persistence.save(self.store)

        async with stdio_server() as (read_stream, write_stream):
            logger.info("Factorio MCP Server running on stdio")
            await self.server.run(
                read_stream,
                write_stream,
                InitializationOptions(
                    server_name=SERVER_NAME,
                    server_version=SERVER_VERSION,
                    capabilities=self.server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={}
                    )
                )
            )


def create_server(settings: Settings) -> FactorioBlueprintMCPServer:
    """Build a server whose blueprint is seeded from the configured file.

    Raises:
        PersistenceError: If strict startup is enabled and the file is undecodable
    """
    persistence = BlueprintPersistence(settings.blueprint_path)
    store = persistence.load_initial(get_catalog(), strict=is_enabled('strict_startup'))
    return FactorioBlueprintMCPServer(store, persistence)


def main():
    """Main entry point for the MCP server."""
    settings = Settings.from_env()

    # Logging goes to stderr; stdout carries the protocol
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))

    server = create_server(settings)
    try:
        asyncio.run(server.run())
    except KeyboardInterrupt:
        logger.info("Factorio MCP Server stopped")


if __name__ == "__main__":
    main()
