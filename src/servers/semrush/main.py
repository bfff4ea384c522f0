import os
import sys
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

project_root = os.path.abspath(
    os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(__file__))))
)
sys.path.insert(0, project_root)
sys.path.insert(0, os.path.join(project_root, "src"))

from dotenv import load_dotenv
from mcp.types import Resource, TextContent, Tool
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from src.servers.semrush.handlers.catalog import build_catalog
from src.utils.semrush.catalog import Catalog
from src.utils.semrush.client import SemrushClient
from src.utils.semrush.errors import NOT_FOUND
from src.utils.semrush.executor import describe_agent, execute
from src.utils.semrush.normalizer import RequestNormalizer
from src.utils.semrush.util import (
    authenticate_and_save_semrush_key,
    get_semrush_credentials,
)
from src.utils.utils import ToolError, ToolResponse

load_dotenv()

SERVICE_NAME = Path(__file__).parent.name
TOOL_PREFIX = f"{SERVICE_NAME}_"

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(SERVICE_NAME)


def describe_parameter(name: str, prop: Dict[str, Any], required: bool) -> str:
    """One line summary of a parameter's JSON Schema property"""
    details = [prop["type"], "required" if required else "optional"]
    if "default" in prop:
        details.append(f"default: {json.dumps(prop['default'])}")
    if "enum" in prop:
        details.append(f"one of: {', '.join(str(v) for v in prop['enum'])}")
    if "minimum" in prop or "maximum" in prop:
        details.append(f"range: {prop.get('minimum', '')}-{prop.get('maximum', '')}")
    if "maxItems" in prop:
        details.append(f"max items: {prop['maxItems']}")
    return f"{name} ({', '.join(details)}): {prop['description']}"


def agent_tool(catalog: Catalog, agent_name: str) -> Tool:
    """Build the MCP tool exposing every mode and tool of one agent"""
    agent = describe_agent(catalog, agent_name)

    lines = [agent["description"], "", "Available modes and tools:"]
    for mode in agent["modes"]:
        lines.append(f"- mode '{mode['name']}': {mode['description']}")
        for tool in mode["tools"]:
            lines.append(f"    - tool '{tool['name']}': {tool['description']}")
            schema = tool["inputSchema"]
            for name, prop in schema["properties"].items():
                required = name in schema["required"]
                lines.append(f"        - {describe_parameter(name, prop, required)}")
            for example in tool["examples"]:
                lines.append(f"        example params: {json.dumps(example)}")
    lines.append("")
    lines.append(
        "Call with {\"mode\": ..., \"tool\": ..., \"params\": {...}}. Invalid "
        "calls return an error listing what to fix."
    )

    return Tool(
        name=f"{TOOL_PREFIX}{agent['name']}",
        description="\n".join(lines),
        inputSchema={
            "type": "object",
            "properties": {
                "mode": {
                    "type": "string",
                    "description": "Mode of the agent: "
                    + ", ".join(mode["name"] for mode in agent["modes"]),
                },
                "tool": {
                    "type": "string",
                    "description": "Tool to run within the mode",
                },
                "params": {
                    "type": "object",
                    "description": "Parameters for the tool, as listed in the "
                    "tool description",
                },
            },
            "required": ["mode", "tool"],
        },
    )


def create_server(
    user_id,
    api_key=None,
    catalog: Optional[Catalog] = None,
    client: Optional[SemrushClient] = None,
):
    """Create a new server instance with optional user context"""
    server = Server("semrush-server")

    server.user_id = user_id
    server.api_key = api_key
    server.catalog = catalog or build_catalog()
    server.normalizer = RequestNormalizer(server.catalog)
    server.semrush_client = client

    def get_client() -> SemrushClient:
        if server.semrush_client is None:
            key = get_semrush_credentials(server.user_id, SERVICE_NAME, server.api_key)
            server.semrush_client = SemrushClient(key)
        return server.semrush_client

    @server.list_resources()
    async def handle_list_resources(cursor: Optional[str] = None) -> list[Resource]:
        logger.info(f"Listing resources for user: {server.user_id}")
        return []

    @server.list_tools()
    async def handle_list_tools() -> list[Tool]:
        """List one tool per Semrush agent"""
        logger.info(f"Listing tools for user: {server.user_id}")
        return [
            agent_tool(server.catalog, agent.name)
            for agent in server.catalog.list_agents()
        ]

    @server.call_tool()
    async def handle_call_tool(
        name: str, arguments: Dict[str, Any] | None
    ) -> list[TextContent]:
        """Run a tool call of the form {mode, tool, params} against an agent"""
        arguments = arguments or {}
        mode = arguments.get("mode")
        tool = arguments.get("tool")
        logger.info(f"Tool: {name} ({mode}/{tool}), User: {server.user_id}")

        if not name.startswith(TOOL_PREFIX):
            response = ToolResponse(
                success=False,
                data=None,
                error=ToolError(kind=NOT_FOUND, message=f"Unknown tool: {name}"),
            )
        else:
            response = await execute(
                server.catalog,
                get_client,
                name[len(TOOL_PREFIX) :],
                mode,
                tool,
                arguments.get("params"),
                normalizer=server.normalizer,
            )

        return [TextContent(type="text", text=json.dumps(response, indent=2))]

    return server


server = create_server


def get_initialization_options(server_instance: Server) -> InitializationOptions:
    """Get the initialization options for the server"""
    return InitializationOptions(
        server_name="semrush-server",
        server_version="1.0.0",
        capabilities=server_instance.get_capabilities(
            notification_options=NotificationOptions(),
            experimental_capabilities={},
        ),
    )


# Main handler allows users to auth
if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1].lower() == "auth":
        user_id = "local"
        authenticate_and_save_semrush_key(user_id, SERVICE_NAME)
    else:
        print("Usage:")
        print("  python main.py auth - Run authentication flow for a user")
        print("Note: To run the server normally, use src/servers/local.py.")
