import logging
from typing import Any, Callable, Dict, Mapping, Optional

from src.utils.semrush.catalog import Catalog
from src.utils.semrush.client import SemrushClient
from src.utils.semrush.errors import EXECUTION, SemrushApiError, ToolValidationError
from src.utils.semrush.normalizer import RequestNormalizer
from src.utils.utils import ToolError, ToolResponse

logger = logging.getLogger(__name__)


def describe_agent(catalog: Catalog, agent_name: str) -> Dict[str, Any]:
    """Serializable description of one agent, its modes and their tools"""
    agent = catalog.get_agent(agent_name)
    if agent is None:
        raise ValueError(f"Unknown agent: {agent_name}")

    return {
        "name": agent.name,
        "description": agent.description,
        "modes": [
            {
                "name": mode.name,
                "description": mode.description,
                "tools": [
                    {
                        "name": tool.name,
                        "description": tool.description,
                        "examples": [dict(example) for example in tool.examples],
                        "inputSchema": tool.input_schema(),
                    }
                    for tool in mode.tools
                ],
            }
            for mode in agent.modes
        ],
    }


def describe_catalog(catalog: Catalog) -> Dict[str, Dict[str, Any]]:
    """Discovery listing for every registered agent, keyed by agent name"""
    return {
        agent.name: describe_agent(catalog, agent.name)
        for agent in catalog.list_agents()
    }


def _failure(error: ToolError) -> ToolResponse:
    return ToolResponse(success=False, data=None, error=error)


async def execute(
    catalog: Catalog,
    get_client: Callable[[], SemrushClient],
    agent_name: str,
    mode_name: str,
    tool_name: str,
    raw_params: Optional[Mapping[str, Any]],
    normalizer: Optional[RequestNormalizer] = None,
) -> ToolResponse:
    """
    Normalize a tool call and run its handler.

    The client is only requested once the call has been validated, so a
    malformed request is reported even when no API key is configured.

    Args:
        catalog: Catalog holding the tool
        get_client: Returns the Semrush client the handler runs against
        agent_name: Agent name
        mode_name: Mode name
        tool_name: Tool name
        raw_params: Caller-supplied parameters
        normalizer: Normalizer to reuse; a new one is built when omitted

    Returns:
        ToolResponse with the handler's data, or an error payload tagged
        validation, not-found, wrong-mode or execution
    """
    normalizer = normalizer or RequestNormalizer(catalog)

    try:
        params = normalizer.normalize(agent_name, mode_name, tool_name, raw_params)
    except ToolValidationError as e:
        return _failure(e.to_payload())

    tool = catalog.get_tool(agent_name, mode_name, tool_name)
    if tool.handler is None:
        return _failure(
            ToolError(kind=EXECUTION, message=f"Tool '{tool_name}' has no handler")
        )

    try:
        data = await tool.handler(get_client(), params)
    except SemrushApiError as e:
        return _failure(
            ToolError(
                kind=EXECUTION,
                message=e.readable_message(),
                api_error_kind=e.kind,
                status=e.status,
                endpoint=e.endpoint,
            )
        )
    except Exception as e:
        logger.exception(f"Error executing {agent_name}/{mode_name}/{tool_name}")
        return _failure(
            ToolError(kind=EXECUTION, message=str(e), api_error_kind="unknown")
        )

    return ToolResponse(success=True, data=data, error=None)
