import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from src.utils.semrush.schema import ParameterSchema

logger = logging.getLogger(__name__)


class ToolDefinition:
    """
    A named group of parameter schemas plus a description and usage examples.

    ``handler`` is the coroutine run with the normalized parameters; it is
    stored here so the catalog stays the single place tools are declared.
    Aliases must not collide with parameter names or with each other.
    """

    def __init__(
        self,
        name: str,
        description: str,
        parameters: Optional[Dict[str, ParameterSchema]] = None,
        examples: Optional[List[Dict[str, Any]]] = None,
        handler: Optional[Callable[..., Awaitable[Any]]] = None,
    ):
        self.name = name
        self.description = description
        self.parameters = dict(parameters or {})
        self.examples = list(examples or [])
        self.handler = handler
        self._alias_map = self._build_alias_map()

    def _build_alias_map(self) -> Dict[str, str]:
        alias_map: Dict[str, str] = {}
        for param_name, schema in self.parameters.items():
            for alias in schema.aliases:
                if alias in self.parameters:
                    raise ValueError(
                        f"Alias '{alias}' of '{param_name}' in tool '{self.name}' "
                        "collides with a parameter name"
                    )
                if alias in alias_map:
                    raise ValueError(
                        f"Alias '{alias}' in tool '{self.name}' is declared by both "
                        f"'{alias_map[alias]}' and '{param_name}'"
                    )
                alias_map[alias] = param_name
        return alias_map

    def canonical_name(self, name: str) -> Optional[str]:
        """Resolve a parameter or alias name to the parameter it refers to"""
        if name in self.parameters:
            return name
        return self._alias_map.get(name)

    def input_schema(self) -> Dict[str, Any]:
        """JSON Schema for this tool's parameters"""
        return {
            "type": "object",
            "properties": {
                name: schema.to_json_schema() for name, schema in self.parameters.items()
            },
            "required": [
                name for name, schema in self.parameters.items() if schema.required
            ],
        }

    def __repr__(self) -> str:
        return f"ToolDefinition(name={self.name!r})"


class ModeDefinition:
    """Sub-grouping of related tools within an agent"""

    def __init__(
        self,
        name: str,
        description: str,
        tools: Optional[List[ToolDefinition]] = None,
    ):
        self.name = name
        self.description = description
        self._tools: Dict[str, ToolDefinition] = {}
        for tool in tools or []:
            self.add_tool(tool)

    def add_tool(self, tool: ToolDefinition) -> None:
        if tool.name in self._tools:
            logger.debug(f"Replacing tool '{tool.name}' in mode '{self.name}'")
        self._tools[tool.name] = tool

    def get_tool(self, name: str) -> Optional[ToolDefinition]:
        return self._tools.get(name) if isinstance(name, str) else None

    def has_tool(self, name: str) -> bool:
        return isinstance(name, str) and name in self._tools

    @property
    def tools(self) -> List[ToolDefinition]:
        return list(self._tools.values())

    def __repr__(self) -> str:
        return f"ModeDefinition(name={self.name!r}, tools={list(self._tools)!r})"


class AgentDefinition:
    """Top-level grouping of modes, e.g. domain or keyword analysis"""

    def __init__(
        self,
        name: str,
        description: str,
        modes: Optional[List[ModeDefinition]] = None,
    ):
        self.name = name
        self.description = description
        self._modes: Dict[str, ModeDefinition] = {}
        for mode in modes or []:
            self.add_mode(mode)

    def add_mode(self, mode: ModeDefinition) -> None:
        if mode.name in self._modes:
            logger.debug(f"Replacing mode '{mode.name}' in agent '{self.name}'")
        self._modes[mode.name] = mode

    def get_mode(self, name: str) -> Optional[ModeDefinition]:
        return self._modes.get(name) if isinstance(name, str) else None

    @property
    def modes(self) -> List[ModeDefinition]:
        return list(self._modes.values())

    def __repr__(self) -> str:
        return f"AgentDefinition(name={self.name!r}, modes={list(self._modes)!r})"


class Catalog:
    """
    Root registry of agents -> modes -> tools.

    Populated once at startup and only read afterwards. Lookups return None
    for unknown names; building error messages is left to the normalizer.
    """

    def __init__(self, agents: Optional[List[AgentDefinition]] = None):
        self._agents: Dict[str, AgentDefinition] = {}
        for agent in agents or []:
            self.register_agent(agent)

    def register_agent(self, agent: AgentDefinition) -> None:
        """Insert an agent by name, replacing any earlier agent of that name"""
        if agent.name in self._agents:
            logger.debug(f"Replacing agent '{agent.name}'")
        self._agents[agent.name] = agent

    def get_agent(self, agent_name: str) -> Optional[AgentDefinition]:
        if not isinstance(agent_name, str):
            return None
        return self._agents.get(agent_name)

    def get_mode(self, agent_name: str, mode_name: str) -> Optional[ModeDefinition]:
        agent = self.get_agent(agent_name)
        if agent is None:
            return None
        return agent.get_mode(mode_name)

    def get_tool(
        self, agent_name: str, mode_name: str, tool_name: str
    ) -> Optional[ToolDefinition]:
        mode = self.get_mode(agent_name, mode_name)
        if mode is None:
            return None
        return mode.get_tool(tool_name)

    def find_tool_in_other_mode(self, agent_name: str, tool_name: str) -> Optional[str]:
        """Return the first mode of ``agent_name`` that declares ``tool_name``"""
        agent = self.get_agent(agent_name)
        if agent is None:
            return None
        for mode in agent.modes:
            if mode.has_tool(tool_name):
                return mode.name
        return None

    def list_agents(self) -> List[AgentDefinition]:
        return list(self._agents.values())

    def list_modes(self, agent_name: str) -> List[ModeDefinition]:
        agent = self.get_agent(agent_name)
        return agent.modes if agent else []

    def list_tools(self, agent_name: str, mode_name: str) -> List[ToolDefinition]:
        mode = self.get_mode(agent_name, mode_name)
        return mode.tools if mode else []
