import copy
import difflib
import logging
from typing import Any, Dict, List, Mapping, Optional

from src.utils.semrush.catalog import Catalog, ToolDefinition
from src.utils.semrush.errors import (
    AgentNotFoundError,
    MissingParametersError,
    ModeNotFoundError,
    ParameterValidationError,
    ToolNotFoundError,
    ToolValidationError,
    WrongModeError,
)
from src.utils.semrush.validator import validate

logger = logging.getLogger(__name__)


def suggest(name: str, candidates: List[str]) -> Optional[str]:
    """Closest candidate to ``name``, if any is reasonably similar"""
    matches = difflib.get_close_matches(name, candidates, n=1, cutoff=0.6)
    return matches[0] if matches else None


class RequestNormalizer:
    """
    Turns a raw (agent, mode, tool, params) request into a canonical parameter map.

    Missing required parameters fail fast in a single error. All other
    problems (bad values and unknown keys) are collected and reported together
    so the caller can fix everything in one round trip.
    """

    def __init__(self, catalog: Catalog):
        self.catalog = catalog

    def resolve(self, agent_name: str, mode_name: str, tool_name: str) -> ToolDefinition:
        """Look up a tool, raising a not-found or wrong-mode error when it is absent"""
        agent = self.catalog.get_agent(agent_name)
        if agent is None:
            known = [a.name for a in self.catalog.list_agents()]
            raise AgentNotFoundError(agent_name, known, suggest(str(agent_name), known))

        mode = agent.get_mode(mode_name)
        if mode is None:
            known = [m.name for m in agent.modes]
            raise ModeNotFoundError(
                agent_name, mode_name, known, suggest(str(mode_name), known)
            )

        tool = mode.get_tool(tool_name)
        if tool is None:
            correct_mode = self.catalog.find_tool_in_other_mode(agent_name, tool_name)
            if correct_mode is not None:
                raise WrongModeError(agent_name, mode_name, tool_name, correct_mode)

            known = [t.name for t in mode.tools]
            raise ToolNotFoundError(
                agent_name, mode_name, tool_name, known, suggest(str(tool_name), known)
            )

        return tool

    def normalize(
        self,
        agent_name: str,
        mode_name: str,
        tool_name: str,
        raw_params: Optional[Mapping[str, Any]],
    ) -> Dict[str, Any]:
        """
        Validate and normalize the parameters of a tool call.

        Args:
            agent_name: Agent holding the tool (e.g. ``domain``)
            mode_name: Mode within the agent (e.g. ``overview``)
            tool_name: Tool to call (e.g. ``domain_ranks``)
            raw_params: Caller-supplied parameters; ``None`` means no parameters

        Returns:
            Map of canonical parameter name to validated, transformed value,
            with defaults filled in and aliases resolved

        Raises:
            ToolValidationError: Any subclass, describing what to fix
        """
        try:
            return self._normalize(agent_name, mode_name, tool_name, raw_params)
        except ToolValidationError as e:
            logger.warning(
                f"Rejected {agent_name}/{mode_name}/{tool_name} ({e.kind}): {e.message}"
            )
            raise

    def _normalize(self, agent_name, mode_name, tool_name, raw_params):
        tool = self.resolve(agent_name, mode_name, tool_name)

        if raw_params is None:
            raw_params = {}
        if not isinstance(raw_params, Mapping):
            raise ParameterValidationError(
                tool.name, ["Tool parameters must be an object"]
            )

        resolved: Dict[str, Any] = {}
        consumed = set()
        missing = []

        for name, schema in tool.parameters.items():
            value = None
            found = False

            # A null value counts as "not supplied" but the key is still known
            for key in (name, *schema.aliases):
                if key not in raw_params:
                    continue
                consumed.add(key)
                if not found and raw_params[key] is not None:
                    value = raw_params[key]
                    found = True

            if found:
                resolved[name] = value
            elif schema.has_default:
                resolved[name] = copy.deepcopy(schema.default)
            elif schema.required:
                missing.append(name)

        if missing:
            raise MissingParametersError(tool.name, missing)

        normalized: Dict[str, Any] = {}
        errors = []
        for name, value in resolved.items():
            result = validate(value, tool.parameters[name], name)
            normalized[name] = result.value
            errors.extend(result.errors)

        for key in raw_params:
            if key in consumed:
                continue
            message = f"Unknown parameter: '{key}'"
            hint = suggest(str(key), list(tool.parameters))
            if hint:
                message += f". Did you mean '{hint}'?"
            errors.append(message)

        if errors:
            raise ParameterValidationError(tool.name, errors)

        return normalized
