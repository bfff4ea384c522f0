from typing import Any, Dict, List, Optional

from src.utils.utils import ToolError

# Kind tags surfaced to callers at the MCP boundary
VALIDATION = "validation"
NOT_FOUND = "not-found"
WRONG_MODE = "wrong-mode"
EXECUTION = "execution"


class ToolValidationError(ValueError):
    """Base class for every error raised while resolving or normalizing a request"""

    kind = VALIDATION

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = list(errors or [message])

    def to_payload(self) -> ToolError:
        return ToolError(kind=self.kind, message=self.message)


class AgentNotFoundError(ToolValidationError):
    kind = NOT_FOUND

    def __init__(self, agent: str, available: List[str], suggestion: Optional[str] = None):
        message = f"Agent not found: {agent}. Available agents: {', '.join(available)}"
        if suggestion:
            message += f". Did you mean '{suggestion}'?"
        super().__init__(message)
        self.agent = agent
        self.available = available
        self.suggestion = suggestion


class ModeNotFoundError(ToolValidationError):
    kind = NOT_FOUND

    def __init__(
        self,
        agent: str,
        mode: str,
        available: List[str],
        suggestion: Optional[str] = None,
    ):
        message = (
            f"Mode not found: {mode}. Available modes for {agent}: {', '.join(available)}"
        )
        if suggestion:
            message += f". Did you mean '{suggestion}'?"
        super().__init__(message)
        self.agent = agent
        self.mode = mode
        self.available = available
        self.suggestion = suggestion


class ToolNotFoundError(ToolValidationError):
    kind = NOT_FOUND

    def __init__(
        self,
        agent: str,
        mode: str,
        tool: str,
        available: List[str],
        suggestion: Optional[str] = None,
    ):
        message = (
            f"Tool not found: {tool}. Available tools for {agent}/{mode}: "
            f"{', '.join(available)}"
        )
        if suggestion:
            message += f". Did you mean '{suggestion}'?"
        super().__init__(message)
        self.agent = agent
        self.mode = mode
        self.tool = tool
        self.available = available
        self.suggestion = suggestion


class WrongModeError(ToolValidationError):
    """The tool exists under the agent, just not in the requested mode"""

    kind = WRONG_MODE

    def __init__(self, agent: str, mode: str, tool: str, correct_mode: str):
        message = (
            f"Tool not found: {tool}. This tool is available in the '{correct_mode}' "
            f"mode, not '{mode}' mode. Please update your request to use mode: "
            f"'{correct_mode}' instead."
        )
        super().__init__(message)
        self.agent = agent
        self.mode = mode
        self.tool = tool
        self.correct_mode = correct_mode

    def to_payload(self) -> ToolError:
        payload = super().to_payload()
        payload["correct_mode"] = self.correct_mode
        return payload


class MissingParametersError(ToolValidationError):
    def __init__(self, tool: str, missing: List[str]):
        message = f"Missing required parameters for tool '{tool}': {', '.join(missing)}"
        super().__init__(message)
        self.tool = tool
        self.missing = missing

    def to_payload(self) -> ToolError:
        payload = super().to_payload()
        payload["missing"] = list(self.missing)
        return payload


class ParameterValidationError(ToolValidationError):
    """One or more values failed validation, or unknown parameters were supplied"""

    def __init__(self, tool: str, errors: List[str]):
        message = f"Validation failed for tool '{tool}':\n" + "\n".join(errors)
        super().__init__(message, errors)
        self.tool = tool

    def to_payload(self) -> ToolError:
        payload = super().to_payload()
        payload["errors"] = list(self.errors)
        return payload


# Upstream API failures

API_ERROR_KINDS = (
    "network",
    "auth",
    "validation",
    "rate_limit",
    "server",
    "parsing",
    "unknown",
)


class SemrushApiError(Exception):
    """
    Raised by the Semrush client when a request fails.

    Args:
        message: Error message
        status: HTTP status code or Semrush error code, when known
        endpoint: Semrush report type that was requested
        kind: One of ``API_ERROR_KINDS``
        details: Extra context such as a truncated response body
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        endpoint: Optional[str] = None,
        kind: str = "unknown",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.endpoint = endpoint
        self.kind = kind if kind in API_ERROR_KINDS else "unknown"
        self.details = details or {}

    def readable_message(self) -> str:
        msg = self.message

        if self.kind == "auth":
            msg += "\nPlease check your API key and make sure it is valid."
        elif self.kind == "rate_limit":
            msg += "\nYou have exceeded the API rate limit. Please try again later."
        elif self.kind == "validation" and self.details.get("params"):
            msg += f"\nInvalid parameters: {self.details['params']}"

        if self.endpoint:
            msg += f"\nEndpoint: {self.endpoint}"
        if self.status:
            msg += f"\nStatus: {self.status}"

        return msg


def kind_for_status(status: int) -> str:
    """Map an HTTP status (or Semrush error code) to an API error kind"""
    if status in (401, 403):
        return "auth"
    if status == 400:
        return "validation"
    if status == 429:
        return "rate_limit"
    if status >= 500:
        return "server"
    return "unknown"
