from typing import Any, Optional, TypedDict


class ToolError(TypedDict, total=False):
    kind: str
    message: str
    errors: list
    missing: list
    correct_mode: str
    api_error_kind: str
    status: Optional[int]
    endpoint: Optional[str]


class ToolResponse(TypedDict):
    success: bool
    data: Any
    error: Optional[ToolError]
