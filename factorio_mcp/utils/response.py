"""Standardized response utilities for MCP tools."""

from typing import Any, Dict, Optional


def is_success(result: Dict[str, Any]) -> bool:
    """Check if a tool result reports success."""
    return bool(result.get("success"))


def success_response(**fields: Any) -> Dict[str, Any]:
    """Create a successful response envelope.

    Args:
        **fields: Operation-specific result fields

    Returns:
        {"success": True, **fields}
    """
    response = {"success": True}
    response.update(fields)
    return response


def error_response(message: str, code: Optional[str] = None) -> Dict[str, Any]:
    """Create a domain-level failure envelope.

    Args:
        message: Human-readable error message
        code: Optional machine-readable error code

    Returns:
        {"success": False, "error": message, ...}
    """
    response = {
        "success": False,
        "error": message
    }

    if code:
        response["code"] = code

    return response
