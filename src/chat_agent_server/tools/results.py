"""Structured tool results for failed and denied executions."""

from typing import Any

EXECUTION_FAILED = "execution-failed"
USER_DENIED_TOOL_EXECUTION = "user-denied-tool-execution"

DENIAL_RESULT: dict[str, str] = {
    "kind": USER_DENIED_TOOL_EXECUTION,
    "message": "Error: User denied access to tool execution",
}


def execution_failed(message: str) -> dict[str, str]:
    return {"kind": EXECUTION_FAILED, "message": message}


def result_kind(result: Any) -> str | None:
    """Return the kind of an error/denial result, or None for plain values."""
    if isinstance(result, dict) and result.get("kind") in (
        EXECUTION_FAILED,
        USER_DENIED_TOOL_EXECUTION,
    ):
        return result["kind"]
    return None
