"""System prompt assembly for the chat agent.

The system prompt is rebuilt for every model call so that the current time,
the connected MCP services, and the latest shop context are always fresh.
"""

import logging
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)

ASSISTANT_PREAMBLE = "You are a helpful assistant that can do various tasks..."

SCHEDULE_INSTRUCTION = (
    "If the user asks to schedule a task, use the schedule_task tool to schedule the task."
)


def _iso(now: datetime) -> str:
    return now.isoformat().replace("+00:00", "Z")


def build_schedule_prompt(now: datetime) -> str:
    """Instructions for turning scheduling requests into schedule_task calls."""
    return f"""[Schedule Parser]
Current time: {_iso(now)}

When the user wants something done later, extract:
1. A clean task description without the timing information
2. The timing, in one of these forms:
   - scheduled: a specific date and time, passed as "date" in ISO 8601
   - delayed: a relative delay, passed as "delay_in_seconds"

Examples:
- "remind me to call mom at 5pm tomorrow" -> when_type "scheduled", a date for 17:00 tomorrow
- "check the order status in 10 minutes" -> when_type "delayed", delay_in_seconds 600

Recurring schedules are not supported; say so if the user asks for one."""


def build_shop_context_prompt(now: datetime, shop_context: dict[str, Any] | None = None) -> str:
    """Context block describing the embedded Shopify admin surroundings."""
    lines = [
        "SHOPIFY CONTEXT:",
        "- You are embedded in a Shopify admin app",
        "- You can help with calculations using MCP tools",
        f"- Current time: {_iso(now)}",
    ]
    if shop_context:
        if shop_context.get("shop"):
            lines.append(f"- Shop: {shop_context['shop']}")
        if shop_context.get("user"):
            lines.append(f"- User: {shop_context['user']}")
    return "\n".join(lines)


def build_system_prompt(
    now: datetime,
    mcp_instructions: str = "",
    shop_context: dict[str, Any] | None = None,
) -> str:
    """Assemble the full system prompt.

    Args:
        now: Current time, aware datetimes are rendered with a Z suffix
        mcp_instructions: Output of get_mcp_instructions()
        shop_context: Last shop context received from the embedding app

    Returns:
        The system prompt text
    """
    sections = [
        ASSISTANT_PREAMBLE,
        build_schedule_prompt(now),
        SCHEDULE_INSTRUCTION,
    ]
    if mcp_instructions:
        sections.append(mcp_instructions)
    sections.append(build_shop_context_prompt(now, shop_context))

    prompt = "\n\n".join(sections)
    logger.debug(f"Built system prompt ({len(prompt)} characters)")
    return prompt
