"""Deferred execution of tool calls that need human confirmation.

When the assistant asks for a confirmation-gated tool, the call is stored in
the transcript in the "awaiting-execution" state and the turn ends. The human
then answers with an approval or denial for that tool call id. On the next
request, process_tool_calls() resolves every decided call in the last
assistant message before the model runs again:

- approved: the tool's executor runs and its return value becomes the result
- denied: a fixed denial result is recorded and the executor never runs
- no decision yet: the call is left untouched

Tools that are unknown to the registry or need no confirmation are not
touched here; the streaming chat loop runs those inline.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable

from chat_agent_server.sessions.types import (
    Message,
    ToolDecision,
    ToolDecisionPart,
    ToolInvocationPart,
    ToolInvocationState,
)
from chat_agent_server.tools.registry import ToolRegistry, call_tool
from chat_agent_server.tools.results import DENIAL_RESULT, execution_failed, result_kind

logger = logging.getLogger(__name__)


@dataclass
class ToolProgressEvent:
    """Progress notification for a confirmed tool call."""

    event: str  # tool-execution-started | tool-execution-finished
    tool_name: str
    tool_call_id: str
    outcome: str | None = None  # completed | execution-failed | user-denied-tool-execution
    result: Any = None


ProgressChannel = Callable[[ToolProgressEvent], Awaitable[None]]


async def _notify(progress: ProgressChannel | None, event: ToolProgressEvent) -> None:
    if progress is None:
        return
    try:
        await progress(event)
    except Exception as e:
        logger.warning(f"Progress channel failed for {event.event}: {e}")


def _collect_decisions(message: Message) -> dict[str, ToolDecision]:
    """Map tool call ids of the message to the human's decision.

    Decisions that reference no tool call in the message are dropped. If the
    same id is decided twice, the latest decision wins.
    """
    known_ids = {p.tool_call_id for p in message.tool_invocations}
    decisions: dict[str, ToolDecision] = {}

    for part in message.parts:
        if not isinstance(part, ToolDecisionPart):
            continue
        if part.tool_call_id not in known_ids:
            logger.debug(f"Ignoring decision for unknown tool call {part.tool_call_id}")
            continue
        decisions[part.tool_call_id] = part.decision

    return decisions


async def _resolve(
    part: ToolInvocationPart,
    decision: ToolDecision,
    executor: Callable[..., Any] | None,
    progress: ProgressChannel | None,
) -> ToolInvocationPart:
    await _notify(
        progress,
        ToolProgressEvent(
            event="tool-execution-started",
            tool_name=part.tool_name,
            tool_call_id=part.tool_call_id,
        ),
    )

    if decision == ToolDecision.DENIED:
        result: Any = dict(DENIAL_RESULT)
        logger.info(f"User denied tool call {part.tool_call_id} ({part.tool_name})")
    elif executor is None:
        result = execution_failed(f"No executor registered for tool '{part.tool_name}'")
    else:
        try:
            result = await call_tool(executor, part.args)
            logger.info(f"Executed confirmed tool call {part.tool_call_id} ({part.tool_name})")
        except Exception as e:
            logger.error(f"Confirmed tool call {part.tool_call_id} ({part.tool_name}) failed: {e}")
            result = execution_failed(str(e))

    resolved = replace(part, state=ToolInvocationState.COMPLETED, result=result)

    await _notify(
        progress,
        ToolProgressEvent(
            event="tool-execution-finished",
            tool_name=part.tool_name,
            tool_call_id=part.tool_call_id,
            outcome=result_kind(result) or "completed",
            result=result,
        ),
    )
    return resolved


async def process_tool_calls(
    messages: list[Message],
    registry: ToolRegistry,
    progress: ProgressChannel | None = None,
) -> list[Message]:
    """Resolve confirmation-gated tool calls in the last assistant message.

    Executors run one at a time in the order their calls appear. Executor
    errors become execution-failed results and never propagate.

    Args:
        messages: The conversation transcript
        registry: Tool registry used to look up policies and executors
        progress: Optional async callback notified as each call starts and
            finishes

    Returns:
        The transcript with resolved calls completed. Messages other than the
        last are returned as the same objects. If nothing was resolved the
        input list itself is returned.
    """
    if not messages or messages[-1].role != "assistant":
        return messages

    last = messages[-1]
    decisions = _collect_decisions(last)

    parts = list(last.parts)
    changed = False

    for index, part in enumerate(parts):
        if not isinstance(part, ToolInvocationPart):
            continue
        if part.state != ToolInvocationState.AWAITING_EXECUTION:
            continue

        entry = registry.get(part.tool_name)
        if entry is None or not entry.requires_confirmation:
            continue

        decision = decisions.get(part.tool_call_id)
        if decision is None:
            logger.debug(f"Tool call {part.tool_call_id} ({part.tool_name}) awaits confirmation")
            continue

        parts[index] = await _resolve(part, decision, entry.executor, progress)
        changed = True

    if not changed:
        return messages

    return [*messages[:-1], replace(last, parts=parts)]


def pending_confirmations(
    messages: list[Message], registry: ToolRegistry
) -> list[ToolInvocationPart]:
    """Tool calls in the last assistant message still waiting on a human."""
    if not messages or messages[-1].role != "assistant":
        return []

    pending = []
    for part in messages[-1].tool_invocations:
        entry = registry.get(part.tool_name)
        if (
            part.state == ToolInvocationState.AWAITING_EXECUTION
            and entry is not None
            and entry.requires_confirmation
        ):
            pending.append(part)
    return pending


async def deny_pending(
    messages: list[Message],
    registry: ToolRegistry,
    progress: ProgressChannel | None = None,
) -> list[Message]:
    """Deny every call in the last assistant message still waiting on a human.

    Run this before appending a new message after the assistant: once the
    assistant message is no longer last, its calls can never be decided.
    Undecided calls end "completed" with the denial result.
    """
    pending = pending_confirmations(messages, registry)
    if not pending:
        return messages

    logger.info(f"Denying {len(pending)} unanswered tool calls")
    last = messages[-1]
    denials = [
        ToolDecisionPart(tool_call_id=part.tool_call_id, decision=ToolDecision.DENIED)
        for part in pending
    ]
    amended = [*messages[:-1], replace(last, parts=[*last.parts, *denials])]
    return await process_tool_calls(amended, registry, progress)
