"""The chat loop: resolve confirmed tool calls, then let the model respond.

ChatAgent handles a single chat request against a session. It yields
(event name, payload) pairs that the router forwards as SSE events or
collects into a single response.
"""

import json
import logging
from typing import Any, AsyncIterator, Awaitable, Callable

from pydantic import BaseModel

from chat_agent_server.models.chat import (
    ContentDeltaEvent,
    DoneEvent,
    MessageCompleteEvent,
    ToolConfirmationRequiredEvent,
    ToolExecutionEvent,
    ToolResultEvent,
)
from chat_agent_server.ollama.client import OllamaClient
from chat_agent_server.sessions.session import (
    ChatSession,
    generate_id,
    text_message,
    utc_now,
)
from chat_agent_server.sessions.types import (
    ContentPart,
    Message,
    TextPart,
    ToolInvocationPart,
    ToolInvocationState,
)
from chat_agent_server.tools.confirmation import (
    ProgressChannel,
    ToolProgressEvent,
    deny_pending,
    pending_confirmations,
    process_tool_calls,
)
from chat_agent_server.tools.registry import (
    ToolRegistry,
    execute_inline,
    to_ollama_tools,
)
from chat_agent_server.tools.results import execution_failed

logger = logging.getLogger(__name__)

ChatEvent = tuple[str, BaseModel]
ToolCallProcessor = Callable[
    [list[Message], ToolRegistry, ProgressChannel], Awaitable[list[Message]]
]


class ChatError(Exception):
    """A failure that ends a chat request."""

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}


def _result_content(result: Any) -> str:
    if isinstance(result, str):
        return result
    return json.dumps(result, ensure_ascii=False, default=str)


def to_ollama_messages(messages: list[Message], system_prompt: str | None = None) -> list[dict[str, Any]]:
    """Convert a transcript to Ollama chat messages.

    Only completed tool calls are sent; each is followed by a "tool" message
    carrying its result. Calls still waiting on a human are left out.
    """
    ollama_messages: list[dict[str, Any]] = []
    if system_prompt:
        ollama_messages.append({"role": "system", "content": system_prompt})

    for msg in messages:
        completed = [p for p in msg.tool_invocations if p.is_completed]
        ollama_msg: dict[str, Any] = {"role": msg.role, "content": msg.text}

        if msg.role == "assistant" and completed:
            ollama_msg["tool_calls"] = [
                {"function": {"name": p.tool_name, "arguments": p.args}}
                for p in completed
            ]
        ollama_messages.append(ollama_msg)

        if msg.role == "assistant":
            for part in completed:
                ollama_messages.append(
                    {
                        "role": "tool",
                        "tool_name": part.tool_name,
                        "content": _result_content(part.result),
                    }
                )

    return ollama_messages


def _parse_arguments(raw: Any) -> dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, str) and raw.strip():
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Dropping unparsable tool arguments: {raw!r}")
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}


def _tool_invocation_from_call(call: dict[str, Any]) -> ToolInvocationPart:
    function = call.get("function") or {}
    return ToolInvocationPart(
        tool_name=function.get("name", ""),
        tool_call_id=call.get("id") or generate_id(),
        args=_parse_arguments(function.get("arguments")),
        state=ToolInvocationState.AWAITING_EXECUTION,
    )


class ChatAgent:
    """Runs one chat request for a session.

    Attributes:
        session: The session being chatted with; mutated in place
        registry: Tools available for this request
        max_steps: Upper bound on model calls per request
    """

    def __init__(
        self,
        ollama_client: OllamaClient,
        session: ChatSession,
        registry: ToolRegistry,
        system_prompt: str,
        save: Callable[[ChatSession], None],
        max_steps: int = 10,
    ):
        self.ollama_client = ollama_client
        self.session = session
        self.registry = registry
        self.system_prompt = system_prompt
        self.max_steps = max_steps
        self._save = save
        self.executed: list[ToolInvocationPart] = []

    async def run(
        self,
        message: str | None = None,
        decisions: list[tuple[str, str]] | None = None,
        is_disconnected: Callable[[], Awaitable[bool]] | None = None,
    ) -> AsyncIterator[ChatEvent]:
        """Handle the request, yielding events as they happen.

        Raises:
            ChatError: If the model cannot be reached or the history is empty
        """
        session_id = self.session.session_id

        if decisions:
            matched = self.session.apply_tool_decisions(decisions)
            logger.info(
                f"Recorded {len(decisions)} tool decisions for session {session_id}, "
                f"{matched} matching a tool call"
            )

        async for event in self._resolve_calls(process_tool_calls):
            yield event

        if message is not None:
            async for event in self._resolve_calls(deny_pending):
                yield event
            self.session.add_message(text_message("user", message))
            logger.info(f"Added user message to session {session_id}")

        pending = pending_confirmations(self.session.messages, self.registry)
        if pending:
            self._save(self.session)
            for part in pending:
                yield "tool_confirmation_required", ToolConfirmationRequiredEvent(
                    tool_name=part.tool_name,
                    tool_call_id=part.tool_call_id,
                    args=part.args,
                )
            yield "done", DoneEvent(session_id=session_id)
            return

        if not any(m.role != "system" for m in self.session.messages):
            raise ChatError("empty_history", "Session has no messages to process")

        last_chunk: dict[str, Any] = {}
        for _ in range(self.max_steps):
            assistant, last_chunk = None, {}
            async for item in self._generate(is_disconnected):
                if isinstance(item, Message):
                    assistant = item
                elif isinstance(item, dict):
                    last_chunk = item
                else:
                    yield item

            if assistant is None:
                break

            self.session.add_message(assistant)
            if not assistant.tool_invocations:
                break

            gated = False
            async for event in self._run_inline_tools(assistant):
                if event[0] == "tool_confirmation_required":
                    gated = True
                yield event
            if gated:
                break
        else:
            logger.warning(f"Reached max_steps={self.max_steps} for session {session_id}")

        self._save(self.session)

        last = self.session.last_message
        if last is not None and last.role == "assistant":
            yield "message_complete", MessageCompleteEvent(
                message_id=last.message_id,
                model=self.session.model,
                eval_count=last_chunk.get("eval_count"),
                prompt_eval_count=last_chunk.get("prompt_eval_count"),
            )
        yield "done", DoneEvent(session_id=session_id)

    async def _resolve_calls(self, processor: ToolCallProcessor) -> AsyncIterator[ChatEvent]:
        """Run a tool-call processor over the transcript and report its progress."""
        progress_events: list[ToolProgressEvent] = []

        async def collect(event: ToolProgressEvent) -> None:
            progress_events.append(event)

        processed = await processor(self.session.messages, self.registry, collect)
        if processed is not self.session.messages:
            self.session.replace_messages(processed)
            finished = {
                e.tool_call_id for e in progress_events if e.event == "tool-execution-finished"
            }
            self.executed.extend(
                p for p in processed[-1].tool_invocations if p.tool_call_id in finished
            )
            self._save(self.session)

        for event in progress_events:
            yield event.event.replace("-", "_"), ToolExecutionEvent(
                tool_name=event.tool_name,
                tool_call_id=event.tool_call_id,
                outcome=event.outcome,
                result=event.result,
            )

    async def _generate(
        self, is_disconnected: Callable[[], Awaitable[bool]] | None
    ) -> AsyncIterator[ChatEvent | Message | dict[str, Any]]:
        """One model call: yields content deltas, the final chunk, then the message."""
        content_parts: list[str] = []
        tool_calls: list[dict[str, Any]] = []
        final_chunk = None

        ollama_messages = to_ollama_messages(self.session.messages, self.system_prompt)
        tools = to_ollama_tools(self.registry)

        try:
            async for chunk in self.ollama_client.chat_stream(
                model=self.session.model,
                messages=ollama_messages,
                tools=tools,
            ):
                if is_disconnected is not None and await is_disconnected():
                    logger.warning(
                        f"Client disconnected during streaming for session {self.session.session_id}"
                    )
                    return

                message = chunk.get("message") or {}
                content = message.get("content") or ""
                if content:
                    content_parts.append(content)
                    yield "content_delta", ContentDeltaEvent(
                        content=content, role=message.get("role", "assistant")
                    )

                tool_calls.extend(message.get("tool_calls") or [])

                if chunk.get("done"):
                    final_chunk = chunk
                    break
        except Exception as e:
            logger.error(f"Ollama streaming error: {e}")
            raise ChatError(
                "ollama_error",
                f"Failed to get response from Ollama: {str(e)}",
                {"session_id": self.session.session_id},
            ) from e

        if final_chunk is None:
            raise ChatError("incomplete_response", "Stream ended without completion marker")

        parts: list[ContentPart] = []
        if content_parts:
            parts.append(TextPart(text="".join(content_parts)))
        parts.extend(_tool_invocation_from_call(call) for call in tool_calls)

        yield final_chunk
        yield Message(
            role="assistant",
            parts=parts,
            message_id=generate_id(),
            created_at=utc_now(),
            model=self.session.model,
        )

    async def _run_inline_tools(self, assistant: Message) -> AsyncIterator[ChatEvent]:
        """Run tools that need no confirmation; announce the ones that do."""
        for part in assistant.tool_invocations:
            entry = self.registry.get(part.tool_name)

            if entry is not None and entry.requires_confirmation:
                yield "tool_confirmation_required", ToolConfirmationRequiredEvent(
                    tool_name=part.tool_name,
                    tool_call_id=part.tool_call_id,
                    args=part.args,
                )
                continue

            if entry is None:
                logger.warning(f"Model requested unknown tool '{part.tool_name}'")
                part.result = execution_failed(f"Unknown tool '{part.tool_name}'")
            else:
                part.result = await execute_inline(entry, part.args)
            part.state = ToolInvocationState.COMPLETED
            self.executed.append(part)

            yield "tool_result", ToolResultEvent(
                tool_name=part.tool_name,
                tool_call_id=part.tool_call_id,
                result=part.result,
            )
