"""ChatSession class for managing individual chat sessions.

This module provides the ChatSession class which handles:
- Loading and saving session data to JSON files
- Adding messages to the conversation transcript
- Attaching human confirmation decisions to pending tool calls
- Managing session metadata
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from chat_agent_server.sessions.types import (
    ContentPart,
    Message,
    SessionMetadata,
    TextPart,
    ToolDecision,
    ToolDecisionPart,
    ToolInvocationPart,
)

logger = logging.getLogger(__name__)


def utc_now() -> str:
    """Current UTC time as an ISO 8601 string with a Z suffix."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def generate_id() -> str:
    """Generate a 10-character hexadecimal identifier."""
    return uuid.uuid4().hex[:10]


def part_to_dict(part: ContentPart) -> dict[str, Any]:
    """Convert a content part to a JSON-serializable dictionary."""
    if isinstance(part, TextPart):
        return {"type": part.type, "text": part.text}
    if isinstance(part, ToolInvocationPart):
        return {
            "type": part.type,
            "tool_name": part.tool_name,
            "tool_call_id": part.tool_call_id,
            "args": part.args,
            "state": part.state.value,
            "result": part.result,
        }
    return {
        "type": part.type,
        "tool_call_id": part.tool_call_id,
        "decision": part.decision.value,
    }


def part_from_dict(data: dict[str, Any]) -> ContentPart:
    """Convert a dictionary to the appropriate content part type.

    Raises:
        ValueError: If the part type is unknown
    """
    fields = {k: v for k, v in data.items() if k != "type"}
    part_type = data.get("type")

    if part_type == "text":
        return TextPart(**fields)
    elif part_type == "tool-invocation":
        return ToolInvocationPart(**fields)
    elif part_type == "tool-decision":
        return ToolDecisionPart(**fields)
    else:
        raise ValueError(f"Unknown content part type: {part_type}")


def message_to_dict(message: Message) -> dict[str, Any]:
    return {
        "message_id": message.message_id,
        "role": message.role,
        "created_at": message.created_at,
        "model": message.model,
        "parts": [part_to_dict(p) for p in message.parts],
    }


def message_from_dict(data: dict[str, Any]) -> Message:
    """Convert a dictionary to a Message.

    Raises:
        ValueError: If the role or a part type is unknown
    """
    role = data.get("role")
    if role not in ("user", "assistant", "system", "tool"):
        raise ValueError(f"Unknown message role: {role}")

    return Message(
        role=role,
        parts=[part_from_dict(p) for p in data.get("parts", [])],
        message_id=data.get("message_id", ""),
        created_at=data.get("created_at", ""),
        model=data.get("model"),
    )


def text_message(role: str, text: str, model: str | None = None) -> Message:
    """Build a single-text-part message with a fresh id and timestamp."""
    return Message(
        role=role,
        parts=[TextPart(text=text)],
        message_id=generate_id(),
        created_at=utc_now(),
        model=model,
    )


class ChatSession:
    """Represents a single chat session with its transcript and metadata.

    A session is persisted as a JSON file with the following structure:
    {
        "metadata": {...},
        "messages": [...]
    }
    """

    def __init__(
        self,
        session_id: str,
        model: str,
        messages: list[Message] | None = None,
        metadata: SessionMetadata | None = None,
    ):
        """Initialize a ChatSession.

        Args:
            session_id: Unique session identifier (10-char hex)
            model: The LLM model name for this session
            messages: Initial transcript (default: empty)
            metadata: Session metadata (default: auto-generated)
        """
        self.session_id = session_id
        self.model = model
        self.messages: list[Message] = messages or []

        if metadata is None:
            now = utc_now()
            self.metadata = SessionMetadata(
                session_id=session_id,
                model=model,
                created_at=now,
                updated_at=now,
                message_count=len(self.messages),
            )
        else:
            self.metadata = metadata

    def _touch(self) -> None:
        self.metadata.message_count = len(self.messages)
        self.metadata.updated_at = utc_now()

    def add_message(self, message: Message) -> None:
        """Append a message to the transcript.

        Updates the message_count in metadata and the updated_at timestamp.
        """
        self.messages.append(message)
        self._touch()

    def replace_messages(self, messages: list[Message]) -> None:
        """Replace the transcript, e.g. with the output of tool processing."""
        self.messages = list(messages)
        self._touch()

    @property
    def last_message(self) -> Message | None:
        return self.messages[-1] if self.messages else None

    def apply_tool_decisions(
        self, decisions: list[tuple[str, ToolDecision | str]]
    ) -> int:
        """Attach human confirmation decisions to the last assistant message.

        Decisions are recorded as ToolDecisionPart entries on the message
        that holds the pending calls. Ids that match no call of the
        message are stored as well and ignored by the tool-call processor.

        Args:
            decisions: (tool_call_id, decision) pairs

        Returns:
            Number of decisions that reference a tool call of the message (0
            if the last message is not an assistant message)
        """
        last = self.last_message
        if last is None or last.role != "assistant":
            logger.debug(
                f"Ignoring {len(decisions)} tool decisions for session "
                f"{self.session_id}: last message is not from the assistant"
            )
            return 0

        known_ids = {p.tool_call_id for p in last.tool_invocations}
        matched = 0
        for tool_call_id, decision in decisions:
            last.parts.append(
                ToolDecisionPart(tool_call_id=tool_call_id, decision=decision)
            )
            if tool_call_id in known_ids:
                matched += 1
            else:
                logger.warning(
                    f"Tool decision for unknown call {tool_call_id} in session {self.session_id}"
                )
        self._touch()
        return matched

    def to_dict(self) -> dict[str, Any]:
        """Convert session to a dictionary for JSON serialization."""
        metadata_dict = {
            "session_id": self.metadata.session_id,
            "model": self.metadata.model,
            "created_at": self.metadata.created_at,
            "updated_at": self.metadata.updated_at,
            "message_count": self.metadata.message_count,
            "format_version": self.metadata.format_version,
        }

        return {
            "metadata": metadata_dict,
            "messages": [message_to_dict(m) for m in self.messages],
        }

    def save(self, sessions_dir: Path) -> None:
        """Save the session to a JSON file.

        Args:
            sessions_dir: Directory where session files are stored
        """
        sessions_dir.mkdir(parents=True, exist_ok=True)
        file_path = sessions_dir / f"{self.session_id}.json"

        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

        logger.debug(f"Saved session {self.session_id} to {file_path}")

    @classmethod
    def load(cls, session_id: str, sessions_dir: Path) -> "ChatSession":
        """Load a session from a JSON file.

        Args:
            session_id: The session ID to load
            sessions_dir: Directory where session files are stored

        Returns:
            Loaded ChatSession instance

        Raises:
            FileNotFoundError: If session file doesn't exist
            ValueError: If session data is invalid
        """
        file_path = sessions_dir / f"{session_id}.json"

        if not file_path.exists():
            raise FileNotFoundError(f"Session {session_id} not found")

        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        metadata_dict = data["metadata"]
        metadata = SessionMetadata(
            session_id=metadata_dict["session_id"],
            model=metadata_dict["model"],
            created_at=metadata_dict["created_at"],
            updated_at=metadata_dict["updated_at"],
            message_count=metadata_dict.get("message_count", 0),
            format_version=metadata_dict.get("format_version", "1.0"),
        )

        messages = [message_from_dict(m) for m in data.get("messages", [])]

        return cls(
            session_id=session_id,
            model=metadata.model,
            messages=messages,
            metadata=metadata,
        )

    @staticmethod
    def generate_session_id() -> str:
        """Generate a new unique session ID.

        Returns:
            10-character hexadecimal string
        """
        return generate_id()

    def get_preview(self, max_length: int = 100) -> str:
        """Get a preview of the session (first user message)."""
        for message in self.messages:
            if message.role == "user":
                content = message.text
                if len(content) > max_length:
                    return content[: max_length - 3] + "..."
                return content
        return ""
