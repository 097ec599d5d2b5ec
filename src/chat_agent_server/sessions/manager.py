"""SessionManager for CRUD operations on chat sessions.

This module provides the SessionManager class which handles:
- Creating new sessions
- Listing sessions sorted by last update
- Retrieving and deleting sessions
"""

import logging
from pathlib import Path

from chat_agent_server.sessions.session import ChatSession, text_message
from chat_agent_server.sessions.types import SessionCreationOptions

logger = logging.getLogger(__name__)


class SessionManager:
    """Manages chat sessions stored as a directory of JSON files."""

    def __init__(self, sessions_dir: Path):
        """Initialize the SessionManager.

        Args:
            sessions_dir: Directory where session JSON files are stored
        """
        self.sessions_dir = sessions_dir
        self.sessions_dir.mkdir(parents=True, exist_ok=True)

    def create_session(self, options: SessionCreationOptions) -> ChatSession:
        """Create and persist a new chat session.

        Args:
            options: Session creation options including model and prompt

        Returns:
            The newly created ChatSession
        """
        session_id = ChatSession.generate_session_id()
        session = ChatSession(session_id=session_id, model=options.model)

        if options.system_prompt:
            session.add_message(text_message("system", options.system_prompt))

        session.save(self.sessions_dir)

        logger.info(f"Created new session {session_id} with model {options.model}")
        return session

    def list_sessions(self) -> list[ChatSession]:
        """List all sessions, newest first.

        Files that fail to load are skipped with a warning.
        """
        sessions: list[ChatSession] = []

        for file_path in self.sessions_dir.glob("*.json"):
            session_id = file_path.stem
            try:
                sessions.append(ChatSession.load(session_id, self.sessions_dir))
            except Exception as e:
                logger.warning(f"Failed to load session {session_id}: {e}")
                continue

        sessions.sort(key=lambda s: s.metadata.updated_at, reverse=True)

        logger.debug(f"Listed {len(sessions)} sessions")
        return sessions

    def get_session(self, session_id: str) -> ChatSession:
        """Get a specific session by ID.

        Raises:
            FileNotFoundError: If session doesn't exist
        """
        session = ChatSession.load(session_id, self.sessions_dir)
        logger.debug(f"Retrieved session {session_id}")
        return session

    def save_session(self, session: ChatSession) -> None:
        session.save(self.sessions_dir)

    def delete_session(self, session_id: str) -> None:
        """Delete a session.

        Raises:
            FileNotFoundError: If session doesn't exist
        """
        file_path = self.sessions_dir / f"{session_id}.json"

        if not file_path.exists():
            raise FileNotFoundError(f"Session {session_id} not found")

        file_path.unlink()
        logger.info(f"Deleted session {session_id}")
