"""
In-memory session and message tables for the OpenCode mock.

One SessionStore belongs to one application instance; nothing is shared at
module level, so tests can run several independent servers in one process.
Every read-modify-write happens inside a single synchronous method, which
keeps it atomic on the event loop. The lock covers threaded servers too.
"""

import itertools
from threading import Lock
from typing import Dict, List, Optional

from mock_servers.core.exceptions import SessionNotFoundError
from mock_servers.core.logging_config import get_logger
from mock_servers.mock_utils import epoch_ms, generate_sequential_id, mock_reply
from mock_servers.schemas.session import (
    MessagePart,
    MessageTime,
    Session,
    SessionMessage,
    SessionPath,
    SessionTime,
)

logger = get_logger(__name__)

DEFAULT_SESSION_TITLE = "New Session"


class SessionStore:
    """Process-lifetime storage for sessions and their ordered messages."""

    def __init__(self, working_directory: str = "/test"):
        self.working_directory = working_directory
        self._sessions: Dict[str, Session] = {}
        self._messages: Dict[str, List[SessionMessage]] = {}
        # Shared by sessions and messages
        self._sequence = itertools.count(1)
        self._lock = Lock()

    def _next_id(self, prefix: str) -> str:
        return generate_sequential_id(prefix, next(self._sequence))

    def create_session(self, title: Optional[str] = None, parent_id: Optional[str] = None) -> Session:
        """Create an idle session together with its empty message list."""
        with self._lock:
            session = Session(
                id=self._next_id("session"),
                title=title or DEFAULT_SESSION_TITLE,
                status="idle",
                time=SessionTime(created=epoch_ms()),
                path=SessionPath(cwd=self.working_directory),
                parent_id=parent_id or None,
            )
            self._sessions[session.id] = session
            self._messages[session.id] = []

        logger.info("session_created", session_id=session.id, title=session.title)
        return session

    def list_sessions(self) -> List[Session]:
        with self._lock:
            return list(self._sessions.values())

    def get_session(self, session_id: str) -> Session:
        """
        Return a live session.

        Raises:
            SessionNotFoundError: No session with this id exists
        """
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def update_session(
        self,
        session_id: str,
        title: Optional[str] = None,
        archived_at: Optional[int] = None,
    ) -> Session:
        """
        Apply a partial update in place.

        Empty values leave the field untouched. Setting ``archived_at`` moves
        the session to ``archived``; nothing moves it back.
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)

            if title:
                session.title = title
            if archived_at:
                session.time.archived = archived_at
                session.status = "archived"

        logger.info(
            "session_updated",
            session_id=session_id,
            title=session.title,
            status=session.status,
        )
        return session

    def delete_session(self, session_id: str) -> bool:
        """
        Remove a session and its messages in one step.

        Returns whether anything was removed. Callers answer success either
        way.
        """
        with self._lock:
            removed = self._sessions.pop(session_id, None)
            self._messages.pop(session_id, None)

        logger.info("session_deleted", session_id=session_id, existed=removed is not None)
        return removed is not None

    def list_messages(self, session_id: str) -> List[SessionMessage]:
        """Messages of a session in insertion order, empty for unknown ids."""
        with self._lock:
            return list(self._messages.get(session_id, []))

    def append_exchange(self, session_id: str, content: Optional[str]) -> SessionMessage:
        """
        Store a user message and the mock assistant reply to it.

        Both messages are appended in one step; only the user message is
        returned, the reply is visible through ``list_messages``.

        Raises:
            SessionNotFoundError: No session with this id exists
        """
        text = content or ""

        with self._lock:
            session_messages = self._messages.get(session_id)
            if session_id not in self._sessions or session_messages is None:
                raise SessionNotFoundError(session_id)

            user_message = self._build_message(session_id, "user", text)
            assistant_message = self._build_message(session_id, "assistant", mock_reply(text))
            session_messages.extend([user_message, assistant_message])

        logger.info(
            "message_appended",
            session_id=session_id,
            message_id=user_message.id,
            reply_id=assistant_message.id,
        )
        return user_message

    def status_map(self) -> Dict[str, str]:
        with self._lock:
            return {session_id: session.status for session_id, session in self._sessions.items()}

    def _build_message(self, session_id: str, role: str, text: str) -> SessionMessage:
        return SessionMessage(
            id=self._next_id("msg"),
            session_id=session_id,
            role=role,
            parts=[MessagePart(text=text)],
            time=MessageTime(created=epoch_ms()),
        )
