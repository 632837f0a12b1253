"""
Exceptions raised by the chat core.

Recoverable conditions (unknown entry ids, rejected imports, upstream failures)
are reported through return values instead.
"""


class ChatCoreError(Exception):
    """Base class for chat core errors."""


class SessionNotFoundError(ChatCoreError, KeyError):
    """Raised when a strict lookup names a session that does not exist."""

    def __init__(self, session_id: str):
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"Unknown session: {self.session_id}"
