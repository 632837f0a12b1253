"""
In-memory conversation contexts for multi-turn chat sessions.
Contexts are volatile and discarded when a session ends or expires.
"""

import logging
import threading
import uuid
from datetime import datetime, timedelta
from typing import Optional

from ..config import ContextConfig, get_context_config
from ..schemas import (
    ConversationContext, ContextSummary, Message, MessageType, ResponseLength,
    TroubleshootingState, UserPreferences
)

logger = logging.getLogger(__name__)

TOPIC_KEYWORDS = ["setup", "error", "help", "problem", "configure", "install", "troubleshoot"]


class ConversationStore:
    """
    Manages conversation contexts per session.
    Writers of one session are serialized by that session's lock; different
    sessions never contend with each other.
    """

    def __init__(self, config: ContextConfig | None = None):
        """
        Initialize the conversation store.

        Args:
            config: Message limits and retention window
        """
        self.config = config or get_context_config()
        self._contexts: dict[str, ConversationContext] = {}
        self._last_activity: dict[str, datetime] = {}
        self._session_locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def create(self, session_id: str | None = None) -> tuple[str, ConversationContext]:
        """
        Start a session with an empty history.

        Args:
            session_id: Optional explicit id; generated when omitted

        Returns:
            Tuple of (session_id, new ConversationContext)
        """
        session_id = session_id or f"session-{uuid.uuid4().hex[:12]}"
        context = ConversationContext(
            user_preferences=UserPreferences(),
            troubleshooting_state=TroubleshootingState(),
        )

        with self._registry_lock:
            self._contexts[session_id] = context
            self._last_activity[session_id] = datetime.now()
            self._session_locks.setdefault(session_id, threading.Lock())

        logger.info("Conversation context created: session=%s", session_id)
        return session_id, context

    def get(self, session_id: str) -> Optional[ConversationContext]:
        """Get the context for a session, or None if unknown."""
        with self._registry_lock:
            return self._contexts.get(session_id)

    def end(self, session_id: str) -> bool:
        """Discard a session's context. Returns whether it existed."""
        with self._registry_lock:
            existed = self._contexts.pop(session_id, None) is not None
            self._last_activity.pop(session_id, None)
            self._session_locks.pop(session_id, None)

        if existed:
            logger.info("Conversation context discarded: session=%s", session_id)
        return existed

    def append_message(self, session_id: str, message: Message) -> Optional[ConversationContext]:
        """
        Append a message and track its intent.

        Args:
            session_id: The session id
            message: Message to append

        Returns:
            Updated context or None if the session is unknown
        """
        lock = self._lock_for(session_id)
        if lock is None:
            return None

        with lock:
            context = self._contexts.get(session_id)
            if context is None:
                return None

            context.messages.append(message)
            if message.intent:
                context.current_intent = message.intent

            if len(context.messages) > self.config.compression_threshold:
                self._compress(session_id, context)

            self._touch(session_id)

        logger.debug(
            "Context updated: session=%s messages=%d intent=%s",
            session_id, len(context.messages), context.current_intent
        )
        return context

    def add_message(
        self,
        session_id: str,
        content: str,
        message_type: MessageType,
        intent: Optional[str] = None,
        confidence: Optional[float] = None
    ) -> Optional[ConversationContext]:
        """Build a Message and append it."""
        message = Message(
            message_id=f"msg-{uuid.uuid4().hex[:12]}",
            session_id=session_id,
            content=content,
            message_type=message_type,
            intent=intent,
            confidence=confidence,
        )
        return self.append_message(session_id, message)

    def update_preferences(
        self,
        session_id: str,
        preferred_response_length: ResponseLength | str
    ) -> Optional[ConversationContext]:
        """Set the preferred reply length for a session."""
        return self._mutate(
            session_id,
            lambda ctx: setattr(
                ctx, "user_preferences",
                UserPreferences(preferred_response_length=ResponseLength(preferred_response_length))
            ),
        )

    def set_onboarding_step(self, session_id: str, step: Optional[int]) -> Optional[ConversationContext]:
        """Set (or clear with None) the onboarding step."""
        if step is not None and step < 0:
            raise ValueError("Onboarding step must be non-negative")
        return self._mutate(session_id, lambda ctx: setattr(ctx, "onboarding_step", step))

    def record_troubleshooting_failure(
        self,
        session_id: str,
        attempted_solution: Optional[str] = None,
        issue: Optional[str] = None
    ) -> Optional[ConversationContext]:
        """
        Note a failed troubleshooting attempt and raise the escalation level.

        Args:
            session_id: The session id
            attempted_solution: Solution the user tried
            issue: Problem description, recorded on first failure

        Returns:
            Updated context or None if the session is unknown
        """
        def escalate(ctx: ConversationContext) -> None:
            state = ctx.troubleshooting_state or TroubleshootingState()
            state.escalation_level += 1
            if attempted_solution:
                state.attempted_solutions.append(attempted_solution)
            if issue and not state.current_issue:
                state.current_issue = issue
            ctx.troubleshooting_state = state

        context = self._mutate(session_id, escalate)
        if context is not None:
            logger.info(
                "Troubleshooting escalated: session=%s level=%d",
                session_id, context.troubleshooting_state.escalation_level
            )
        return context

    def start_troubleshooting(self, session_id: str, issue: str) -> Optional[ConversationContext]:
        """Begin troubleshooting a new issue with no attempts and no escalation."""
        context = self._mutate(
            session_id,
            lambda ctx: setattr(ctx, "troubleshooting_state", TroubleshootingState(current_issue=issue)),
        )
        if context is not None:
            logger.info("Troubleshooting started: session=%s", session_id)
        return context

    def reset_troubleshooting(self, session_id: str) -> Optional[ConversationContext]:
        """Clear troubleshooting progress once an issue is resolved."""
        return self._mutate(
            session_id, lambda ctx: setattr(ctx, "troubleshooting_state", TroubleshootingState())
        )

    def summary(self, session_id: str) -> Optional[ContextSummary]:
        """Summarize a session's history, or None if empty/unknown."""
        context = self.get(session_id)
        if context is None or not context.messages:
            return None

        messages = context.messages
        return ContextSummary(
            summary=_summarize(messages),
            message_count=len(messages),
            timespan=_timespan(messages[0].timestamp, messages[-1].timestamp),
            key_topics=_key_topics(messages),
        )

    def cleanup_expired(self, now: datetime | None = None) -> int:
        """
        Drop sessions idle for longer than the retention window.

        Returns:
            Number of sessions removed
        """
        now = now or datetime.now()
        cutoff = timedelta(hours=self.config.retention_hours)

        with self._registry_lock:
            expired = [
                session_id for session_id, last in self._last_activity.items()
                if now - last > cutoff
            ]

        removed = sum(1 for session_id in expired if self.end(session_id))
        if removed:
            logger.info("Cleaned up %d expired conversation contexts", removed)
        return removed

    def stats(self) -> dict:
        """Get statistics about stored sessions."""
        with self._registry_lock:
            total_sessions = len(self._contexts)
            total_messages = sum(len(ctx.messages) for ctx in self._contexts.values())

        average = total_messages / total_sessions if total_sessions else 0.0
        return {
            "total_sessions": total_sessions,
            "total_messages": total_messages,
            "average_messages_per_session": round(average, 2),
        }

    def _lock_for(self, session_id: str) -> Optional[threading.Lock]:
        with self._registry_lock:
            return self._session_locks.get(session_id)

    def _mutate(self, session_id: str, change) -> Optional[ConversationContext]:
        lock = self._lock_for(session_id)
        if lock is None:
            return None

        with lock:
            context = self._contexts.get(session_id)
            if context is None:
                return None
            change(context)
            self._touch(session_id)
        return context

    def _touch(self, session_id: str) -> None:
        with self._registry_lock:
            if session_id in self._last_activity:
                self._last_activity[session_id] = datetime.now()

    def _compress(self, session_id: str, context: ConversationContext) -> None:
        """Replace messages beyond max_messages with one system summary message."""
        if len(context.messages) <= self.config.max_messages:
            return

        older = context.messages[:-self.config.max_messages]
        recent = context.messages[-self.config.max_messages:]
        summary_message = Message(
            message_id=f"summary-{uuid.uuid4().hex[:12]}",
            session_id=session_id,
            content=f"Previous conversation summary: {_summarize(older)}",
            message_type=MessageType.system,
            intent="summary",
        )
        context.messages = [summary_message] + recent

        logger.debug("Compressed context: session=%s dropped=%d", session_id, len(older))


def _key_topics(messages: list[Message]) -> list[str]:
    topics: dict[str, None] = {}
    for message in messages:
        if message.intent:
            topics.setdefault(message.intent, None)

    user_text = " ".join(
        m.content.lower() for m in messages if m.message_type == MessageType.user
    )
    for keyword in TOPIC_KEYWORDS:
        if keyword in user_text:
            topics.setdefault(keyword, None)

    return list(topics)[:5]


def _summarize(messages: list[Message]) -> str:
    if not messages:
        return "No previous conversation"

    user_count = sum(1 for m in messages if m.message_type == MessageType.user)
    assistant_count = sum(1 for m in messages if m.message_type == MessageType.assistant)
    topics = _key_topics(messages)
    topics_text = f" Topics discussed: {', '.join(topics)}." if topics else ""

    return (
        f"User asked {user_count} question{'s' if user_count != 1 else ''} "
        f"and received {assistant_count} response{'s' if assistant_count != 1 else ''}.{topics_text}"
    )


def _timespan(start: datetime, end: datetime) -> str:
    minutes = int((end - start).total_seconds() // 60)
    if minutes < 60:
        return f"{minutes} minutes"
    if minutes < 1440:
        hours = minutes // 60
        return f"{hours} hour{'s' if hours > 1 else ''}"
    days = minutes // 1440
    return f"{days} day{'s' if days > 1 else ''}"
