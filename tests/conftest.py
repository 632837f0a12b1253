"""
Shared fixtures for chat core tests.

Everything is built with explicit options so local .env files and
environment variables do not change test outcomes.
"""

import pytest

from chat_core.config import ComposerOptions, ContextConfig, SearchDefaults
from chat_core.kb import ConversationStore, KnowledgeStore, SearchEngine, build_default_store
from chat_core.pipeline import ChatResponder, ResponseComposer
from chat_core.schemas import (
    ConversationContext, Intent, IntentClassification, Message, MessageType,
    QueryAnalysis, TroubleshootingState, UserPreferences
)


@pytest.fixture
def store():
    """Knowledge store seeded with the default entries."""
    return build_default_store()


@pytest.fixture
def empty_store():
    """Knowledge store with no entries."""
    return KnowledgeStore()


@pytest.fixture
def engine(store):
    """Search engine over the seeded store."""
    return SearchEngine(store, SearchDefaults())


@pytest.fixture
def composer():
    """Composer with default options."""
    return ResponseComposer(ComposerOptions())


@pytest.fixture
def conversations():
    """Conversation store with default limits."""
    return ConversationStore(ContextConfig())


@pytest.fixture
def responder(engine, composer, conversations):
    """Turn responder wired to the seeded store."""
    return ChatResponder(engine, composer, conversations)


@pytest.fixture
def context():
    """Fresh conversation context with default preferences."""
    return ConversationContext(
        user_preferences=UserPreferences(),
        troubleshooting_state=TroubleshootingState(),
    )


def make_messages(count: int, session_id: str = "s1") -> list[Message]:
    """Alternating user/assistant messages."""
    return [
        Message(
            message_id=f"m{i}",
            session_id=session_id,
            content=f"message {i}",
            message_type=MessageType.user if i % 2 == 0 else MessageType.assistant,
        )
        for i in range(count)
    ]


def make_analysis(
    intent: Intent,
    confidence: float = 0.8,
    is_follow_up: bool = False,
    previous_intent: str | None = None,
    knowledge_matches=None
) -> QueryAnalysis:
    """Query analysis for a given intent."""
    return QueryAnalysis(
        classification=IntentClassification(intent=intent, confidence=confidence),
        is_follow_up=is_follow_up,
        previous_intent=previous_intent,
        knowledge_matches=knowledge_matches or [],
    )
