"""Knowledge storage, search and conversation contexts.

This package provides:
- KnowledgeStore: in-memory entries with category and keyword indexes
- SearchEngine: weighted keyword scoring and ranking over the store
- ConversationStore: per-session conversation contexts
"""

from .store import KnowledgeStore
from .retriever import SearchEngine, score_entry, INTENT_CATEGORIES
from .seed import DEFAULT_ENTRIES, build_default_store
from .conversation_store import ConversationStore

__all__ = [
    # Store
    "KnowledgeStore",
    # Search
    "SearchEngine",
    "score_entry",
    "INTENT_CATEGORIES",
    # Seeding
    "DEFAULT_ENTRIES",
    "build_default_store",
    # Conversation contexts
    "ConversationStore",
]
