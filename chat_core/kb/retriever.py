"""
Keyword scoring and ranking over the knowledge store.
"""

import logging
from typing import Optional

from ..config import SearchDefaults, get_search_defaults
from ..schemas import Category, Intent, KnowledgeEntry, SearchResult
from ..utils import tokenize, normalize_text
from .store import KnowledgeStore

logger = logging.getLogger(__name__)

# Per query word, the largest applicable weight counts once.
QUESTION_EXACT = 0.5
QUESTION_PARTIAL = 0.3
ANSWER_EXACT = 0.2
KEYWORD_EXACT = 0.4
KEYWORD_PARTIAL = 0.25

# Intents that map directly onto a knowledge category
INTENT_CATEGORIES = {
    Intent.faq: Category.faq,
    Intent.troubleshooting: Category.troubleshooting,
    Intent.onboarding: Category.onboarding,
    Intent.product: Category.product,
}


def _partial(word: str, candidates: list[str]) -> bool:
    return any(word in candidate or candidate in word for candidate in candidates)


def score_entry(entry: KnowledgeEntry, query_words: list[str]) -> SearchResult:
    """
    Score one entry against already-normalized query words.

    Args:
        entry: Knowledge entry to score
        query_words: Normalized, non-empty query words

    Returns:
        SearchResult carrying the score and distinct matched words
    """
    question_words = tokenize(entry.question)
    answer_words = set(tokenize(entry.answer))
    keywords = [k for k in (normalize_text(k) for k in entry.keywords) if k]

    score = 0.0
    matched: dict[str, None] = {}

    for word in query_words:
        weights = []
        if word in question_words:
            weights.append(QUESTION_EXACT)
        elif _partial(word, question_words):
            weights.append(QUESTION_PARTIAL)
        if word in answer_words:
            weights.append(ANSWER_EXACT)
        if word in keywords:
            weights.append(KEYWORD_EXACT)
        elif _partial(word, keywords):
            weights.append(KEYWORD_PARTIAL)

        if weights:
            score += max(weights)
            matched.setdefault(word, None)

    if query_words:
        # Density bonus, counted per query word occurrence
        matched_count = sum(1 for word in query_words if word in matched)
        score *= 0.5 + matched_count / len(query_words)

    return SearchResult(entry=entry, score=score, matched_keywords=list(matched))


class SearchEngine:
    """
    Stateless ranking over a KnowledgeStore.
    Reads one consistent snapshot of the store per query.
    """

    def __init__(self, store: KnowledgeStore, defaults: SearchDefaults | None = None):
        """
        Initialize the search engine.

        Args:
            store: Knowledge store to search
            defaults: Default limit and minimum score
        """
        self.store = store
        self.defaults = defaults or get_search_defaults()

    def search(
        self,
        query: str,
        category: Category | str | None = None,
        limit: Optional[int] = None,
        min_score: Optional[float] = None
    ) -> list[SearchResult]:
        """
        Rank entries against a free-text query.

        Args:
            query: Search text
            category: Restrict candidates to one category
            limit: Maximum results (defaults to configured limit)
            min_score: Drop results scoring below this (defaults to configured minimum)

        Returns:
            Results sorted by descending score; ties keep insertion order
        """
        limit = self.defaults.limit if limit is None else limit
        min_score = self.defaults.min_score if min_score is None else min_score

        query_words = tokenize(query)
        candidates = self.store.snapshot(category)

        results = []
        for entry in candidates:
            result = score_entry(entry, query_words)
            if result.score >= min_score:
                results.append(result)

        results.sort(key=lambda r: r.score, reverse=True)
        results = results[:max(limit, 0)]

        logger.debug(
            "Search '%s' (category=%s): %d candidates, %d results",
            query, category, len(candidates), len(results)
        )
        return results

    def search_for_intent(self, query: str, intent: Intent | str, **kwargs) -> list[SearchResult]:
        """Search within the category matching a knowledge-answerable intent."""
        category = INTENT_CATEGORIES.get(Intent(intent))
        return self.search(query, category=category, **kwargs)
