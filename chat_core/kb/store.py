"""
In-memory knowledge store with category and keyword indexes.

The entry table and both indexes are updated together under one lock, so a
reader never sees an entry listed under a stale keyword or category.
"""

import logging
import threading
import uuid
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from ..schemas import (
    Category, ImportFailure, ImportReport, KnowledgeEntry, KnowledgeEntryCreate,
    KnowledgeEntryUpdate, KnowledgeStats
)
from ..utils import normalize_text

logger = logging.getLogger(__name__)

EntryInput = KnowledgeEntryCreate | dict[str, Any]
UpdateInput = KnowledgeEntryUpdate | dict[str, Any]


class KnowledgeStore:
    """
    Owns knowledge entries plus two derived indexes:
    category -> entry ids, and normalized keyword -> entry ids.
    Empty index buckets are removed as soon as their last id goes away.
    """

    def __init__(self):
        self._entries: dict[str, KnowledgeEntry] = {}
        self._category_index: dict[Category, set[str]] = {}
        self._keyword_index: dict[str, set[str]] = {}
        self._lock = threading.RLock()
        self._last_updated = datetime.now()

    # Mutations

    def add(self, entry: EntryInput) -> KnowledgeEntry:
        """
        Add a new entry with a fresh id and timestamp.

        Args:
            entry: Entry fields without id/last_updated

        Returns:
            The stored KnowledgeEntry

        Raises:
            ValidationError: If the entry fields are invalid
        """
        data = self._validate_create(entry)

        with self._lock:
            new_entry = KnowledgeEntry(
                **data.model_dump(),
                id=uuid.uuid4().hex,
                last_updated=self._next_timestamp(),
            )
            self._entries[new_entry.id] = new_entry
            self._index(new_entry)

        logger.info(
            "Knowledge entry added: id=%s category=%s keywords=%d",
            new_entry.id, new_entry.category.value, len(new_entry.keywords)
        )
        return new_entry

    def update(self, entry_id: str, updates: UpdateInput) -> Optional[KnowledgeEntry]:
        """
        Merge the supplied fields into an existing entry.

        Args:
            entry_id: ID of the entry to update
            updates: Partial fields; unset fields keep their current value

        Returns:
            The updated entry, or None if no entry has this id
        """
        patch = updates if isinstance(updates, KnowledgeEntryUpdate) else KnowledgeEntryUpdate.model_validate(updates)
        changes = patch.model_dump(exclude_unset=True, exclude_none=True)

        with self._lock:
            existing = self._entries.get(entry_id)
            if existing is None:
                return None

            updated = KnowledgeEntry.model_validate({
                **existing.model_dump(),
                **changes,
                "last_updated": self._next_timestamp(existing.last_updated),
            })
            self._unindex(existing)
            self._entries[entry_id] = updated
            self._index(updated)

        logger.info("Knowledge entry updated: id=%s category=%s", entry_id, updated.category.value)
        return updated

    def delete(self, entry_id: str) -> bool:
        """Remove an entry and all its index associations. Returns whether it existed."""
        with self._lock:
            entry = self._entries.pop(entry_id, None)
            if entry is None:
                return False
            self._unindex(entry)
            self._next_timestamp()

        logger.info("Knowledge entry deleted: id=%s category=%s", entry_id, entry.category.value)
        return True

    def clear(self) -> None:
        """Remove every entry and empty both indexes."""
        with self._lock:
            self._entries.clear()
            self._category_index.clear()
            self._keyword_index.clear()
            self._next_timestamp()

        logger.info("Knowledge base cleared")

    def bulk_import(self, entries: Iterable[EntryInput]) -> ImportReport:
        """
        Add each entry in turn. Invalid items are skipped and reported.

        Args:
            entries: Entry payloads (models or plain dicts)

        Returns:
            ImportReport with imported/skipped counts and per-item errors
        """
        report = ImportReport()

        for index, payload in enumerate(entries):
            try:
                entry = self.add(payload)
            except (ValidationError, ValueError, TypeError) as e:
                question = payload.get("question") if isinstance(payload, dict) else None
                logger.warning("Skipping knowledge entry %d (%s): %s", index, question, e)
                report.skipped += 1
                report.errors.append(ImportFailure(index=index, reason=str(e)))
                continue
            report.imported += 1
            report.entries.append(entry)

        logger.info("Bulk import completed: imported=%d skipped=%d", report.imported, report.skipped)
        return report

    # Reads

    def get(self, entry_id: str) -> Optional[KnowledgeEntry]:
        """Get an entry by id, or None."""
        with self._lock:
            return self._entries.get(entry_id)

    def get_all(self) -> list[KnowledgeEntry]:
        """All entries in insertion order."""
        with self._lock:
            return list(self._entries.values())

    def get_by_category(self, category: Category | str) -> list[KnowledgeEntry]:
        """Entries currently filed under a category. Unknown categories have no entries."""
        return self.snapshot(category)

    def find_by_keywords(self, keywords: Iterable[str]) -> list[KnowledgeEntry]:
        """Union of keyword-index lookups, without duplicates, in insertion order."""
        with self._lock:
            ids: set[str] = set()
            for keyword in keywords:
                ids.update(self._keyword_index.get(normalize_text(keyword), ()))
            return [entry for entry_id, entry in self._entries.items() if entry_id in ids]

    def snapshot(self, category: Category | str | None = None) -> list[KnowledgeEntry]:
        """
        Consistent list of entries in insertion order, optionally limited to a category.
        Used by search so ties keep a deterministic order. A category name outside
        the vocabulary matches nothing.
        """
        if category is not None:
            try:
                category = Category(category)
            except ValueError:
                logger.debug("Unknown category %r, no entries", category)
                return []

        with self._lock:
            if category is None:
                return list(self._entries.values())
            ids = self._category_index.get(category, set())
            return [entry for entry_id, entry in self._entries.items() if entry_id in ids]

    def export(self) -> list[KnowledgeEntry]:
        """All entries, for transfer to another store."""
        return self.get_all()

    def stats(self) -> KnowledgeStats:
        """Entry counts, keyword count and last mutation time."""
        with self._lock:
            return KnowledgeStats(
                total_entries=len(self._entries),
                category_counts={category: len(ids) for category, ids in self._category_index.items()},
                total_keywords=len(self._keyword_index),
                last_updated=self._last_updated,
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, entry_id: object) -> bool:
        with self._lock:
            return entry_id in self._entries

    # Index maintenance

    def _index(self, entry: KnowledgeEntry) -> None:
        self._category_index.setdefault(entry.category, set()).add(entry.id)
        for keyword in entry.keywords:
            normalized = normalize_text(keyword)
            if not normalized:
                continue
            self._keyword_index.setdefault(normalized, set()).add(entry.id)

    def _unindex(self, entry: KnowledgeEntry) -> None:
        bucket = self._category_index.get(entry.category)
        if bucket is not None:
            bucket.discard(entry.id)
            if not bucket:
                del self._category_index[entry.category]

        for keyword in entry.keywords:
            normalized = normalize_text(keyword)
            bucket = self._keyword_index.get(normalized)
            if bucket is None:
                continue
            bucket.discard(entry.id)
            if not bucket:
                del self._keyword_index[normalized]

    def _next_timestamp(self, previous: datetime | None = None) -> datetime:
        """Current time, nudged forward so timestamps strictly increase."""
        floor = max(self._last_updated, previous) if previous else self._last_updated
        now = datetime.now()
        if now <= floor:
            now = floor + timedelta(microseconds=1)
        self._last_updated = now
        return now

    @staticmethod
    def _validate_create(entry: EntryInput) -> KnowledgeEntryCreate:
        if isinstance(entry, KnowledgeEntryCreate):
            return KnowledgeEntryCreate.model_validate(entry.model_dump(include=set(KnowledgeEntryCreate.model_fields)))
        return KnowledgeEntryCreate.model_validate(entry)
