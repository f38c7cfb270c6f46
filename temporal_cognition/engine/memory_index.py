"""Temporal memory index with decayed relevance search."""

import hashlib
import logging
import re
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..models.memory import MemoryEntry
from ..utils.config import MemoryConfig
from ..utils.time_math import MS_PER_DAY, elapsed_ms, exponential_decay, to_epoch_ms
from .state import MemoryState

logger = logging.getLogger(__name__)

STALE_DECAY_THRESHOLD = 0.1
RECENT_DECAY_THRESHOLD = 0.8

_PUNCTUATION = re.compile(r'[^\w\s]')


def tokenize(text: str) -> List[str]:
    """Lowercase, strip punctuation and drop tokens of two characters or fewer."""
    return [t for t in _PUNCTUATION.sub(' ', text.lower()).split() if len(t) > 2]


def match_fraction(query_terms: List[str], content_terms: List[str]) -> float:
    """Fraction of query terms that loosely match a content term.

    A term matches when either one is a substring of the other.
    """
    if not query_terms:
        return 0.0

    matched = sum(
        1 for qt in query_terms
        if any(qt in ct or ct in qt for ct in content_terms)
    )
    return matched / len(query_terms)


class TemporalMemoryIndex:
    """Keyed memory entries scored by time decay and query relevance."""

    def __init__(
        self,
        state: MemoryState,
        config: Optional[MemoryConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.state = state
        self.config = config or MemoryConfig()
        self.clock = clock

    @property
    def half_life_ms(self) -> float:
        return self.config.decay_half_life_days * MS_PER_DAY

    def decay_score(self, entry: MemoryEntry, now: datetime) -> float:
        """Fresh decay score for an entry at `now`."""
        return exponential_decay(1.0, self.half_life_ms, max(0.0, elapsed_ms(entry.timestamp, now)))

    def add_entry(self, content: str, context: Optional[Dict[str, Any]] = None) -> MemoryEntry:
        """Store a memory. Re-adding identical content at the same instant collides."""
        now = self.clock()
        entry_id = hashlib.md5(f"{content}{to_epoch_ms(now)}".encode('utf-8')).hexdigest()[:16]

        entry = MemoryEntry(
            id=entry_id,
            content=content,
            timestamp=now,
            last_accessed_at=now,
            temporal_context=context if self.config.include_temporal_context else None,
        )

        self.state.entries[entry_id] = entry
        return entry

    def search(
        self,
        query: str,
        max_age_days: Optional[float] = None,
        limit: int = 10,
        min_relevance: float = 0.1,
    ) -> List[MemoryEntry]:
        """Rank memories against a query.

        Returned entries have their access count bumped, which makes them
        score higher in later searches.
        """
        now = self.clock()
        entries = list(self.state.entries.values())

        # Zero, like None, means no age limit
        if max_age_days:
            cutoff = now - timedelta(days=max_age_days)
            entries = [e for e in entries if e.timestamp >= cutoff]

        query_terms = tokenize(query)
        scored = []

        for entry in entries:
            entry.decay_score = self.decay_score(entry, now)

            recency_boost = (
                self.config.relevance_boost_recent
                if entry.decay_score > RECENT_DECAY_THRESHOLD
                else 1.0
            )
            access_boost = 1 + min(0.2, entry.access_count * 0.02)

            entry.relevance_score = (
                match_fraction(query_terms, tokenize(entry.content))
                * recency_boost
                * entry.decay_score
                * access_boost
            )

            if entry.relevance_score >= min_relevance:
                scored.append(entry)

        results = sorted(scored, key=lambda e: -e.relevance_score)[:limit]

        for entry in results:
            entry.access_count += 1
            entry.last_accessed_at = now

        logger.debug("Search %r matched %d of %d memories", query, len(results), len(entries))
        return results

    def get_entry(self, entry_id: str) -> Optional[MemoryEntry]:
        """Get a memory by id, recording the access."""
        entry = self.state.entries.get(entry_id)
        if entry is not None:
            entry.access_count += 1
            entry.last_accessed_at = self.clock()
        return entry

    def update_entry(
        self,
        entry_id: str,
        content: Optional[str] = None,
        associated_task_ids: Optional[Iterable[str]] = None,
    ) -> Optional[MemoryEntry]:
        """Replace an entry's content and/or task links."""
        entry = self.state.entries.get(entry_id)
        if entry is None:
            return None

        if content is not None:
            entry.content = content
        if associated_task_ids is not None:
            entry.associated_task_ids = set(associated_task_ids)

        return entry

    def associate_task(self, memory_id: str, task_id: str) -> bool:
        """Link a task id to a memory."""
        entry = self.state.entries.get(memory_id)
        if entry is None:
            return False

        entry.associated_task_ids.add(task_id)
        return True

    def remove_entry(self, entry_id: str) -> bool:
        """Delete a memory."""
        return self.state.entries.pop(entry_id, None) is not None

    def prune(self, max_age_days: float = 90, min_access_count: int = 0) -> int:
        """Remove rarely accessed memories that are old or have decayed away.

        An entry accessed no more than `min_access_count` times is removed if
        it is older than `max_age_days` or its decay score is below 0.1.
        """
        now = self.clock()
        cutoff = now - timedelta(days=max_age_days)
        pruned = 0

        for entry_id in list(self.state.entries):
            entry = self.state.entries[entry_id]
            entry.decay_score = self.decay_score(entry, now)

            if entry.access_count > min_access_count:
                continue
            if entry.timestamp < cutoff or entry.decay_score < STALE_DECAY_THRESHOLD:
                del self.state.entries[entry_id]
                pruned += 1

        if pruned:
            logger.info("Pruned %d memories", pruned)
        return pruned

    def get_memories_for_task(self, task_id: str) -> List[MemoryEntry]:
        """Get memories linked to a task."""
        return [e for e in self.state.entries.values() if task_id in e.associated_task_ids]

    def get_recent_memories(self, limit: int = 10) -> List[MemoryEntry]:
        """Get the newest memories first."""
        return sorted(self.state.entries.values(), key=lambda e: e.timestamp, reverse=True)[:limit]

    def get_statistics(self) -> Dict[str, Any]:
        """Summarize the index with freshly computed decay."""
        entries = list(self.state.entries.values())
        if not entries:
            return {
                'total_entries': 0,
                'average_decay_score': 0.0,
                'average_access_count': 0.0,
                'oldest_entry': None,
                'newest_entry': None,
            }

        now = self.clock()
        return {
            'total_entries': len(entries),
            'average_decay_score': sum(self.decay_score(e, now) for e in entries) / len(entries),
            'average_access_count': sum(e.access_count for e in entries) / len(entries),
            'oldest_entry': min(e.timestamp for e in entries),
            'newest_entry': max(e.timestamp for e in entries),
        }
