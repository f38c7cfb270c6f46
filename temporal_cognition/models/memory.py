"""Temporal memory data models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Set

from ..utils.time_math import from_epoch_ms, to_epoch_ms


@dataclass
class MemoryEntry:
    """A stored piece of text with decay and access bookkeeping.

    `decay_score` and `relevance_score` are recomputed by the index at query
    time; the stored values only reflect the last search.
    """

    id: str
    content: str
    timestamp: datetime
    last_accessed_at: datetime
    decay_score: float = 1.0
    relevance_score: float = 1.0
    access_count: int = 0
    associated_task_ids: Set[str] = field(default_factory=set)
    temporal_context: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'content': self.content,
            'timestamp': to_epoch_ms(self.timestamp),
            'decayScore': self.decay_score,
            'relevanceScore': self.relevance_score,
            'accessCount': self.access_count,
            'lastAccessedAt': to_epoch_ms(self.last_accessed_at),
            'associatedTasks': sorted(self.associated_task_ids),
        }
        if self.temporal_context is not None:
            data['temporalContext'] = self.temporal_context
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MemoryEntry':
        timestamp = from_epoch_ms(data['timestamp'])
        last_accessed = data.get('lastAccessedAt')
        return cls(
            id=data['id'],
            content=data['content'],
            timestamp=timestamp,
            last_accessed_at=from_epoch_ms(last_accessed) if last_accessed is not None else timestamp,
            decay_score=float(data.get('decayScore', 1.0)),
            relevance_score=float(data.get('relevanceScore', 1.0)),
            access_count=int(data.get('accessCount', 0)),
            associated_task_ids=set(data.get('associatedTasks', [])),
            temporal_context=data.get('temporalContext'),
        )
