"""
Audit Storage

DESIGN DECISION: Audit persistence sits behind an abstract interface,
so a host application can route events to a file, a database or a
remote sink without touching the engine. The engine ships with an
in-memory implementation.
"""

from abc import ABC, abstractmethod
from collections import deque
from typing import Optional
from uuid import UUID

from expense_tracker.models.audit import AuditEvent

DEFAULT_MAX_EVENTS = 10_000


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """

    @abstractmethod
    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Events of one command, in chronological order."""

    @abstractmethod
    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """Events about one entity, in chronological order."""

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Most recent events, newest first."""


class InMemoryAuditStorage(AuditStorageInterface):
    """
    Audit trail kept in process memory.

    Only the newest `max_events` events are kept; older ones are dropped
    as new ones arrive. None keeps everything.
    """

    def __init__(self, max_events: Optional[int] = DEFAULT_MAX_EVENTS):
        self._events: deque[AuditEvent] = deque(maxlen=max_events)

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        return [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]

    def __len__(self) -> int:
        return len(self._events)
