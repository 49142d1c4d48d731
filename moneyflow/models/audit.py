"""
Audit Models for Money Flow

Every mutation of the money graph is logged for audit purposes.
This provides:
1. Traceability of how the current snapshot came to be
2. Debugging information when a load or save goes wrong
3. Visibility into rejected operations (duplicates, self-loops...)

DESIGN DECISION: Audit events are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Graph mutations
    NODE_ADDED = "node_added"
    NODE_UPDATED = "node_updated"
    NODE_DELETED = "node_deleted"
    LINK_ADDED = "link_added"
    LINK_UPDATED = "link_updated"
    LINK_DELETED = "link_deleted"
    OPERATION_REJECTED = "operation_rejected"

    # Profiles and settings
    PROFILE_ADDED = "profile_added"
    PROFILE_DELETED = "profile_deleted"
    PROFILE_SWITCHED = "profile_switched"
    SIMULATION_UPDATED = "simulation_updated"
    STRATEGY_UPDATED = "strategy_updated"

    # Persistence
    GRAPH_SAVED = "graph_saved"
    GRAPH_LOADED = "graph_loaded"
    GRAPH_LOAD_FAILED = "graph_load_failed"
    DEFAULTS_SEEDED = "defaults_seeded"
    BACKUP_EXPORTED = "backup_exported"
    BACKUP_IMPORTED = "backup_imported"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'node', 'link', 'profile', 'graph')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Node id, link id or profile name"
    )

    # Correlation - ties together all events of one session
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.node_added(node_id, "asset", "ISA", correlation_id)
        event = AuditEventBuilder.operation_rejected("add_link", "link", ...)
    """

    @staticmethod
    def node_added(
        node_id: int,
        node_type: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NODE_ADDED,
            entity_type="node",
            entity_id=str(node_id),
            correlation_id=correlation_id,
            description=f"Node added: {name}",
            details={"node_type": node_type, "name": name},
        )

    @staticmethod
    def node_updated(
        node_id: int,
        fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NODE_UPDATED,
            entity_type="node",
            entity_id=str(node_id),
            correlation_id=correlation_id,
            description=f"Node {node_id} updated",
            details={"fields": fields},
        )

    @staticmethod
    def node_deleted(
        node_id: int,
        removed_links: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NODE_DELETED,
            entity_type="node",
            entity_id=str(node_id),
            correlation_id=correlation_id,
            description=f"Node {node_id} deleted with {removed_links} link(s)",
            details={"removed_links": removed_links},
        )

    @staticmethod
    def link_changed(
        event_type: AuditEventType,
        source: int,
        target: int,
        amount: Optional[float] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        verb = event_type.value.split("_")[-1]
        return AuditEvent(
            event_type=event_type,
            entity_type="link",
            entity_id=f"link_{source}_{target}",
            correlation_id=correlation_id,
            description=f"Link {source} -> {target} {verb}",
            details={"source": source, "target": target, "amount": amount},
        )

    @staticmethod
    def operation_rejected(
        operation: str,
        entity_type: str,
        entity_id: Optional[str],
        status: str,
        message: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{operation} not performed: {status}",
            details={"operation": operation, "status": status},
            error_message=message,
        )

    @staticmethod
    def profile_changed(
        event_type: AuditEventType,
        profile: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type="profile",
            entity_id=profile,
            correlation_id=correlation_id,
            description=f"Profile {event_type.value.split('_')[-1]}: {profile}",
        )

    @staticmethod
    def settings_updated(
        event_type: AuditEventType,
        details: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type="graph",
            correlation_id=correlation_id,
            description=event_type.value.replace("_", " ").capitalize(),
            details=details,
        )

    @staticmethod
    def graph_persisted(
        event_type: AuditEventType,
        node_count: int,
        link_count: int,
        location: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        severity = AuditSeverity.DEBUG if event_type == AuditEventType.GRAPH_SAVED else AuditSeverity.INFO
        return AuditEvent(
            event_type=event_type,
            severity=severity,
            entity_type="graph",
            entity_id=location,
            correlation_id=correlation_id,
            description=f"{event_type.value.replace('_', ' ').capitalize()}: "
                        f"{node_count} nodes, {link_count} links",
            details={"nodes": node_count, "links": link_count},
        )

    @staticmethod
    def graph_load_failed(
        source: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GRAPH_LOAD_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="graph",
            entity_id=source,
            correlation_id=correlation_id,
            description=f"Could not load graph from {source}",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"System error: {error_type}",
            details=details or {},
            error_message=error_message,
        )
