"""
Audit Logger

DESIGN DECISION: Every mutation of the graph is logged.
This provides:
1. Traceability of how the current snapshot came to be
2. Debugging capability when loads fail or operations are rejected

The audit logger:
- Gracefully handles failures (a broken audit sink never blocks a mutation)
- Supports correlation IDs to tie together the events of one session
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from moneyflow.config import get_settings
from moneyflow.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from moneyflow.models.results import OperationResult
from moneyflow.services.storage import AuditStorageInterface, StorageError


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(ensure_ascii=False)
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: Optional[str] = None) -> None:
    """Route structlog output through stdlib logging at the configured level."""
    logging.basicConfig(
        format="%(message)s",
        level=level or get_settings().app.log_level,
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An optional audit store (for history shown to the user)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
        correlation_id: Optional[UUID] = None,
    ):
        """
        Args:
            storage: Audit store. If None, only logs locally.
            correlation_id: Attached to every event built by the
                log_* helpers
        """
        self._storage = storage
        self._correlation_id = correlation_id or create_correlation_id()
        self._logger = structlog.get_logger("moneyflow.audit")

    @property
    def correlation_id(self) -> UUID:
        return self._correlation_id

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage is not None:
            try:
                return self._storage.append_event(event)
            except StorageError as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_rejection(
        self,
        operation: str,
        entity_type: str,
        entity_id: Optional[str],
        result: OperationResult,
    ) -> None:
        """Log an operation that was not performed."""
        self.log(AuditEventBuilder.operation_rejected(
            operation=operation,
            entity_type=entity_type,
            entity_id=entity_id,
            status=result.status.value,
            message=result.message,
            correlation_id=self._correlation_id,
        ))

    def log_node_added(self, node_id: int, node_type: str, name: str) -> None:
        self.log(AuditEventBuilder.node_added(
            node_id=node_id,
            node_type=node_type,
            name=name,
            correlation_id=self._correlation_id,
        ))

    def log_node_updated(self, node_id: int, fields: list[str]) -> None:
        self.log(AuditEventBuilder.node_updated(
            node_id=node_id,
            fields=fields,
            correlation_id=self._correlation_id,
        ))

    def log_node_deleted(self, node_id: int, removed_links: int) -> None:
        self.log(AuditEventBuilder.node_deleted(
            node_id=node_id,
            removed_links=removed_links,
            correlation_id=self._correlation_id,
        ))

    def log_link_changed(
        self,
        event_type: AuditEventType,
        source: int,
        target: int,
        amount: Optional[float] = None,
    ) -> None:
        self.log(AuditEventBuilder.link_changed(
            event_type=event_type,
            source=source,
            target=target,
            amount=amount,
            correlation_id=self._correlation_id,
        ))

    def log_profile_changed(self, event_type: AuditEventType, profile: str) -> None:
        self.log(AuditEventBuilder.profile_changed(
            event_type=event_type,
            profile=profile,
            correlation_id=self._correlation_id,
        ))

    def log_settings_updated(self, event_type: AuditEventType, details: dict) -> None:
        self.log(AuditEventBuilder.settings_updated(
            event_type=event_type,
            details=details,
            correlation_id=self._correlation_id,
        ))

    def log_graph_persisted(
        self,
        event_type: AuditEventType,
        node_count: int,
        link_count: int,
        location: Optional[str] = None,
    ) -> None:
        self.log(AuditEventBuilder.graph_persisted(
            event_type=event_type,
            node_count=node_count,
            link_count=link_count,
            location=location,
            correlation_id=self._correlation_id,
        ))

    def log_load_failed(self, source: str, error_message: str) -> None:
        self.log(AuditEventBuilder.graph_load_failed(
            source=source,
            error_message=error_message,
            correlation_id=self._correlation_id,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=self._correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    One per session; every event of that session carries it.
    """
    return uuid4()
