"""
Session Orchestrator for Money Flow

Ties together the graph, snapshot persistence and audit logging, and
defines the flows a user interface drives:
1. Open (load stored graph -> or seed the sample graph)
2. Edit (mutate -> audit -> save the whole snapshot)
3. Read (aggregate flows, project, summarize)
4. Backup (export to file / import from file)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Every successful mutation is persisted immediately (last write wins)
- Rejected operations are audited but never persisted
- A failed load or import never replaces the graph in use
"""

from pathlib import Path
from typing import Callable, Optional, Union

from moneyflow.audit import AuditLogger, configure_logging
from moneyflow.config import get_settings
from moneyflow.flows.summary import ProfileSummary, net_worth, profile_summaries
from moneyflow.graph.seed import seed_default_graph
from moneyflow.graph.store import FlowGraph
from moneyflow.models.audit import AuditEventType
from moneyflow.models.graph import LinkUpdate, NodeType, NodeUpdate
from moneyflow.models.results import FlowStats, OperationResult
from moneyflow.persistence import DocumentParseError, StorageManager
from moneyflow.services.storage import (
    InMemoryAuditStorage,
    InMemoryKeyValueStorage,
    JsonFileKeyValueStorage,
    StorageError,
)


class MoneyFlowSession:
    """
    One interactive editing session over one graph.

    All methods are synchronous; there is one writer at a time.
    """

    def __init__(
        self,
        storage_manager: StorageManager,
        audit_logger: Optional[AuditLogger] = None,
        graph: Optional[FlowGraph] = None,
        seed_defaults: Optional[bool] = None,
    ):
        self._storage = storage_manager
        self._audit = audit_logger or AuditLogger()
        self._graph = graph or FlowGraph()
        self._seed_defaults = (
            get_settings().app.seed_defaults if seed_defaults is None else seed_defaults
        )

    @property
    def graph(self) -> FlowGraph:
        return self._graph

    # -------------------------------------------------------------------------
    # Load & save
    # -------------------------------------------------------------------------

    def open(self) -> FlowGraph:
        """
        Load the stored graph.

        Falls back to a fresh graph (seeded with the sample data unless
        disabled) when nothing is stored or the stored document is
        malformed. A malformed document is copied aside first, so the
        fresh graph never destroys it.
        """
        try:
            loaded = self._storage.load()
        except DocumentParseError as e:
            kept_as = self._storage.preserve_unreadable()
            self._audit.log_load_failed(
                self._storage.key, f"{e} (original kept under {kept_as})"
            )
            loaded = None

        if loaded is not None:
            self._graph = loaded
            self._audit.log_graph_persisted(
                AuditEventType.GRAPH_LOADED,
                len(loaded.nodes),
                len(loaded.links),
                location=self._storage.key,
            )
            return self._graph

        self._graph = FlowGraph()
        if self._seed_defaults:
            seed_default_graph(self._graph)
            self._audit.log_graph_persisted(
                AuditEventType.DEFAULTS_SEEDED,
                len(self._graph.nodes),
                len(self._graph.links),
            )
            self.save()
        return self._graph

    def save(self) -> None:
        """
        Raises:
            StorageError: If the snapshot could not be written
        """
        try:
            self._storage.save(self._graph)
        except StorageError as e:
            self._audit.log_error("storage_error", str(e), {"key": self._storage.key})
            raise
        self._audit.log_graph_persisted(
            AuditEventType.GRAPH_SAVED,
            len(self._graph.nodes),
            len(self._graph.links),
            location=self._storage.key,
        )

    def _commit(
        self,
        result: OperationResult,
        operation: str,
        entity_type: str,
        entity_id: Optional[str],
        on_success: Callable[[], None],
    ) -> OperationResult:
        if result.ok:
            on_success()
            self.save()
        else:
            self._audit.log_rejection(operation, entity_type, entity_id, result)
        return result

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    def add_node(
        self,
        node_type: Union[NodeType, str],
        name: str,
        value: float = 0.0,
        owner: Optional[str] = None,
        **extra,
    ) -> OperationResult:
        result = self._graph.add_node(node_type, name, value, owner, **extra)
        return self._commit(
            result, "add_node", "node", None,
            lambda: self._audit.log_node_added(
                result.value.id, result.value.type, result.value.name
            ),
        )

    def update_node(self, node_id: int, update: Union[NodeUpdate, dict]) -> OperationResult:
        result = self._graph.update_node(node_id, update)
        fields = sorted(update.changes() if isinstance(update, NodeUpdate) else update)
        return self._commit(
            result, "update_node", "node", str(node_id),
            lambda: self._audit.log_node_updated(node_id, fields),
        )

    def delete_node(self, node_id: int) -> OperationResult:
        link_count = len(self._graph.links)
        result = self._graph.delete_node(node_id)
        return self._commit(
            result, "delete_node", "node", str(node_id),
            lambda: self._audit.log_node_deleted(
                node_id, link_count - len(self._graph.links)
            ),
        )

    # -------------------------------------------------------------------------
    # Links
    # -------------------------------------------------------------------------

    def add_link(self, source: int, target: int, amount: float = 0.0) -> OperationResult:
        result = self._graph.add_link(source, target, amount)
        return self._commit(
            result, "add_link", "link", f"link_{source}_{target}",
            lambda: self._audit.log_link_changed(
                AuditEventType.LINK_ADDED, source, target, amount
            ),
        )

    def update_link(
        self,
        source: int,
        target: int,
        update: Union[LinkUpdate, dict],
    ) -> OperationResult:
        result = self._graph.update_link(source, target, update)
        return self._commit(
            result, "update_link", "link", f"link_{source}_{target}",
            lambda: self._audit.log_link_changed(
                AuditEventType.LINK_UPDATED, source, target, result.value.amount
            ),
        )

    def delete_link(self, source: int, target: int) -> OperationResult:
        result = self._graph.delete_link(source, target)
        return self._commit(
            result, "delete_link", "link", f"link_{source}_{target}",
            lambda: self._audit.log_link_changed(
                AuditEventType.LINK_DELETED, source, target
            ),
        )

    def move_link(
        self,
        source: int,
        target: int,
        new_source: int,
        new_target: int,
        amount: Optional[float] = None,
    ) -> OperationResult:
        result = self._graph.move_link(source, target, new_source, new_target, amount)

        def log_move() -> None:
            if (new_source, new_target) != (source, target):
                self._audit.log_link_changed(AuditEventType.LINK_DELETED, source, target)
                self._audit.log_link_changed(
                    AuditEventType.LINK_ADDED, new_source, new_target, result.value.amount
                )
            else:
                self._audit.log_link_changed(
                    AuditEventType.LINK_UPDATED, source, target, result.value.amount
                )

        return self._commit(
            result, "move_link", "link", f"link_{source}_{target}", log_move
        )

    # -------------------------------------------------------------------------
    # Profiles, simulation, strategy
    # -------------------------------------------------------------------------

    def add_owner(self, name: str) -> OperationResult:
        result = self._graph.add_owner(name)
        return self._commit(
            result, "add_owner", "profile", name,
            lambda: self._audit.log_profile_changed(AuditEventType.PROFILE_ADDED, result.value),
        )

    def delete_owner(self, name: str) -> OperationResult:
        result = self._graph.delete_owner(name)
        return self._commit(
            result, "delete_owner", "profile", name,
            lambda: self._audit.log_profile_changed(AuditEventType.PROFILE_DELETED, name),
        )

    def switch_profile(self, name: str) -> OperationResult:
        result = self._graph.switch_profile(name)
        return self._commit(
            result, "switch_profile", "profile", name,
            lambda: self._audit.log_profile_changed(AuditEventType.PROFILE_SWITCHED, name),
        )

    def update_simulation(self, **fields) -> OperationResult:
        result = self._graph.update_simulation(**fields)
        return self._commit(
            result, "update_simulation", "graph", None,
            lambda: self._audit.log_settings_updated(
                AuditEventType.SIMULATION_UPDATED, result.value.model_dump()
            ),
        )

    def update_strategy(self, summary: str) -> OperationResult:
        result = self._graph.update_strategy(summary)
        return self._commit(
            result, "update_strategy", "graph", None,
            lambda: self._audit.log_settings_updated(
                AuditEventType.STRATEGY_UPDATED, {"length": len(summary)}
            ),
        )

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def calculate_flows(self, profile: Optional[str] = None) -> FlowStats:
        return self._graph.calculate_flows(profile)

    def net_worth(self, profile: Optional[str] = None) -> float:
        return net_worth(self._graph, self.calculate_flows(profile), profile)

    def profile_summaries(self) -> list[ProfileSummary]:
        return profile_summaries(self._graph)

    # -------------------------------------------------------------------------
    # Backup
    # -------------------------------------------------------------------------

    def export_backup(self, directory: Path) -> Path:
        path = self._storage.export_to_file(self._graph, directory)
        self._audit.log_graph_persisted(
            AuditEventType.BACKUP_EXPORTED,
            len(self._graph.nodes),
            len(self._graph.links),
            location=str(path),
        )
        return path

    def import_backup(self, path: Path) -> FlowGraph:
        """
        Replace the graph with a backup file's content.

        Raises:
            DocumentParseError: If the file is malformed; the current
                graph stays in place
        """
        try:
            imported = self._storage.import_from_file(path)
        except DocumentParseError as e:
            self._audit.log_load_failed(str(path), str(e))
            raise

        self._graph = imported
        self._audit.log_graph_persisted(
            AuditEventType.BACKUP_IMPORTED,
            len(imported.nodes),
            len(imported.links),
            location=str(path),
        )
        self.save()
        return self._graph


def create_app_components(
    use_file_storage: bool = True,
    data_dir: Optional[Path] = None,
) -> tuple[MoneyFlowSession, InMemoryAuditStorage]:
    """
    Factory function to create all application components.

    Args:
        use_file_storage: Keep the snapshot in JSON files under
            `data_dir`. Set to False for an in-memory session.
        data_dir: Overrides the configured data directory

    Returns:
        (session, audit_storage)
    """
    configure_logging()

    if use_file_storage:
        storage = JsonFileKeyValueStorage(data_dir)
    else:
        storage = InMemoryKeyValueStorage()

    audit_storage = InMemoryAuditStorage()
    session = MoneyFlowSession(
        storage_manager=StorageManager(storage),
        audit_logger=AuditLogger(audit_storage),
    )
    return session, audit_storage
