"""
Graph Store

The money graph: nodes, directed links, profiles, and the simulation and
strategy settings saved with them.

DESIGN DECISION: The graph is a plain object the caller constructs and
passes around. There is no process-wide instance.

GUARANTEES:
- No self-loops, at most one link per (source, target) pair
- Every link references existing nodes; deleting a node removes its
  links in the same step
- Node ids come from a counter that never goes backwards
- At least one profile always exists

Every operation returns an OperationResult. Nothing here raises for
expected outcomes like a duplicate link or a missing id.
"""

from typing import Optional, Union

from pydantic import ValidationError

from moneyflow.config import get_settings
from moneyflow.flows.aggregator import calculate_flows
from moneyflow.models.graph import (
    NODE_ADAPTER,
    NODE_CLASSES,
    PAYLOAD_FIELDS,
    Link,
    LinkUpdate,
    Node,
    NodeType,
    NodeUpdate,
    node_fields,
)
from moneyflow.models.results import (
    FlowStats,
    OperationResult,
    OperationStatus,
    ValidationIssue,
)
from moneyflow.models.simulation import SimulationConfig, Strategy
from moneyflow.validation import GraphValidator, issues_from_error


class FlowGraph:
    """
    Owns the nodes and links of one money graph.

    `nodes` and `links` are exposed read-only by convention; mutate them
    through the methods so the invariants hold.
    """

    def __init__(
        self,
        owners: Optional[list[str]] = None,
        current_profile: Optional[str] = None,
        simulation: Optional[SimulationConfig] = None,
        strategy: Optional[Strategy] = None,
        validator: Optional[GraphValidator] = None,
    ):
        defaults = get_settings().model
        self._default_asset_rate = defaults.default_asset_interest_rate
        self._validator = validator or GraphValidator()

        self.nodes: list[Node] = []
        self.links: list[Link] = []
        self.next_id = 1

        self.owners: list[str] = list(owners) if owners else [defaults.default_profile]
        self.current_profile = (
            current_profile if current_profile in self.owners else self.owners[0]
        )
        self.simulation = simulation or SimulationConfig(
            inflation_rate=defaults.default_inflation_rate
        )
        self.strategy = strategy or Strategy()

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get_node(self, node_id: int) -> Optional[Node]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_link(self, source: int, target: int) -> Optional[Link]:
        for link in self.links:
            if link.source == source and link.target == target:
                return link
        return None

    def filtered_nodes(self, profile: Optional[str] = None) -> list[Node]:
        """
        Nodes visible to `profile` (its own plus shared ones).

        `None` means the current profile; an empty string means every node.
        """
        profile = self.current_profile if profile is None else profile
        return [node for node in self.nodes if node.belongs_to(profile)]

    def filtered_links(self, profile: Optional[str] = None) -> list[Link]:
        """Links with at least one endpoint visible to `profile`."""
        visible = {node.id for node in self.filtered_nodes(profile)}
        return [
            link for link in self.links
            if link.source in visible or link.target in visible
        ]

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    def add_node(
        self,
        node_type: Union[NodeType, str],
        name: str,
        value: float = 0.0,
        owner: Optional[str] = None,
        x: float = 0.0,
        y: float = 0.0,
        **extra,
    ) -> OperationResult:
        """
        Create a node with the next free id.

        Args:
            node_type: income, bucket, expense or asset
            name: Display label
            value: Monthly amount or current balance
            owner: Profile name; None uses the current profile, "" makes
                the node shared
            extra: Type-specific fields (interest_rate, target_weight,
                sub_items)

        Returns:
            OperationResult with the new node, or INVALID (no id consumed)
        """
        try:
            node_type = NodeType(node_type)
        except ValueError:
            return OperationResult.invalid([ValidationIssue(
                field="type",
                issue_type="invalid_value",
                message=f"Unknown node type: {node_type}",
            )])

        stray = sorted(set(extra) - PAYLOAD_FIELDS)
        if stray:
            return OperationResult.invalid([
                ValidationIssue(
                    field=field,
                    issue_type="unsupported_field",
                    message=f"{field} cannot be set when adding a node",
                )
                for field in stray
            ])

        check = self._validator.validate_node_values(
            node_type, {"name": name, "value": value, **extra}
        )
        if check.has_errors:
            return OperationResult.invalid(check.issues)

        if node_type == NodeType.ASSET:
            extra.setdefault("interest_rate", self._default_asset_rate)

        try:
            node = NODE_CLASSES[node_type](
                id=self.next_id,
                name=name,
                value=value,
                owner=self.current_profile if owner is None else owner,
                x=x,
                y=y,
                **extra,
            )
        except ValidationError as exc:
            return OperationResult.invalid(issues_from_error(exc))

        self.next_id += 1
        self.nodes.append(node)
        return OperationResult(status=OperationStatus.OK, value=node, issues=check.issues)

    def update_node(
        self,
        node_id: int,
        update: Union[NodeUpdate, dict],
    ) -> OperationResult:
        """
        Apply the explicitly set fields of `update` to a node.

        Same-type updates change the existing object in place. A type
        change replaces it with a node of the new kind under the same id
        and position, dropping fields the new kind does not carry.
        Nothing changes unless the whole update is valid.
        """
        node = self.get_node(node_id)
        if node is None:
            return OperationResult.not_found(f"Node {node_id} does not exist")

        if isinstance(update, dict):
            try:
                update = NodeUpdate(**update)
            except ValidationError as exc:
                return OperationResult.invalid(issues_from_error(exc))

        changes = update.changes()
        # an explicit None type means "keep the current kind"
        new_type = NodeType(changes.pop("type", None) or node.type)

        check = self._validator.validate_node_values(new_type, changes)
        if check.has_errors:
            return OperationResult.invalid(check.issues)

        carried = node_fields(new_type)
        merged = {
            key: value for key, value in node.model_dump().items() if key in carried
        }
        merged.update(changes)
        merged["type"] = new_type.value
        if new_type == NodeType.ASSET:
            merged.setdefault("interest_rate", self._default_asset_rate)

        try:
            candidate = NODE_ADAPTER.validate_python(merged)
        except ValidationError as exc:
            return OperationResult.invalid(issues_from_error(exc))

        if candidate.type == node.type:
            for field in changes:
                if field != "type":
                    setattr(node, field, getattr(candidate, field))
            result_node = node
        else:
            self.nodes = [candidate if n is node else n for n in self.nodes]
            result_node = candidate

        return OperationResult(
            status=OperationStatus.OK, value=result_node, issues=check.issues
        )

    def delete_node(self, node_id: int) -> OperationResult:
        """
        Remove a node and every link touching it.

        Both lists are rebuilt first and swapped together, so no dangling
        link is ever visible.
        """
        node = self.get_node(node_id)
        if node is None:
            return OperationResult.not_found(f"Node {node_id} does not exist")

        remaining_nodes = [n for n in self.nodes if n.id != node_id]
        remaining_links = [link for link in self.links if not link.touches(node_id)]
        removed = len(self.links) - len(remaining_links)

        self.nodes, self.links = remaining_nodes, remaining_links
        return OperationResult.success(node, message=f"Removed {removed} link(s)")

    # -------------------------------------------------------------------------
    # Links
    # -------------------------------------------------------------------------

    def add_link(self, source: int, target: int, amount: float = 0.0) -> OperationResult:
        """
        Connect two nodes.

        A self-loop or a second link for the same (source, target) pair
        is rejected; the existing link keeps its amount.
        """
        if source == target:
            return OperationResult.rejected(
                OperationStatus.REJECTED_SELF_LOOP,
                f"Node {source} cannot link to itself",
            )
        if self.get_link(source, target) is not None:
            return OperationResult.rejected(
                OperationStatus.REJECTED_DUPLICATE,
                f"Link {source} -> {target} already exists",
            )
        for endpoint in (source, target):
            if self.get_node(endpoint) is None:
                return OperationResult.not_found(f"Node {endpoint} does not exist")

        check = self._validator.validate_link_amount(amount)
        if check.has_errors:
            return OperationResult.invalid(check.issues)

        try:
            link = Link(source=source, target=target, amount=amount)
        except ValidationError as exc:
            return OperationResult.invalid(issues_from_error(exc))

        self.links.append(link)
        return OperationResult.success(link)

    def update_link(
        self,
        source: int,
        target: int,
        update: Union[LinkUpdate, dict],
    ) -> OperationResult:
        link = self.get_link(source, target)
        if link is None:
            return OperationResult.not_found(f"Link {source} -> {target} does not exist")

        if isinstance(update, dict):
            try:
                update = LinkUpdate(**update)
            except ValidationError as exc:
                return OperationResult.invalid(issues_from_error(exc))

        changes = update.changes()
        if changes.get("amount") is not None:
            link.amount = changes["amount"]
        return OperationResult.success(link)

    def delete_link(self, source: int, target: int) -> OperationResult:
        """Remove a link. Safe to call for a link that does not exist."""
        remaining = [
            link for link in self.links
            if not (link.source == source and link.target == target)
        ]
        if len(remaining) == len(self.links):
            return OperationResult.not_found(f"Link {source} -> {target} does not exist")
        self.links = remaining
        return OperationResult.success()

    def move_link(
        self,
        source: int,
        target: int,
        new_source: int,
        new_target: int,
        amount: Optional[float] = None,
    ) -> OperationResult:
        """
        Change a link's endpoints.

        The pair is the link's identity, so this deletes the old link and
        adds a new one. If the new link is rejected the old one is put back.
        """
        old = self.get_link(source, target)
        if old is None:
            return OperationResult.not_found(f"Link {source} -> {target} does not exist")

        if (new_source, new_target) == old.key:
            if amount is None:
                return OperationResult.success(old)
            return self.update_link(source, target, LinkUpdate(amount=amount))

        position = next(i for i, link in enumerate(self.links) if link is old)
        self.links = [link for link in self.links if link is not old]

        result = self.add_link(new_source, new_target, old.amount if amount is None else amount)
        if not result.ok:
            self.links.insert(position, old)
        return result

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    def get_owners(self) -> list[str]:
        return list(self.owners)

    def add_owner(self, name: str) -> OperationResult:
        name = (name or "").strip()
        if not name:
            return OperationResult.invalid([ValidationIssue(
                field="owner",
                issue_type="missing",
                message="Profile name must not be empty",
            )])
        if name in self.owners:
            return OperationResult.rejected(
                OperationStatus.REJECTED_DUPLICATE,
                f"Profile {name} already exists",
            )
        self.owners.append(name)
        return OperationResult.success(name)

    def delete_owner(self, name: str) -> OperationResult:
        """
        Remove a profile. Its nodes become shared.

        The last remaining profile cannot be deleted. If the current
        profile is deleted, the first remaining one becomes current.
        """
        if name not in self.owners:
            return OperationResult.not_found(f"Profile {name} does not exist")
        if len(self.owners) <= 1:
            return OperationResult.rejected(
                OperationStatus.REJECTED_LAST_PROFILE,
                "At least one profile must exist",
            )

        self.owners = [owner for owner in self.owners if owner != name]
        for node in self.nodes:
            if node.owner == name:
                node.owner = ""
        if self.current_profile == name:
            self.current_profile = self.owners[0]
        return OperationResult.success(name)

    def switch_profile(self, name: str) -> OperationResult:
        if name not in self.owners:
            return OperationResult.not_found(f"Profile {name} does not exist")
        self.current_profile = name
        return OperationResult.success(name)

    # -------------------------------------------------------------------------
    # Simulation & strategy
    # -------------------------------------------------------------------------

    def update_simulation(self, **fields) -> OperationResult:
        """Replace simulation settings with a validated copy."""
        unknown = sorted(set(fields) - set(SimulationConfig.model_fields))
        if unknown:
            return OperationResult.invalid([
                ValidationIssue(
                    field=field,
                    issue_type="unsupported_field",
                    message=f"Simulation has no setting named {field}",
                )
                for field in unknown
            ])

        check = self._validator.validate_simulation(fields)
        if check.has_errors:
            return OperationResult.invalid(check.issues)

        try:
            simulation = SimulationConfig(**{**self.simulation.model_dump(), **fields})
        except ValidationError as exc:
            return OperationResult.invalid(issues_from_error(exc))

        self.simulation = simulation
        return OperationResult.success(simulation)

    def update_strategy(self, summary: str) -> OperationResult:
        self.strategy = self.strategy.revise(summary)
        return OperationResult.success(self.strategy)

    # -------------------------------------------------------------------------
    # Flows
    # -------------------------------------------------------------------------

    def calculate_flows(self, profile: Optional[str] = None) -> FlowStats:
        """Aggregate flows for `profile` (default: the current profile)."""
        return calculate_flows(self, self.current_profile if profile is None else profile)
