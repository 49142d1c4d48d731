"""
Persistence Codec

Converts a FlowGraph to and from the JSON document that storage keeps.

Document layout (camelCase keys):

    {
      "version": 2,
      "nodes": [{"id", "type", "name", "value", "x", "y", "owner",
                 "interestRate", "targetWeight", "subItems"}],
      "links": [{"id", "source", "target", "amount"}],
      "nextId": 7,
      "simulation": {"enabled", "months", "inflationRate", "isRealValue"},
      "owners": ["..."],
      "currentProfile": "...",
      "strategy": {"summary", "updatedAt"}
    }

Node entries only carry the payload keys of their kind.

MIGRATION (applied on every load and import):
- missing/empty owners -> [default profile]
- missing or unknown currentProfile -> first owner
- node without owner -> default profile
- blank node name -> UNNAMED_NODE_NAME
- asset without interestRate -> default asset rate
- legacy `targetPercent` -> targetWeight
- nextId raised above the largest node id
- self-loop, duplicate and dangling links are dropped

DESIGN DECISION: Decoding builds a brand-new FlowGraph. A malformed
document raises DocumentParseError and never touches a graph the caller
already holds.
"""

import json
from typing import Any, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from moneyflow.config import get_settings
from moneyflow.graph.store import FlowGraph
from moneyflow.models.graph import NODE_ADAPTER, Link, Node, NodeType
from moneyflow.models.simulation import SimulationConfig, Strategy


DOCUMENT_VERSION = 2

UNNAMED_NODE_NAME = "(이름 없음)"

logger = structlog.get_logger(__name__)


class DocumentParseError(Exception):
    """The stored document could not be turned into a graph."""
    pass


class GraphDocument(BaseModel):
    """Top-level shape of a stored document, before node migration."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    version: int = 1
    nodes: list[dict[str, Any]] = Field(default_factory=list)
    links: list[dict[str, Any]] = Field(default_factory=list)
    next_id: int = Field(default=1, ge=1)
    simulation: Optional[SimulationConfig] = None
    owners: list[str] = Field(default_factory=list)
    current_profile: Optional[str] = None
    strategy: Optional[Strategy] = None


def serialize(graph: FlowGraph) -> dict[str, Any]:
    """Snapshot the whole graph as a JSON-compatible dict."""
    max_id = max((node.id for node in graph.nodes), default=0)
    return {
        "version": DOCUMENT_VERSION,
        "nodes": [node.model_dump(mode="json", by_alias=True) for node in graph.nodes],
        "links": [link.model_dump(mode="json", by_alias=True) for link in graph.links],
        "nextId": max(graph.next_id, max_id + 1),
        "simulation": graph.simulation.model_dump(mode="json", by_alias=True),
        "owners": list(graph.owners),
        "currentProfile": graph.current_profile,
        "strategy": graph.strategy.model_dump(mode="json", by_alias=True),
    }


def _migrate_node(raw: Any, default_profile: str, default_rate: float) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise DocumentParseError(f"Node entry is not an object: {raw!r}")

    data = dict(raw)
    if data.get("owner") is None:
        data["owner"] = default_profile
    name = data.get("name")
    if isinstance(name, str) and not name.strip():
        data["name"] = UNNAMED_NODE_NAME

    if data.get("type") == NodeType.ASSET.value:
        if data.get("interestRate") is None and data.get("interest_rate") is None:
            data["interestRate"] = default_rate
        legacy_weight = data.pop("targetPercent", None)
        if data.get("targetWeight") is None and legacy_weight:
            data["targetWeight"] = legacy_weight
    return data


def deserialize(document: Any) -> FlowGraph:
    """
    Build a new FlowGraph from a stored document.

    Raises:
        DocumentParseError: If the document is malformed
    """
    if not isinstance(document, dict):
        raise DocumentParseError(
            f"Expected a JSON object, got {type(document).__name__}"
        )

    defaults = get_settings().model

    try:
        parsed = GraphDocument.model_validate(document)

        nodes: list[Node] = []
        seen_ids: set[int] = set()
        for raw in parsed.nodes:
            node = NODE_ADAPTER.validate_python(
                _migrate_node(raw, defaults.default_profile, defaults.default_asset_interest_rate)
            )
            if node.id in seen_ids:
                raise DocumentParseError(f"Duplicate node id {node.id}")
            seen_ids.add(node.id)
            nodes.append(node)

        links: list[Link] = []
        seen_pairs: set[tuple[int, int]] = set()
        for raw in parsed.links:
            if not isinstance(raw, dict):
                raise DocumentParseError(f"Link entry is not an object: {raw!r}")
            if raw.get("source") is not None and raw.get("source") == raw.get("target"):
                logger.warning("dropped_self_loop_link", link=raw)
                continue
            link = Link.model_validate(raw)
            if link.source not in seen_ids or link.target not in seen_ids:
                logger.warning("dropped_dangling_link", link_id=link.id)
                continue
            if link.key in seen_pairs:
                logger.warning("dropped_duplicate_link", link_id=link.id)
                continue
            seen_pairs.add(link.key)
            links.append(link)

    except ValidationError as e:
        raise DocumentParseError(f"Invalid graph document: {e}") from e

    owners = parsed.owners or [defaults.default_profile]
    graph = FlowGraph(
        owners=owners,
        current_profile=parsed.current_profile,
        simulation=parsed.simulation or SimulationConfig(
            inflation_rate=defaults.default_inflation_rate
        ),
        strategy=parsed.strategy,
    )
    graph.nodes = nodes
    graph.links = links
    graph.next_id = max(parsed.next_id, max(seen_ids, default=0) + 1)
    return graph


def dumps(graph: FlowGraph) -> str:
    """Serialize to a JSON string."""
    return json.dumps(serialize(graph), ensure_ascii=False)


def loads(text: str) -> FlowGraph:
    """
    Parse a JSON string into a new FlowGraph.

    Raises:
        DocumentParseError: If the text is not valid JSON or not a valid document
    """
    try:
        document = json.loads(text)
    except (TypeError, ValueError) as e:
        raise DocumentParseError(f"Document is not valid JSON: {e}") from e
    return deserialize(document)
