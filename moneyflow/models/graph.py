"""
Graph Models for Money Flow

These models define the nodes and links of the money graph.
They are designed to:
1. Make the node kind a tagged variant (the `type` field is the discriminator)
2. Carry type-specific payload only on the variants that use it
3. Serialize to the camelCase document format without a mapping layer
4. Validate on assignment, so in-place updates cannot break invariants

DESIGN DECISION: Only balance nodes (bucket, asset) carry an interest rate,
and only assets carry a target weight and sub-items. Income and expense
nodes are monthly rates, not balances, so they have nothing to compound.
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


DEFAULT_ASSET_INTEREST_RATE = 0.025


# =============================================================================
# ENUMS
# =============================================================================

class NodeType(str, Enum):
    """
    Kinds of node in the money graph.

    Income and expense nodes hold a monthly amount.
    Bucket and asset nodes hold a current balance.
    """
    INCOME = "income"
    BUCKET = "bucket"
    EXPENSE = "expense"
    ASSET = "asset"

    @property
    def holds_balance(self) -> bool:
        return self in (NodeType.BUCKET, NodeType.ASSET)


# =============================================================================
# NODES
# =============================================================================

class _GraphModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
        str_strip_whitespace=True,
    )


class SubItem(_GraphModel):
    """A named share of an asset's balance (e.g. one fund inside an ISA)."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Sub-holding name"
    )
    ratio: float = Field(
        ...,
        ge=0,
        le=100,
        description="Share of the parent value, in percent"
    )


class _NodeBase(_GraphModel):
    """Fields every node kind shares."""

    id: int = Field(
        ...,
        ge=1,
        description="Unique node id, never reused"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display label"
    )
    value: float = Field(
        default=0.0,
        description="Monthly amount (income/expense) or balance (bucket/asset)"
    )
    owner: str = Field(
        default="",
        description="Profile this node belongs to; empty means shared"
    )
    x: float = Field(default=0.0, description="Layout x, owned by the view")
    y: float = Field(default=0.0, description="Layout y, owned by the view")

    def belongs_to(self, profile: Optional[str]) -> bool:
        """Shared nodes belong to every profile; a falsy profile sees everything."""
        if not profile:
            return True
        return self.owner == profile or not self.owner


class IncomeNode(_NodeBase):
    """A source of monthly money (salary, rent received...)."""

    type: Literal["income"] = "income"


class ExpenseNode(_NodeBase):
    """A monthly money sink."""

    type: Literal["expense"] = "expense"


class BucketNode(_NodeBase):
    """
    A holding/transit account.

    Has a balance but no return by default.
    """

    type: Literal["bucket"] = "bucket"
    interest_rate: float = Field(
        default=0.0,
        description="Annual nominal rate as a fraction (0.025 = 2.5%)"
    )


class AssetNode(_NodeBase):
    """
    An investment account.

    Sub-items are always kept sorted by ratio, largest first.
    """

    type: Literal["asset"] = "asset"
    interest_rate: float = Field(
        default=DEFAULT_ASSET_INTEREST_RATE,
        description="Annual nominal rate as a fraction (0.025 = 2.5%)"
    )
    target_weight: Optional[float] = Field(
        default=None,
        ge=0,
        le=100,
        description="Target allocation percentage (informational only)"
    )
    sub_items: list[SubItem] = Field(
        default_factory=list,
        description="Named breakdown of the balance"
    )

    @field_validator('sub_items')
    @classmethod
    def sort_sub_items(cls, v: list[SubItem]) -> list[SubItem]:
        return sorted(v, key=lambda item: item.ratio, reverse=True)


Node = Annotated[
    Union[IncomeNode, BucketNode, ExpenseNode, AssetNode],
    Field(discriminator="type"),
]

NODE_ADAPTER = TypeAdapter(Node)

NODE_CLASSES: dict[NodeType, type[_NodeBase]] = {
    NodeType.INCOME: IncomeNode,
    NodeType.BUCKET: BucketNode,
    NodeType.EXPENSE: ExpenseNode,
    NodeType.ASSET: AssetNode,
}

# Fields that only some node kinds carry
PAYLOAD_FIELDS = frozenset({"interest_rate", "target_weight", "sub_items"})


def node_fields(node_type: NodeType) -> frozenset[str]:
    """Names of the fields a node of `node_type` carries."""
    return frozenset(NODE_CLASSES[node_type].model_fields)


# =============================================================================
# LINKS
# =============================================================================

class Link(_GraphModel):
    """
    A recurring monthly money movement between two nodes.

    Identity is the (source, target) pair.
    """

    source: int = Field(..., ge=1, description="Source node id")
    target: int = Field(..., ge=1, description="Target node id")
    amount: float = Field(
        default=0.0,
        ge=0,
        description="Monthly amount moved along the link"
    )

    @computed_field
    @property
    def id(self) -> str:
        return f"link_{self.source}_{self.target}"

    @property
    def key(self) -> tuple[int, int]:
        return (self.source, self.target)

    def touches(self, node_id: int) -> bool:
        return self.source == node_id or self.target == node_id

    @model_validator(mode='after')
    def validate_endpoints(self) -> 'Link':
        if self.source == self.target:
            raise ValueError("A link cannot connect a node to itself")
        return self


# =============================================================================
# UPDATE STRUCTS
# =============================================================================

class NodeUpdate(_GraphModel):
    """
    Partial node update.

    Only fields that were explicitly set are applied; `None` passed
    explicitly for `target_weight` clears it. Unknown fields are
    rejected rather than ignored.
    """
    model_config = ConfigDict(extra="forbid")

    type: Optional[NodeType] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    value: Optional[float] = None
    owner: Optional[str] = None
    x: Optional[float] = None
    y: Optional[float] = None
    interest_rate: Optional[float] = None
    target_weight: Optional[float] = Field(default=None, ge=0, le=100)
    sub_items: Optional[list[SubItem]] = None

    def changes(self) -> dict:
        """The explicitly set fields, by field name."""
        return self.model_dump(exclude_unset=True, mode="json")


class LinkUpdate(_GraphModel):
    """Partial link update. Endpoints are identity and cannot be updated."""
    model_config = ConfigDict(extra="forbid")

    amount: Optional[float] = Field(default=None, ge=0)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, mode="json")
