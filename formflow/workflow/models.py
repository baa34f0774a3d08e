from __future__ import annotations

from types import MappingProxyType
from typing import Annotated, Any, Literal, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator
from pydantic.alias_generators import to_camel


NodeType = Literal[
    "trigger",
    "page",
    "callApi",
    "fetchOptions",
    "setData",
    "showDialog",
    "redirect",
    "condition",
]
TriggerType = Literal["pageLoad", "fieldChange", "formSubmit"]
EdgePort = Literal["out", "true", "false"]
HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]
ConditionOperator = Literal[
    "equals",
    "notEquals",
    "contains",
    "greaterThan",
    "greaterThanOrEqual",
    "lessThan",
    "lessThanOrEqual",
    "isEmpty",
    "isNotEmpty",
]
ConditionValue = Union[str, int, float, bool, None]

NODE_TYPES: tuple[str, ...] = (
    "trigger",
    "page",
    "callApi",
    "fetchOptions",
    "setData",
    "showDialog",
    "redirect",
    "condition",
)
NETWORK_NODE_TYPES = {"callApi", "fetchOptions"}
NUMERIC_OPERATORS = {"greaterThan", "greaterThanOrEqual", "lessThan", "lessThanOrEqual"}
VALUELESS_OPERATORS = {"isEmpty", "isNotEmpty"}


class _WorkflowModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# Per-type configuration. Required-looking fields stay optional so the
# validator can report them instead of the loader rejecting the graph.


class TriggerConfig(_WorkflowModel):
    trigger_type: TriggerType | None = None
    trigger_field_id: str | None = None


class PageConfig(_WorkflowModel):
    page_id: str | None = None


class ApiConfig(_WorkflowModel):
    url: str | None = None
    method: HttpMethod = "GET"
    headers: dict[str, str] = Field(default_factory=dict)
    body_template: str | None = None


class FetchOptionsConfig(ApiConfig):
    response_path: str | None = None
    label_key: str = "label"
    value_key: str = "value"
    target_field_id: str | None = None


class DataMappingEntry(_WorkflowModel):
    source: str = Field(default="", alias="from")
    to: str = ""


class SetDataConfig(_WorkflowModel):
    mapping: tuple[DataMappingEntry, ...] = ()


class ShowDialogConfig(_WorkflowModel):
    title: str | None = None
    message: str | None = None


class RedirectConfig(_WorkflowModel):
    url: str | None = None
    new_tab: bool = False


class ConditionConfig(_WorkflowModel):
    field: str | None = None
    operator: ConditionOperator | None = None
    value: ConditionValue = None


class _NodeBase(_WorkflowModel):
    id: str = Field(min_length=1)
    label: str = ""

    @property
    def display_name(self) -> str:
        return self.label or self.id


class TriggerNode(_NodeBase):
    type: Literal["trigger"] = "trigger"
    config: TriggerConfig = Field(default_factory=TriggerConfig)


class PageNode(_NodeBase):
    type: Literal["page"] = "page"
    config: PageConfig = Field(default_factory=PageConfig)


class CallApiNode(_NodeBase):
    type: Literal["callApi"] = "callApi"
    config: ApiConfig = Field(default_factory=ApiConfig)


class FetchOptionsNode(_NodeBase):
    type: Literal["fetchOptions"] = "fetchOptions"
    config: FetchOptionsConfig = Field(default_factory=FetchOptionsConfig)


class SetDataNode(_NodeBase):
    type: Literal["setData"] = "setData"
    config: SetDataConfig = Field(default_factory=SetDataConfig)


class ShowDialogNode(_NodeBase):
    type: Literal["showDialog"] = "showDialog"
    config: ShowDialogConfig = Field(default_factory=ShowDialogConfig)


class RedirectNode(_NodeBase):
    type: Literal["redirect"] = "redirect"
    config: RedirectConfig = Field(default_factory=RedirectConfig)


class ConditionNode(_NodeBase):
    type: Literal["condition"] = "condition"
    config: ConditionConfig = Field(default_factory=ConditionConfig)


WorkflowNode = Annotated[
    Union[
        TriggerNode,
        PageNode,
        CallApiNode,
        FetchOptionsNode,
        SetDataNode,
        ShowDialogNode,
        RedirectNode,
        ConditionNode,
    ],
    Field(discriminator="type"),
]


class WorkflowEdge(_WorkflowModel):
    id: str = Field(min_length=1)
    source_node_id: str
    source_port: EdgePort = "out"
    target_node_id: str


class WorkflowGraph(_WorkflowModel):
    """Id-addressed node arena plus an ordered edge list.

    Node order is authoring order and is significant: start nodes and
    duplicate outgoing edges are resolved in that order.
    """

    id: str = ""
    nodes: tuple[WorkflowNode, ...] = ()
    edges: tuple[WorkflowEdge, ...] = ()

    _nodes_by_id: dict[str, Any] = PrivateAttr(default_factory=dict)

    @model_validator(mode="after")
    def _reject_duplicate_node_ids(self) -> WorkflowGraph:
        seen: set[str] = set()
        for node in self.nodes:
            if node.id in seen:
                raise ValueError(f"Duplicate node id '{node.id}'.")
            seen.add(node.id)
        return self

    def model_post_init(self, __context: Any) -> None:
        self._nodes_by_id = {node.id: node for node in self.nodes}

    @property
    def nodes_by_id(self) -> Mapping[str, WorkflowNode]:
        return MappingProxyType(self._nodes_by_id)

    def node(self, node_id: str) -> WorkflowNode | None:
        return self._nodes_by_id.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes_by_id

    def outgoing_edges(self, node_id: str, port: EdgePort | None = None) -> list[WorkflowEdge]:
        return [
            edge
            for edge in self.edges
            if edge.source_node_id == node_id and (port is None or edge.source_port == port)
        ]

    def incoming_edges(self, node_id: str) -> list[WorkflowEdge]:
        return [edge for edge in self.edges if edge.target_node_id == node_id]

    def nodes_of_type(self, node_type: NodeType) -> list[WorkflowNode]:
        return [node for node in self.nodes if node.type == node_type]

    def root_nodes(self) -> list[WorkflowNode]:
        targets = {edge.target_node_id for edge in self.edges}
        return [node for node in self.nodes if node.id not in targets]

    def fallback_start_nodes(self) -> list[WorkflowNode]:
        """Entry points for a graph without triggers.

        Nodes with no incoming edge; when every node has one (the graph is a
        closed loop), the first authored node.
        """

        roots = self.root_nodes()
        if roots or not self.nodes:
            return roots
        return [self.nodes[0]]


class FormWorkflow(WorkflowGraph):
    """A named workflow as stored in a form schema."""

    name: str = ""
    enabled: bool = True
