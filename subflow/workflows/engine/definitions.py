"""
Graph and result models shared by the plugin layer and the dispatcher.

Field names are snake_case; every field also accepts the camelCase alias used
by stored workflow JSON (``nodeId``, ``flowNodeType``, ``totalPoints`` ...).
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from subflow.workflows.engine.constants import EdgeStatus


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ValueReference(_Model):
    """Points an input at another node's output."""
    node_id: str = Field(alias="nodeId")
    key: str


class FlowNodeInputItem(_Model):
    key: str
    label: str = ""
    value_type: Optional[str] = Field(None, alias="valueType")
    required: bool = False
    value: Any = None
    reference: Optional[ValueReference] = None


class FlowNodeOutputItem(_Model):
    key: str
    label: str = ""
    value_type: Optional[str] = Field(None, alias="valueType")


class StoreNode(_Model):
    """A node as it is stored in a workflow or plugin definition."""
    node_id: str = Field(alias="nodeId")
    name: str = ""
    avatar: Optional[str] = None
    intro: Optional[str] = None
    flow_node_type: str = Field(alias="flowNodeType")
    show_status: bool = Field(True, alias="showStatus")
    inputs: List[FlowNodeInputItem] = Field(default_factory=list)
    outputs: List[FlowNodeOutputItem] = Field(default_factory=list)
    plugin_id: Optional[str] = Field(None, alias="pluginId")


class StoreEdge(_Model):
    source: str
    target: str
    source_handle: Optional[str] = Field(None, alias="sourceHandle")
    target_handle: Optional[str] = Field(None, alias="targetHandle")


class PluginDefinition(_Model):
    """Immutable snapshot of a stored plugin graph."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    team_id: str = Field(alias="teamId")
    name: str
    avatar: Optional[str] = None
    nodes: List[StoreNode] = Field(default_factory=list)
    edges: List[StoreEdge] = Field(default_factory=list)


class RuntimeNode(StoreNode):
    is_entry: bool = Field(False, alias="isEntry")


class RuntimeEdge(StoreEdge):
    status: EdgeStatus = EdgeStatus.WAITING


class RuntimeGraph(_Model):
    """One-shot executable instance of a graph. Built, dispatched, discarded."""
    nodes: List[RuntimeNode]
    edges: List[RuntimeEdge]
    entry_node_ids: List[str] = Field(default_factory=list, alias="entryNodeIds")

    def get_node(self, node_id: str) -> Optional[RuntimeNode]:
        for node in self.nodes:
            if node.node_id == node_id:
                return node
        return None


class NodeResponseData(_Model):
    """The part of a node response a node handler fills in itself."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    module_logo: Optional[str] = Field(None, alias="moduleLogo")
    total_points: float = Field(0, ge=0, alias="totalPoints")
    plugin_output: Optional[Dict[str, Any]] = Field(None, alias="pluginOutput")
    plugin_detail: Optional[List["NodeResponse"]] = Field(None, alias="pluginDetail")

    @field_validator("total_points", mode="before")
    @classmethod
    def _missing_points_are_zero(cls, v):
        return 0 if v is None else v


class NodeResponse(NodeResponseData):
    """Per-node response produced by the dispatcher."""
    node_id: Optional[str] = Field(None, alias="nodeId")
    module_type: str = Field(alias="moduleType")
    module_name: str = Field("", alias="moduleName")


NodeResponseData.model_rebuild()
NodeResponse.model_rebuild()


class UsageRecord(_Model):
    """Accounting entry attributing cost to a named unit of work."""
    module_name: str = Field(alias="moduleName")
    total_points: float = Field(0, ge=0, alias="totalPoints")
    model: Optional[str] = None
    tokens: int = 0

    @field_validator("total_points", mode="before")
    @classmethod
    def _missing_points_are_zero(cls, v):
        return 0 if v is None else v


class DispatchResult(_Model):
    flow_responses: List[NodeResponse] = Field(default_factory=list, alias="flowResponses")
    flow_usages: List[UsageRecord] = Field(default_factory=list, alias="flowUsages")
    assistant_responses: List[Dict[str, Any]] = Field(
        default_factory=list, alias="assistantResponses"
    )


class NodeDispatchResult(_Model):
    """What a node handler hands back to the dispatcher."""
    assistant_responses: List[Dict[str, Any]] = Field(
        default_factory=list, alias="assistantResponses"
    )
    node_response: NodeResponseData = Field(
        default_factory=NodeResponseData, alias="responseData"
    )
    node_dispatch_usages: List[UsageRecord] = Field(
        default_factory=list, alias="nodeDispatchUsages"
    )
    tool_responses: Any = Field(None, alias="toolResponses")
    # Outgoing edges leaving through these source handles are skipped
    skip_handle_ids: List[str] = Field(default_factory=list, alias="skipHandleId")
    # Flat key/value namespace downstream nodes read from
    outputs: Dict[str, Any] = Field(default_factory=dict)
