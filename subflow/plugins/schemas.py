from enum import Enum
from typing import Any, Dict

from pydantic import Field

from subflow.workflows.engine.constants import DispatchNodeResponseKey
from subflow.workflows.engine.definitions import (
    NodeDispatchResult,
    NodeResponseData,
)


class PluginSource(str, Enum):
    """Where a plugin comes from."""
    PERSONAL = "personal"
    COMMUNITY = "community"
    COMMERCIAL = "commercial"

    @property
    def requires_auth(self) -> bool:
        # Platform-provided plugins are readable by everyone
        return self is PluginSource.PERSONAL


class PluginNodeResponse(NodeResponseData):
    """
    Node-level response of a plugin module node.

    ``plugin_detail`` is None when no trace was requested and a (possibly
    empty) list when it was.
    """


class AggregatedPluginResult(NodeDispatchResult):
    """What a plugin invocation hands back to the node that requested it."""
    node_response: PluginNodeResponse = Field(
        default_factory=PluginNodeResponse, alias="responseData"
    )
    tool_responses: Dict[str, Any] = Field(default_factory=dict, alias="toolResponses")

    def to_dispatch_dict(self) -> Dict[str, Any]:
        """
        Flat result shape consumed by the parent workflow.

        The plugin's output payload is spread next to the well-known keys so
        downstream nodes can reference plugin outputs by field name.
        """
        return {
            DispatchNodeResponseKey.ASSISTANT_RESPONSES: list(self.assistant_responses),
            DispatchNodeResponseKey.NODE_RESPONSE: self.node_response.model_dump(
                by_alias=True, exclude_none=True
            ),
            DispatchNodeResponseKey.NODE_DISPATCH_USAGES: [
                usage.model_dump(by_alias=True) for usage in self.node_dispatch_usages
            ],
            DispatchNodeResponseKey.TOOL_RESPONSES: self.tool_responses,
            **self.outputs,
        }
