import copy
import logging
from typing import Any, List, Mapping

from subflow.workflows.engine.constants import FlowNodeType
from subflow.workflows.engine.definitions import (
    FlowNodeInputItem,
    PluginDefinition,
    RuntimeGraph,
    StoreNode,
)
from subflow.workflows.engine.errors import PluginHasNoInputError
from subflow.workflows.engine.graph import WorkflowGraph

logger = logging.getLogger(__name__)


def update_tool_input_value(
    inputs: List[FlowNodeInputItem], params: Mapping[str, Any]
) -> List[FlowNodeInputItem]:
    """
    Overlay caller params onto declared inputs.

    A declared input takes the caller's same-named value unless that value is
    missing or None, in which case the input keeps its own default. Keys the
    node does not declare are ignored.
    """
    updated = []
    for item in inputs:
        value = params.get(item.key)
        if value is None:
            updated.append(item.model_copy(deep=True))
        else:
            updated.append(item.model_copy(update={"value": copy.deepcopy(value)}, deep=True))
    return updated


def find_plugin_input(plugin: PluginDefinition) -> StoreNode:
    """
    The node caller params bind to.

    Raises:
        PluginHasNoInputError: the plugin declares no input node
    """
    input_nodes = [
        node for node in plugin.nodes if node.flow_node_type == FlowNodeType.PLUGIN_INPUT
    ]
    if not input_nodes:
        raise PluginHasNoInputError("Plugin error, It has no set input.", plugin_id=plugin.id)
    if len(input_nodes) > 1:
        logger.warning(
            f"Plugin {plugin.id} declares {len(input_nodes)} input nodes, binding params to {input_nodes[0].node_id}"
        )
    return input_nodes[0]


def build_runtime_graph(plugin: PluginDefinition, params: Mapping[str, Any]) -> RuntimeGraph:
    """
    Turn a stored plugin into a fresh runtime graph with caller params bound.

    Every node has its status display turned off (the parent node reports
    progress, not the plugin's internals) and every edge starts out waiting.
    Nothing in the result aliases the stored definition or ``params``.
    """
    input_node = find_plugin_input(plugin)

    entry_node_ids = WorkflowGraph.get_default_entry_node_ids(plugin.nodes, plugin.edges)
    runtime_nodes = WorkflowGraph.store_nodes_to_runtime_nodes(plugin.nodes, entry_node_ids)

    nodes = []
    for node in runtime_nodes:
        update: dict = {"show_status": False}
        if node.node_id == input_node.node_id:
            update["inputs"] = update_tool_input_value(node.inputs, params)
        nodes.append(node.model_copy(update=update))

    return RuntimeGraph(
        nodes=nodes,
        edges=WorkflowGraph.init_workflow_edge_status(plugin.edges),
        entry_node_ids=entry_node_ids,
    )
