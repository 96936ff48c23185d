import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from subflow.config import settings
from subflow.plugins.permission import PermissionService
from subflow.plugins.store import PluginStore
from subflow.workflows.engine.constants import EdgeStatus, FlowNodeType
from subflow.workflows.engine.context import InvocationContext
from subflow.workflows.engine.definitions import (
    DispatchResult,
    NodeDispatchResult,
    NodeResponse,
    NodeResponseData,
    RuntimeGraph,
    RuntimeNode,
)
from subflow.workflows.engine.errors import (
    DispatchFailureError,
    MalformedIdentifierError,
    PluginError,
    UnknownNodeTypeError,
)
from subflow.workflows.engine.graph import WorkflowGraph
from subflow.workflows.engine.plugins.run import PluginRunner

logger = logging.getLogger(__name__)

NodeHandler = Callable[
    [RuntimeNode, Dict[str, Any], InvocationContext], Awaitable[NodeDispatchResult]
]


async def dispatch_plugin_input(
    node: RuntimeNode, params: Dict[str, Any], context: InvocationContext
) -> NodeDispatchResult:
    """Expose the bound plugin inputs to the rest of the graph."""
    return NodeDispatchResult(outputs=dict(params))


async def dispatch_plugin_output(
    node: RuntimeNode, params: Dict[str, Any], context: InvocationContext
) -> NodeDispatchResult:
    """Collect the plugin's return value."""
    return NodeDispatchResult(
        node_response=NodeResponseData(plugin_output=dict(params)),
        outputs=dict(params),
    )


async def dispatch_answer(
    node: RuntimeNode, params: Dict[str, Any], context: InvocationContext
) -> NodeDispatchResult:
    text = params.get("text")
    text = "" if text is None else str(text)
    return NodeDispatchResult(
        assistant_responses=[{"text": {"content": text}}],
        outputs={"answerText": text},
    )


class LocalDispatcher:
    """
    In-process graph dispatcher.

    Runs nodes in topological order. A node runs when it is an entry node or
    at least one of its inbound edges is active; once it has run its outbound
    edges become active, except those leaving through a handle the node asked
    to skip. Outbound edges of a node that does not run are skipped. Plugin module nodes are
    handed to a ``PluginRunner`` bound to this dispatcher, so nested plugins
    recurse through the same code path.
    """

    def __init__(
        self,
        store: PluginStore,
        permissions: PermissionService,
        node_timeout: Optional[float] = None,
        max_depth: Optional[int] = None,
    ):
        self.node_timeout = settings.NODE_TIMEOUT_SECONDS if node_timeout is None else node_timeout
        self.runner = PluginRunner(store, permissions, self, max_depth=max_depth)
        self.handlers: Dict[str, NodeHandler] = {
            FlowNodeType.PLUGIN_INPUT.value: dispatch_plugin_input,
            FlowNodeType.PLUGIN_OUTPUT.value: dispatch_plugin_output,
            FlowNodeType.ANSWER_NODE.value: dispatch_answer,
            FlowNodeType.PLUGIN_MODULE.value: self.dispatch_plugin_module,
        }

    def register_handler(self, node_type: str, handler: NodeHandler) -> None:
        self.handlers[str(node_type)] = handler

    async def dispatch_plugin_module(
        self, node: RuntimeNode, params: Dict[str, Any], context: InvocationContext
    ) -> NodeDispatchResult:
        if not node.plugin_id:
            raise MalformedIdentifierError(f"Node {node.node_id} has no pluginId")
        return await self.runner.run(node.plugin_id, params, context)

    @staticmethod
    def resolve_params(node: RuntimeNode, results: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
        """Input values of ``node``, references read from upstream outputs."""
        params = {}
        for item in node.inputs:
            if item.reference:
                params[item.key] = results.get(item.reference.node_id, {}).get(item.reference.key)
            else:
                params[item.key] = item.value
        return params

    @staticmethod
    def should_run(node: RuntimeNode, graph: RuntimeGraph) -> bool:
        if node.is_entry:
            return True
        return any(
            edge.status == EdgeStatus.ACTIVE
            for edge in WorkflowGraph.get_incoming_edges(graph.edges, node.node_id)
        )

    async def run_node(
        self, node: RuntimeNode, params: Dict[str, Any], context: InvocationContext
    ) -> NodeDispatchResult:
        try:
            handler = self.handlers.get(node.flow_node_type)
            if handler is None:
                raise UnknownNodeTypeError(f"Unknown node type: {node.flow_node_type}")
            return await asyncio.wait_for(handler(node, params, context), timeout=self.node_timeout)
        except PluginError:
            # Nested plugin failures keep their own type
            raise
        except asyncio.TimeoutError as e:
            raise DispatchFailureError(
                f"Node {node.name or node.node_id} timed out after {self.node_timeout}s"
            ) from e
        except Exception as e:
            raise DispatchFailureError(f"Node {node.name or node.node_id} failed: {e}") from e

    async def execute(self, graph: RuntimeGraph, context: InvocationContext) -> DispatchResult:
        try:
            order = WorkflowGraph.get_execution_order(graph.nodes, graph.edges)
        except ValueError as e:
            raise DispatchFailureError(f"Invalid workflow structure: {e}") from e

        results: Dict[str, Dict[str, Any]] = {}
        dispatch_result = DispatchResult()

        for node in order:
            outgoing = WorkflowGraph.get_outgoing_edges(graph.edges, node.node_id)
            if not self.should_run(node, graph):
                for edge in outgoing:
                    edge.status = EdgeStatus.SKIPPED
                continue

            params = self.resolve_params(node, results)
            if node.show_status:
                logger.info(f"Running node {node.name or node.node_id} ({node.flow_node_type})")
            else:
                logger.debug(f"Running node {node.name or node.node_id} ({node.flow_node_type})")

            node_result = await self.run_node(node, params, context)

            results[node.node_id] = node_result.outputs
            # Node identity always comes from the graph, never from the handler
            dispatch_result.flow_responses.append(
                NodeResponse.model_validate(
                    {
                        **node_result.node_response.model_dump(),
                        "node_id": node.node_id,
                        "module_type": node.flow_node_type,
                        "module_name": node.name,
                    }
                )
            )
            dispatch_result.flow_usages.extend(node_result.node_dispatch_usages)
            dispatch_result.assistant_responses.extend(node_result.assistant_responses)

            skip_handles = set(node_result.skip_handle_ids)
            for edge in outgoing:
                if edge.source_handle and edge.source_handle in skip_handles:
                    edge.status = EdgeStatus.SKIPPED
                else:
                    edge.status = EdgeStatus.ACTIVE

        return dispatch_result
