import logging
from typing import Any, Mapping, Optional

from subflow.config import settings
from subflow.plugins.identity import split_combine_plugin_id
from subflow.plugins.permission import PermissionService, auth_plugin
from subflow.plugins.schemas import AggregatedPluginResult
from subflow.plugins.store import PluginStore, get_plugin_runtime_by_id
from subflow.utils.run_id import bind_run_id, get_log_context, get_run_id
from subflow.workflows.engine.constants import Permission
from subflow.workflows.engine.context import InvocationContext
from subflow.workflows.engine.dispatcher import GraphDispatcher
from subflow.workflows.engine.error_handler import ErrorClassifier
from subflow.workflows.engine.errors import PluginCycleError, PluginDepthExceededError
from subflow.workflows.engine.plugins.aggregator import aggregate_plugin_result
from subflow.workflows.engine.plugins.runtime import build_runtime_graph

logger = logging.getLogger(__name__)


class PluginRunner:
    """
    Runs a plugin as a nested workflow.

    The call chain is strictly sequential: parse the id, check nesting,
    authorize, load, build the runtime graph, dispatch, aggregate. Any error
    aborts the whole invocation and is re-raised unchanged.
    """

    def __init__(
        self,
        store: PluginStore,
        permissions: PermissionService,
        dispatcher: GraphDispatcher,
        max_depth: Optional[int] = None,
    ):
        self.store = store
        self.permissions = permissions
        self.dispatcher = dispatcher
        self.max_depth = settings.MAX_PLUGIN_DEPTH if max_depth is None else max_depth

    def check_nesting(self, plugin_id: str, context: InvocationContext) -> None:
        if plugin_id in context.plugin_stack:
            chain = " -> ".join(context.plugin_stack + (plugin_id,))
            raise PluginCycleError(f"Plugin {plugin_id} invokes itself: {chain}", plugin_id=plugin_id)
        if context.depth >= self.max_depth:
            raise PluginDepthExceededError(
                f"Maximum plugin depth exceeded (depth={context.depth}, max={self.max_depth})",
                plugin_id=plugin_id,
            )

    async def run(
        self,
        plugin_id: Optional[str],
        params: Mapping[str, Any],
        context: InvocationContext,
    ) -> AggregatedPluginResult:
        if get_run_id() == context.run_id:
            return await self._run(plugin_id, params, context)
        with bind_run_id(context.run_id):
            return await self._run(plugin_id, params, context)

    async def _run(
        self,
        plugin_id: Optional[str],
        params: Mapping[str, Any],
        context: InvocationContext,
    ) -> AggregatedPluginResult:
        try:
            source, lookup_key = split_combine_plugin_id(plugin_id)
            self.check_nesting(plugin_id, context)

            await auth_plugin(
                self.permissions,
                source=source,
                plugin_id=plugin_id,
                tmb_id=context.tmb_id,
                per=Permission.READ,
            )
            plugin = await get_plugin_runtime_by_id(self.store, lookup_key)
            graph = build_runtime_graph(plugin, params)

            logger.info(
                f"Running plugin {plugin.name} ({plugin_id}) at depth {context.depth + 1}: "
                f"{len(graph.nodes)} nodes, entries {graph.entry_node_ids}"
            )
            result = await self.dispatcher.execute(graph, context.nested(plugin_id))
        except Exception as e:
            error_context = ErrorClassifier.classify(e)
            # Nested runners re-raise into their parent; only the outermost one reports
            log = logger.error if context.depth == 0 else logger.debug
            log(
                f"Plugin {plugin_id} failed: {error_context.message} ({error_context.category.value}): "
                f"{error_context.original_error}",
                extra={**get_log_context(), "plugin_id": plugin_id, "category": error_context.category.value},
            )
            raise

        aggregated = aggregate_plugin_result(plugin, result, context)
        logger.info(
            f"Plugin {plugin.name} finished: {aggregated.node_response.total_points} points, "
            f"{len(aggregated.outputs)} outputs"
        )
        return aggregated


async def run_plugin(
    plugin_id: Optional[str],
    params: Mapping[str, Any],
    context: InvocationContext,
    *,
    store: PluginStore,
    permissions: PermissionService,
    dispatcher: GraphDispatcher,
) -> AggregatedPluginResult:
    """Run ``plugin_id`` once with the given collaborators."""
    runner = PluginRunner(store, permissions, dispatcher)
    return await runner.run(plugin_id, params, context)
