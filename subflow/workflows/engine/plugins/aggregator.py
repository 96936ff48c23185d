from typing import List, Optional

from subflow.plugins.schemas import AggregatedPluginResult, PluginNodeResponse
from subflow.workflows.engine.constants import FlowNodeType
from subflow.workflows.engine.context import InvocationContext
from subflow.workflows.engine.definitions import (
    DispatchResult,
    NodeResponse,
    PluginDefinition,
    UsageRecord,
)


def find_plugin_output(responses: List[NodeResponse]) -> Optional[NodeResponse]:
    return next(
        (item for item in responses if item.module_type == FlowNodeType.PLUGIN_OUTPUT),
        None,
    )


def should_expose_detail(plugin: PluginDefinition, context: InvocationContext) -> bool:
    """Internal node traces are only shown to the owning team, in test runs."""
    return context.is_test and plugin.team_id == context.team_id


def aggregate_plugin_result(
    plugin: PluginDefinition, result: DispatchResult, context: InvocationContext
) -> AggregatedPluginResult:
    """
    Fold a finished plugin run back into the parent node's result shape.

    ``total_points`` sums every node that ran inside the plugin, while the
    single usage record sums the dispatcher's usage ledger; the two come from
    different sources and need not match.
    """
    output = find_plugin_output(result.flow_responses)
    if output:
        output.module_logo = plugin.avatar

    plugin_output = output.plugin_output if output and output.plugin_output else {}

    plugin_detail = None
    if should_expose_detail(plugin, context):
        plugin_detail = [
            item for item in result.flow_responses
            if item.module_type != FlowNodeType.PLUGIN_OUTPUT
        ]

    return AggregatedPluginResult(
        assistant_responses=result.assistant_responses,
        node_response=PluginNodeResponse(
            module_logo=plugin.avatar,
            total_points=sum(item.total_points for item in result.flow_responses),
            plugin_output=output.plugin_output if output else None,
            plugin_detail=plugin_detail,
        ),
        node_dispatch_usages=[
            UsageRecord(
                module_name=plugin.name,
                total_points=sum(item.total_points for item in result.flow_usages),
                model=plugin.name,
                tokens=0,
            )
        ],
        tool_responses=plugin_output,
        outputs=dict(plugin_output),
    )
