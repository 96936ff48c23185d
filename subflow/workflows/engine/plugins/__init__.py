"""
Plugin Execution

Runs a stored plugin graph as a nested workflow and folds its results back
into the calling node.
"""

from .aggregator import aggregate_plugin_result
from .run import PluginRunner, run_plugin
from .runtime import build_runtime_graph, update_tool_input_value

__all__ = [
    "PluginRunner",
    "run_plugin",
    "build_runtime_graph",
    "update_tool_input_value",
    "aggregate_plugin_result",
]
