"""
Tests for turning a stored plugin into a runtime graph
"""

import pytest

from subflow.workflows.engine.constants import EdgeStatus
from subflow.workflows.engine.definitions import FlowNodeInputItem
from subflow.workflows.engine.errors import PluginHasNoInputError
from subflow.workflows.engine.plugins.runtime import (
    build_runtime_graph,
    update_tool_input_value,
)
from tests.factories import input_node, make_plugin, output_node


def bound_inputs(graph, node_id="input"):
    return {item.key: item.value for item in graph.get_node(node_id).inputs}


def test_plugin_without_input_node_is_rejected():
    plugin = make_plugin(nodes=[output_node()], edges=[])

    with pytest.raises(PluginHasNoInputError):
        build_runtime_graph(plugin, {"query": "x"})


def test_caller_params_overlay_declared_inputs():
    """query is declared and bound, extra is not declared and dropped."""
    graph = build_runtime_graph(make_plugin(), {"query": "x", "extra": 1})

    assert bound_inputs(graph) == {"query": "x"}


def test_missing_or_none_params_keep_defaults():
    plugin = make_plugin(
        nodes=[
            input_node(inputs=[
                {"key": "query", "value": "default"},
                {"key": "limit", "value": 10},
            ]),
            output_node(),
        ]
    )

    graph = build_runtime_graph(plugin, {"query": None})

    assert bound_inputs(graph) == {"query": "default", "limit": 10}


def test_undeclared_keys_never_change_bound_inputs():
    plugin = make_plugin()

    plain = build_runtime_graph(plugin, {"query": "x"})
    noisy = build_runtime_graph(plugin, {"query": "x", "extra": 1, "other": {"a": 1}})

    assert plain.get_node("input").inputs == noisy.get_node("input").inputs


def test_every_node_hides_status_and_edges_start_waiting():
    plugin = make_plugin()

    graph = build_runtime_graph(plugin, {})

    assert all(node.show_status is False for node in graph.nodes)
    assert [edge.status for edge in graph.edges] == [EdgeStatus.WAITING]
    # The stored definition is left alone
    assert all(node.show_status is True for node in plugin.nodes)


def test_entry_nodes_are_input_and_unconnected_nodes():
    plugin = make_plugin(
        nodes=[
            input_node(),
            {"nodeId": "constant", "flowNodeType": "constant"},
            output_node(),
        ],
        edges=[{"source": "input", "target": "output"}, {"source": "constant", "target": "output"}],
    )

    graph = build_runtime_graph(plugin, {})

    assert graph.entry_node_ids == ["input", "constant"]
    assert [node.is_entry for node in graph.nodes] == [True, True, False]


def test_graph_does_not_alias_params_or_definition():
    plugin = make_plugin(
        nodes=[input_node(inputs=[{"key": "filters", "value": {"lang": "en"}}]), output_node()]
    )
    params = {"filters": {"lang": "de"}}

    graph = build_runtime_graph(plugin, params)
    params["filters"]["lang"] = "fr"
    graph.get_node("input").inputs[0].value["lang"] = "es"

    assert plugin.nodes[0].inputs[0].value == {"lang": "en"}
    assert params["filters"] == {"lang": "fr"}
    assert bound_inputs(graph)["filters"] == {"lang": "es"}


def test_each_build_is_independent():
    plugin = make_plugin()

    first = build_runtime_graph(plugin, {"query": "one"})
    second = build_runtime_graph(plugin, {"query": "two"})
    first.edges[0].status = EdgeStatus.ACTIVE

    assert bound_inputs(first) == {"query": "one"}
    assert bound_inputs(second) == {"query": "two"}
    assert second.edges[0].status == EdgeStatus.WAITING


def test_params_bind_to_first_input_node_only():
    plugin = make_plugin(
        nodes=[input_node("input"), input_node("input2"), output_node()],
        edges=[],
    )

    graph = build_runtime_graph(plugin, {"query": "x"})

    assert bound_inputs(graph, "input") == {"query": "x"}
    assert bound_inputs(graph, "input2") == {"query": "default"}


def test_update_tool_input_value_returns_copies():
    inputs = [FlowNodeInputItem(key="query", value="default")]

    updated = update_tool_input_value(inputs, {"query": "x"})

    assert updated[0].value == "x"
    assert inputs[0].value == "default"
