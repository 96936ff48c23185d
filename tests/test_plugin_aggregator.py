from subflow.workflows.engine.constants import DispatchNodeResponseKey, RunMode
from subflow.workflows.engine.context import InvocationContext
from subflow.workflows.engine.definitions import DispatchResult
from subflow.workflows.engine.plugins.aggregator import aggregate_plugin_result
from tests.factories import MEMBER, OTHER_TEAM, OWNER_TEAM, make_plugin, response, usage


def ctx(mode=RunMode.NORMAL, team_id=OWNER_TEAM):
    return InvocationContext(team_id=team_id, tmb_id=MEMBER, mode=mode)


def test_plugin_without_output_sums_costs_and_returns_empty_payload():
    plugin = make_plugin()
    result = DispatchResult(flow_responses=[response("llm", 3), response("http", 4)])

    aggregated = aggregate_plugin_result(plugin, result, ctx())

    assert aggregated.node_response.total_points == 7
    assert aggregated.node_response.plugin_output is None
    assert aggregated.node_response.plugin_detail is None
    assert aggregated.outputs == {}
    assert aggregated.tool_responses == {}


def test_total_cost_is_zero_when_all_nodes_are_free():
    result = DispatchResult(flow_responses=[response("llm"), response("pluginOutput")])

    aggregated = aggregate_plugin_result(make_plugin(), result, ctx())

    assert aggregated.node_response.total_points == 0


def test_output_payload_is_spread_and_logo_attached():
    plugin = make_plugin()
    output = response("pluginOutput", 1, plugin_output={"answer": "42", "sources": ["a"]})
    result = DispatchResult(flow_responses=[response("llm", 2), output])

    aggregated = aggregate_plugin_result(plugin, result, ctx())

    assert output.module_logo == plugin.avatar
    assert aggregated.node_response.module_logo == plugin.avatar
    assert aggregated.node_response.total_points == 3
    assert aggregated.node_response.plugin_output == {"answer": "42", "sources": ["a"]}
    assert aggregated.outputs == {"answer": "42", "sources": ["a"]}
    assert aggregated.tool_responses == {"answer": "42", "sources": ["a"]}


def test_usage_record_names_the_plugin():
    plugin = make_plugin(name="Translator")
    result = DispatchResult(
        flow_responses=[response("llm", 100)],
        flow_usages=[usage("llm", 2.5), usage("embedding", 0.5)],
    )

    aggregated = aggregate_plugin_result(plugin, result, ctx())

    assert len(aggregated.node_dispatch_usages) == 1
    record = aggregated.node_dispatch_usages[0]
    assert record.module_name == "Translator"
    assert record.model == "Translator"
    assert record.tokens == 0
    # Usage ledger and per-node cost are summed from different sources
    assert record.total_points == 3
    assert aggregated.node_response.total_points == 100


def test_owner_sees_internal_trace_in_test_mode():
    internal_a = response("llm", 1)
    internal_b = response("http", 2)
    output = response("pluginOutput", plugin_output={"answer": "x"})
    result = DispatchResult(flow_responses=[internal_a, internal_b, output])

    aggregated = aggregate_plugin_result(make_plugin(), result, ctx(mode=RunMode.TEST))

    assert aggregated.node_response.plugin_detail == [internal_a, internal_b]


def test_trace_absent_for_other_teams_and_normal_runs():
    result = DispatchResult(flow_responses=[response("llm", 1)])

    for context in (ctx(mode=RunMode.TEST, team_id=OTHER_TEAM), ctx(mode=RunMode.NORMAL)):
        aggregated = aggregate_plugin_result(make_plugin(), result, context)
        assert aggregated.node_response.plugin_detail is None
        assert "pluginDetail" not in aggregated.to_dispatch_dict()[DispatchNodeResponseKey.NODE_RESPONSE]


def test_requested_trace_of_empty_plugin_is_empty_not_absent():
    result = DispatchResult(flow_responses=[response("pluginOutput", plugin_output={})])

    aggregated = aggregate_plugin_result(make_plugin(), result, ctx(mode=RunMode.TEST))

    assert aggregated.node_response.plugin_detail == []
    assert aggregated.to_dispatch_dict()[DispatchNodeResponseKey.NODE_RESPONSE]["pluginDetail"] == []


def test_assistant_responses_pass_through():
    answers = [{"text": {"content": "hello"}}]
    result = DispatchResult(assistant_responses=answers)

    aggregated = aggregate_plugin_result(make_plugin(), result, ctx())

    assert aggregated.assistant_responses == answers


def test_dispatch_dict_shape():
    plugin = make_plugin(name="Search plugin")
    result = DispatchResult(
        flow_responses=[response("pluginOutput", 5, plugin_output={"answer": "42"})],
        flow_usages=[usage("llm", 5)],
    )

    flat = aggregate_plugin_result(plugin, result, ctx()).to_dispatch_dict()

    assert flat["answer"] == "42"
    assert flat[DispatchNodeResponseKey.TOOL_RESPONSES] == {"answer": "42"}
    assert flat[DispatchNodeResponseKey.ASSISTANT_RESPONSES] == []
    assert flat[DispatchNodeResponseKey.NODE_RESPONSE] == {
        "moduleLogo": plugin.avatar,
        "totalPoints": 5,
        "pluginOutput": {"answer": "42"},
    }
    assert flat[DispatchNodeResponseKey.NODE_DISPATCH_USAGES] == [
        {"moduleName": "Search plugin", "totalPoints": 5, "model": "Search plugin", "tokens": 0}
    ]
