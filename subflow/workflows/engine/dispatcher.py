from typing import Protocol, runtime_checkable

from subflow.workflows.engine.context import InvocationContext
from subflow.workflows.engine.definitions import DispatchResult, RuntimeGraph


@runtime_checkable
class GraphDispatcher(Protocol):
    """
    Executes a runtime graph to completion.

    Implementations either return a complete ``DispatchResult`` or raise; there
    is no partial result. The first unrecovered node failure is raised as a
    ``DispatchFailureError`` (or the ``PluginError`` of a nested plugin, left
    untouched). Timeouts and cancellation are the implementation's concern.
    """

    async def execute(
        self, graph: RuntimeGraph, context: InvocationContext
    ) -> DispatchResult:
        ...
