from subflow.workflows.engine.constants import FlowNodeType, RunMode
from subflow.workflows.engine.context import InvocationContext
from subflow.workflows.engine.graph import WorkflowGraph

__all__ = ["FlowNodeType", "RunMode", "InvocationContext", "WorkflowGraph"]
