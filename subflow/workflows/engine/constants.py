"""
Constants for Workflow Engine

Centralizes all magic strings used by the plugin execution layer.
"""

from enum import Enum, IntFlag


class FlowNodeType(str, Enum):
    """Node kinds the plugin layer (and its reference dispatcher) knows about."""
    WORKFLOW_START = "workflowStart"
    SYSTEM_CONFIG = "userGuide"
    PLUGIN_INPUT = "pluginInput"
    PLUGIN_OUTPUT = "pluginOutput"
    PLUGIN_MODULE = "pluginModule"
    ANSWER_NODE = "answerNode"


# Node kinds that are always entry points, whatever their inbound edges
ENTRY_NODE_TYPES = (
    FlowNodeType.WORKFLOW_START.value,
    FlowNodeType.SYSTEM_CONFIG.value,
    FlowNodeType.PLUGIN_INPUT.value,
)


class EdgeStatus(str, Enum):
    """Activation state of a runtime edge."""
    WAITING = "waiting"
    ACTIVE = "active"
    SKIPPED = "skipped"


class RunMode(str, Enum):
    """How a workflow is being run."""
    NORMAL = "normal"
    TEST = "test"


class DispatchNodeResponseKey:
    """Keys of the flat node result handed back to the parent workflow."""
    NODE_RESPONSE = "responseData"
    NODE_DISPATCH_USAGES = "nodeDispatchUsages"
    TOOL_RESPONSES = "toolResponses"
    ASSISTANT_RESPONSES = "assistantResponses"


class Permission(IntFlag):
    """Permission bits; write and manage include read."""
    NONE = 0
    READ = 0b100
    WRITE = 0b110
    MANAGE = 0b111
