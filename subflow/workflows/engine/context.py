from typing import Any, Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field

from subflow.utils.run_id import generate_run_id
from subflow.workflows.engine.constants import RunMode


class InvocationContext(BaseModel):
    """
    Ambient context carried explicitly through every dispatch call.

    Identity, run mode and pass-through variables are forwarded unchanged to
    nested plugin executions, so a nested plugin observes exactly what its
    parent observed. The only thing that grows with nesting is
    ``plugin_stack``, the chain of plugin ids currently being executed.
    """

    model_config = ConfigDict(frozen=True)

    team_id: str
    tmb_id: str
    mode: RunMode = RunMode.NORMAL
    run_id: str = Field(default_factory=generate_run_id)
    plugin_stack: Tuple[str, ...] = ()
    # Fields of the parent node's invocation the engine needs to hand down
    variables: Dict[str, Any] = Field(default_factory=dict)

    @property
    def depth(self) -> int:
        return len(self.plugin_stack)

    @property
    def is_test(self) -> bool:
        return self.mode == RunMode.TEST

    def nested(self, plugin_id: str) -> "InvocationContext":
        """Context for the graph of ``plugin_id``, one level deeper."""
        return self.model_copy(update={"plugin_stack": self.plugin_stack + (plugin_id,)})
