"""
Run ID context for tracing nested plugin executions.

Every plugin invocation binds the run id of its invocation context so that
log lines emitted anywhere in the call chain (including nested plugins) can be
correlated back to the top-level run.
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

# Context variable for run ID - accessible anywhere in the invocation chain
run_id_var: ContextVar[Optional[str]] = ContextVar("run_id", default=None)


def get_run_id() -> Optional[str]:
    """Get the current run ID from context."""
    return run_id_var.get()


def generate_run_id() -> str:
    """Generate a new unique run ID."""
    return str(uuid.uuid4())


@contextmanager
def bind_run_id(run_id: str) -> Iterator[str]:
    """Bind ``run_id`` for the duration of the block."""
    token = run_id_var.set(run_id)
    try:
        yield run_id
    finally:
        run_id_var.reset(token)


def get_log_context() -> dict:
    """
    Get logging context with run ID.

    Example:
        logger.info("Loading plugin", extra=get_log_context())
    """
    run_id = get_run_id()
    if run_id:
        return {"run_id": run_id}
    return {}
