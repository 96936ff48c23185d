import logging
from typing import Dict, Optional, Protocol, Tuple

from subflow.plugins.schemas import PluginSource
from subflow.workflows.engine.constants import Permission
from subflow.workflows.engine.errors import PluginUnauthorizedError

logger = logging.getLogger(__name__)


class PermissionService(Protocol):
    """Identity/permission backend. Plugins are checked like any other app."""

    async def authorize(self, tmb_id: str, object_id: str, per: Permission) -> bool:
        ...


class StaticPermissionService:
    """In-memory grant table keyed by (team member id, object id)."""

    def __init__(self, grants: Optional[Dict[Tuple[str, str], Permission]] = None):
        self.grants: Dict[Tuple[str, str], Permission] = dict(grants or {})

    def grant(self, tmb_id: str, object_id: str, per: Permission = Permission.READ) -> None:
        self.grants[(tmb_id, object_id)] = self.grants.get((tmb_id, object_id), Permission.NONE) | per

    def revoke(self, tmb_id: str, object_id: str) -> None:
        self.grants.pop((tmb_id, object_id), None)

    async def authorize(self, tmb_id: str, object_id: str, per: Permission) -> bool:
        granted = self.grants.get((tmb_id, object_id), Permission.NONE)
        return (granted & per) == per


async def auth_plugin(
    permissions: PermissionService,
    *,
    source: PluginSource,
    plugin_id: str,
    tmb_id: str,
    per: Permission = Permission.READ,
) -> None:
    """
    Gate a plugin invocation.

    Only personal plugins are checked; platform plugins are globally readable.
    Must run before the plugin graph is loaded.

    Raises:
        PluginUnauthorizedError: the team member lacks ``per`` on the plugin
    """
    if not source.requires_auth:
        return

    if not await permissions.authorize(tmb_id, plugin_id, per):
        logger.warning(f"Team member {tmb_id} denied {per!r} on plugin {plugin_id}")
        raise PluginUnauthorizedError(
            f"No permission to use plugin {plugin_id}", plugin_id=plugin_id
        )
