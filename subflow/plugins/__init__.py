from .identity import split_combine_plugin_id
from .permission import PermissionService, StaticPermissionService, auth_plugin
from .schemas import AggregatedPluginResult, PluginNodeResponse, PluginSource
from .store import InMemoryPluginStore, PluginStore, SQLModelPluginStore, get_plugin_runtime_by_id

__all__ = [
    "split_combine_plugin_id",
    "PermissionService",
    "StaticPermissionService",
    "auth_plugin",
    "AggregatedPluginResult",
    "PluginNodeResponse",
    "PluginSource",
    "InMemoryPluginStore",
    "PluginStore",
    "SQLModelPluginStore",
    "get_plugin_runtime_by_id",
]
