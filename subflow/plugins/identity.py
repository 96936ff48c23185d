from typing import Optional, Tuple

from subflow.plugins.schemas import PluginSource
from subflow.workflows.engine.errors import MalformedIdentifierError

SOURCE_SEPARATOR = "-"


def split_combine_plugin_id(plugin_id: Optional[str]) -> Tuple[PluginSource, str]:
    """
    Parse a combined plugin id into its source and store lookup key.

    ``"65f1c0ab..."`` is a personal plugin (an app id). Platform plugins are
    tagged with their source: ``"community-translate"``. The store indexes
    platform plugins by the combined id, so the lookup key is always the full
    id; only the source tag is split off.

    Raises:
        MalformedIdentifierError: empty id, unknown source tag or empty key
    """
    if not plugin_id:
        raise MalformedIdentifierError("pluginId can not find", plugin_id=plugin_id)

    if SOURCE_SEPARATOR not in plugin_id:
        return PluginSource.PERSONAL, plugin_id

    source_tag, key = plugin_id.split(SOURCE_SEPARATOR, 1)
    try:
        source = PluginSource(source_tag)
    except ValueError:
        raise MalformedIdentifierError(
            f"Unknown plugin source '{source_tag}' in '{plugin_id}'", plugin_id=plugin_id
        ) from None

    if not key:
        raise MalformedIdentifierError(
            f"Plugin id '{plugin_id}' has no key after its source", plugin_id=plugin_id
        )
    return source, plugin_id
