import pytest

from subflow.plugins.permission import StaticPermissionService, auth_plugin
from subflow.plugins.schemas import PluginSource
from subflow.workflows.engine.constants import Permission
from subflow.workflows.engine.errors import PluginUnauthorizedError


class ExplodingPermissions:
    async def authorize(self, tmb_id, object_id, per):
        raise AssertionError("platform plugins must not be checked")


@pytest.mark.asyncio
async def test_platform_plugins_skip_the_check():
    await auth_plugin(
        ExplodingPermissions(),
        source=PluginSource.COMMUNITY,
        plugin_id="community-translate",
        tmb_id="tmb-1",
    )


@pytest.mark.asyncio
async def test_personal_plugin_without_grant_is_rejected():
    with pytest.raises(PluginUnauthorizedError) as exc_info:
        await auth_plugin(
            StaticPermissionService(),
            source=PluginSource.PERSONAL,
            plugin_id="65f1c0ab",
            tmb_id="tmb-1",
        )

    assert exc_info.value.plugin_id == "65f1c0ab"


@pytest.mark.asyncio
@pytest.mark.parametrize("granted", [Permission.READ, Permission.WRITE, Permission.MANAGE])
async def test_read_is_implied_by_stronger_grants(granted):
    permissions = StaticPermissionService()
    permissions.grant("tmb-1", "65f1c0ab", granted)

    await auth_plugin(permissions, source=PluginSource.PERSONAL, plugin_id="65f1c0ab", tmb_id="tmb-1")


@pytest.mark.asyncio
async def test_grant_is_per_member_and_revocable():
    permissions = StaticPermissionService({("tmb-1", "65f1c0ab"): Permission.READ})

    assert await permissions.authorize("tmb-1", "65f1c0ab", Permission.READ) is True
    assert await permissions.authorize("tmb-2", "65f1c0ab", Permission.READ) is False
    assert await permissions.authorize("tmb-1", "65f1c0ab", Permission.WRITE) is False

    permissions.revoke("tmb-1", "65f1c0ab")
    assert await permissions.authorize("tmb-1", "65f1c0ab", Permission.READ) is False
