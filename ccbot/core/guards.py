"""Permission guards for admin slash commands."""

import discord
from discord import app_commands

from ccbot.config import get_settings

NO_PERMISSION_MESSAGE = "You do not have permission to use this command."


def has_admin_role(user: discord.abc.User, admin_role_id: int | None) -> bool:
    """Administrators always pass; otherwise the member needs the configured admin role."""
    if not isinstance(user, discord.Member):
        return False
    if user.guild_permissions.administrator:
        return True
    return admin_role_id is not None and any(role.id == admin_role_id for role in user.roles)


def admin_only():
    """App command check backed by ``ADMIN_ROLE_ID``."""

    async def predicate(interaction: discord.Interaction) -> bool:
        if has_admin_role(interaction.user, get_settings().admin_role_id):
            return True
        raise app_commands.CheckFailure(NO_PERMISSION_MESSAGE)

    return app_commands.check(predicate)
