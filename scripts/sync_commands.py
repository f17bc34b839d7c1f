"""Register the built-in command schemas with Discord.

Usage:
    python scripts/sync_commands.py

With ENVIRONMENT=dev and DEVELOPMENT_SERVER_ID set, commands are written to
that guild only so changes show up immediately.
"""

from __future__ import annotations

from interaction_router.commands import build_default_registry
from interaction_router.config import get_settings
from interaction_router.discord_client import DiscordClient
from interaction_router.logging_config import configure_logging


def sync_commands(client: DiscordClient | None = None) -> list:
    settings = get_settings()
    client = client or DiscordClient(token=settings.bot_token, application_id=settings.application_id)
    guild_id = settings.development_guild_id if settings.is_dev else None

    definitions = build_default_registry().definitions()
    registered = client.bulk_overwrite_commands(definitions, guild_id=guild_id)
    scope = f"guild {guild_id}" if guild_id else "global scope"
    print(f"Registered {len(registered or [])} commands in {scope}.")
    return list(registered or [])


if __name__ == "__main__":
    configure_logging()
    sync_commands()
