"""The ``/ping`` liveness command."""

from __future__ import annotations

from interaction_router.registry import RegistryBuilder

commands = RegistryBuilder()

commands.define("ping", {"description": "Check that the bot is answering interactions"})


@commands.command("ping")
def ping(ctx):
    return ctx.reply("Pong!", ephemeral=True)
