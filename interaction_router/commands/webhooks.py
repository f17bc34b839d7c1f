"""``/webhook info`` and its autocomplete."""

from __future__ import annotations

from interaction_router.events import OptionType
from interaction_router.registry import RegistryBuilder

commands = RegistryBuilder()

commands.define(
    "webhook",
    {
        "description": "Webhook utilities",
        "options": [
            {
                "type": OptionType.SUB_COMMAND,
                "name": "info",
                "description": "Show details about a webhook in this server",
                "options": [
                    {
                        "type": OptionType.STRING,
                        "name": "webhook",
                        "description": "The webhook to look up",
                        "required": True,
                        "autocomplete": True,
                    }
                ],
            }
        ],
        "dm_permission": False,
    },
)


@commands.command("webhook", "info")
def webhook_info(ctx):
    webhook_id = str(ctx.get_option("webhook", "")).strip()
    if not webhook_id.isdigit():
        return ctx.reply("Pick a webhook from the list.", ephemeral=True)

    webhook = ctx.client.get_webhook(webhook_id)
    if ctx.guild_id and webhook.get("guild_id") != ctx.guild_id:
        return ctx.reply("That webhook belongs to a different server.", ephemeral=True)

    fields = [
        {"name": "ID", "value": webhook["id"], "inline": True},
        {"name": "Channel", "value": f"<#{webhook.get('channel_id')}>", "inline": True},
    ]
    creator = webhook.get("user")
    if creator:
        fields.append({"name": "Created by", "value": f"<@{creator['id']}>", "inline": True})

    embed = {"title": webhook.get("name") or "Webhook", "fields": fields}
    if webhook.get("token"):
        embed["description"] = "This webhook's token is accessible to me."
    return ctx.reply({"embeds": [embed]}, ephemeral=True)


@commands.autocomplete("webhook", "info")
def webhook_info_autocomplete(ctx):
    if not ctx.guild_id:
        return []

    query = str((ctx.focused or {}).get("value") or "").lower()
    webhooks = ctx.client.list_guild_webhooks(ctx.guild_id)
    return [
        {"name": (webhook.get("name") or webhook["id"])[:100], "value": webhook["id"]}
        for webhook in webhooks
        if query in (webhook.get("name") or "").lower() or query in webhook["id"]
    ]
