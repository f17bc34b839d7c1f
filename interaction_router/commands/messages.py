"""``/message send``: compose a message in a modal and post it afterwards."""

from __future__ import annotations

from interaction_router.events import ComponentType, OptionType
from interaction_router.registry import RegistryBuilder
from interaction_router.store import static_custom_id

MESSAGE_SEND_MODAL = "message-send"
DISMISS_ROUTING_ID = "dismiss"
CONTENT_FIELD = "content"
# GUILD_TEXT, GUILD_ANNOUNCEMENT
TEXT_CHANNEL_TYPES = [0, 5]

commands = RegistryBuilder()

commands.define(
    "message",
    {
        "description": "Send messages as the bot",
        "options": [
            {
                "type": OptionType.SUB_COMMAND,
                "name": "send",
                "description": "Write a message and send it to a channel",
                "options": [
                    {
                        "type": OptionType.CHANNEL,
                        "name": "channel",
                        "description": "Where to send the message",
                        "required": True,
                        "channel_types": TEXT_CHANNEL_TYPES,
                    }
                ],
            }
        ],
        "dm_permission": False,
        "default_member_permissions": str(1 << 13),  # MANAGE_MESSAGES
    },
)


def dismiss_button() -> dict:
    return {
        "type": ComponentType.ACTION_ROW,
        "components": [
            {
                "type": ComponentType.BUTTON,
                "style": 2,
                "label": "Dismiss",
                "custom_id": static_custom_id(DISMISS_ROUTING_ID),
            }
        ],
    }


@commands.command("message", "send")
def message_send(ctx):
    channel = ctx.get_channel_option("channel")
    if channel is None:
        return ctx.reply("Pick a channel to send the message to.", ephemeral=True)

    custom_id = ctx.store_modal(
        routing_id=MESSAGE_SEND_MODAL,
        once=True,
        payload={"channel_id": channel["id"], "channel_name": channel.get("name")},
    )
    title = f"Send to #{channel.get('name') or channel['id']}"
    return ctx.modal(
        custom_id=custom_id,
        title=title,
        components=[
            {
                "type": ComponentType.ACTION_ROW,
                "components": [
                    {
                        "type": ComponentType.TEXT_INPUT,
                        "custom_id": CONTENT_FIELD,
                        "label": "Content",
                        "style": 2,
                        "min_length": 1,
                        "max_length": 2000,
                        "required": True,
                    }
                ],
            }
        ],
    )


@commands.modal(MESSAGE_SEND_MODAL)
def message_send_submit(ctx):
    content = ctx.get_field(CONTENT_FIELD).strip()
    if not content:
        return ctx.reply("The message can't be empty.", ephemeral=True)

    channel_id = ctx.payload["channel_id"]

    def send():
        message = ctx.client.create_message(channel_id, {"content": content})
        link = f"https://discord.com/channels/{ctx.guild_id}/{channel_id}/{message['id']}"
        ctx.edit_original({"content": f"Sent! {link}", "components": [dismiss_button()]})

    return ctx.defer(ephemeral=True), send


@commands.static_component(DISMISS_ROUTING_ID)
def dismiss(ctx):
    def delete():
        ctx.delete_original()

    return ctx.defer_update(), delete
