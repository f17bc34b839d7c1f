"""Translate Discord REST errors into user-facing interaction replies."""

from __future__ import annotations

from typing import Any, Dict, Mapping, TYPE_CHECKING

from interaction_router import responses

if TYPE_CHECKING:  # pragma: no cover
    from interaction_router.context import InteractionContext

# https://discord.com/developers/docs/topics/opcodes-and-status-codes#json
_ERROR_MESSAGES: Dict[int, str] = {
    10003: "That channel doesn't exist, or I can't see it.",
    10008: "That message doesn't exist anymore.",
    10015: "That webhook doesn't exist. It may have been deleted.",
    30007: "This channel has reached the maximum number of webhooks.",
    50001: "I don't have access to do that. Check my permissions for this channel.",
    50013: "I'm missing permissions to do that. Check my role and channel overrides.",
    50027: "This interaction has expired. Please run the command again.",
    50035: "Discord rejected the message because some of its data was invalid.",
}


def get_error_message(ctx: "InteractionContext | None", raw_error: Mapping[str, Any] | None) -> Dict[str, Any] | None:
    """Return an ephemeral reply for a known Discord error, else None."""

    if not raw_error:
        return None
    code = raw_error.get("code")
    text = _ERROR_MESSAGES.get(code) if isinstance(code, int) else None
    if text is None:
        return None
    return responses.message({"content": text}, ephemeral=True)
