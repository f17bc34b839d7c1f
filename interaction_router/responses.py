"""Builders for Discord interaction response bodies."""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Dict, Iterable, Mapping

# Discord rejects autocomplete results with more than 25 choices.
MAX_AUTOCOMPLETE_CHOICES = 25
EPHEMERAL_FLAG = 1 << 6

UNKNOWN_COMMAND = "Unknown command"
UNRESOLVED_COMMAND = "Cannot handle this command"
UNKNOWN_COMPONENT = "Unknown component"
UNKNOWN_MODAL = "Unknown modal"
UNKNOWN_ROUTING_ID = "Unknown routing ID"
UNKNOWN_TYPE = "Unknown Type"
UNLUCKY_ERROR = "You've found a super unlucky error. Try again later!"


class InteractionResponseType(IntEnum):
    PONG = 1
    CHANNEL_MESSAGE_WITH_SOURCE = 4
    DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE = 5
    DEFERRED_UPDATE_MESSAGE = 6
    UPDATE_MESSAGE = 7
    APPLICATION_COMMAND_AUTOCOMPLETE_RESULT = 8
    MODAL = 9


def pong() -> Dict[str, Any]:
    return {"type": InteractionResponseType.PONG}


def error_body(message: str, *, status: int | None = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": message}
    if status is not None:
        body["status"] = status
    return body


def message(data: Mapping[str, Any] | None = None, *, ephemeral: bool = False, **fields: Any) -> Dict[str, Any]:
    payload = dict(data or {}, **fields)
    if ephemeral:
        payload["flags"] = payload.get("flags", 0) | EPHEMERAL_FLAG
    return {"type": InteractionResponseType.CHANNEL_MESSAGE_WITH_SOURCE, "data": payload}


def update_message(data: Mapping[str, Any] | None = None, **fields: Any) -> Dict[str, Any]:
    return {"type": InteractionResponseType.UPDATE_MESSAGE, "data": dict(data or {}, **fields)}


def deferred(*, ephemeral: bool = False, update: bool = False) -> Dict[str, Any]:
    if update:
        return {"type": InteractionResponseType.DEFERRED_UPDATE_MESSAGE}
    body: Dict[str, Any] = {"type": InteractionResponseType.DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE}
    if ephemeral:
        body["data"] = {"flags": EPHEMERAL_FLAG}
    return body


def modal(*, custom_id: str, title: str, components: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
    return {
        "type": InteractionResponseType.MODAL,
        "data": {"custom_id": custom_id, "title": title[:45], "components": list(components)},
    }


def autocomplete_result(choices: Iterable[Mapping[str, Any]] = ()) -> Dict[str, Any]:
    return {
        "type": InteractionResponseType.APPLICATION_COMMAND_AUTOCOMPLETE_RESULT,
        "data": {"choices": list(choices)[:MAX_AUTOCOMPLETE_CHOICES]},
    }
