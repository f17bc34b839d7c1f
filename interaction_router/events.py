"""Classification of verified interaction payloads into typed events."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Tuple, Union

from pydantic import BaseModel, ConfigDict, ValidationError


class InteractionType(IntEnum):
    PING = 1
    APPLICATION_COMMAND = 2
    MESSAGE_COMPONENT = 3
    APPLICATION_COMMAND_AUTOCOMPLETE = 4
    MODAL_SUBMIT = 5


class ApplicationCommandType(IntEnum):
    CHAT_INPUT = 1
    USER = 2
    MESSAGE = 3


class OptionType(IntEnum):
    SUB_COMMAND = 1
    SUB_COMMAND_GROUP = 2
    STRING = 3
    INTEGER = 4
    BOOLEAN = 5
    USER = 6
    CHANNEL = 7
    ROLE = 8
    MENTIONABLE = 9
    NUMBER = 10
    ATTACHMENT = 11


class ComponentType(IntEnum):
    ACTION_ROW = 1
    BUTTON = 2
    STRING_SELECT = 3
    TEXT_INPUT = 4
    USER_SELECT = 5
    ROLE_SELECT = 6
    MENTIONABLE_SELECT = 7
    CHANNEL_SELECT = 8


class InvalidInteractionPayload(ValueError):
    """Raised when a verified body is not a well-formed interaction."""


class UnknownInteractionType(ValueError):
    """Raised for interaction types the router does not know how to route."""

    def __init__(self, interaction_type: int) -> None:
        super().__init__(f"Unknown interaction type {interaction_type}")
        self.interaction_type = interaction_type


class InteractionEnvelope(BaseModel):
    """Fields shared by every interaction kind."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    application_id: str | None = None
    type: int
    token: str | None = None
    data: Dict[str, Any] | None = None
    guild_id: str | None = None
    channel_id: str | None = None
    member: Dict[str, Any] | None = None
    user: Dict[str, Any] | None = None
    message: Dict[str, Any] | None = None
    locale: str | None = None


@dataclass(frozen=True)
class _BaseEvent:
    raw: Dict[str, Any] = field(repr=False)

    @property
    def interaction_id(self) -> str | None:
        return self.raw.get("id")

    @property
    def token(self) -> str | None:
        return self.raw.get("token")

    @property
    def guild_id(self) -> str | None:
        return self.raw.get("guild_id")

    @property
    def channel_id(self) -> str | None:
        return self.raw.get("channel_id")

    @property
    def user(self) -> Dict[str, Any] | None:
        member = self.raw.get("member")
        if isinstance(member, dict) and isinstance(member.get("user"), dict):
            return member["user"]
        user = self.raw.get("user")
        return user if isinstance(user, dict) else None

    @property
    def user_id(self) -> str | None:
        user = self.user
        return user.get("id") if user else None


@dataclass(frozen=True)
class Ping(_BaseEvent):
    pass


@dataclass(frozen=True)
class _CommandEvent(_BaseEvent):
    command_type: int = ApplicationCommandType.CHAT_INPUT
    name: str = ""
    path: Tuple[str, ...] = ()
    options: Tuple[Dict[str, Any], ...] = ()


@dataclass(frozen=True)
class Command(_CommandEvent):
    pass


@dataclass(frozen=True)
class Autocomplete(_CommandEvent):
    @property
    def focused(self) -> Dict[str, Any] | None:
        for option in self.options:
            if option.get("focused"):
                return option
        return None


@dataclass(frozen=True)
class ComponentActivation(_BaseEvent):
    custom_id: str = ""
    component_type: int = ComponentType.BUTTON
    values: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ModalSubmission(_BaseEvent):
    custom_id: str = ""
    fields: Dict[str, str] = field(default_factory=dict)


InboundEvent = Union[Ping, Command, Autocomplete, ComponentActivation, ModalSubmission]


def walk_options(options: List[Dict[str, Any]] | None) -> Tuple[Tuple[str, ...], Tuple[Dict[str, Any], ...]]:
    """Split an option tree into the subcommand path and the leaf arguments.

    A subcommand group contributes its name and is descended into; a
    subcommand contributes its name and its options become the arguments.
    Discord only ever sends one active subcommand per invocation.
    """

    path: List[str] = []
    arguments: List[Dict[str, Any]] = []

    def visit(option: Dict[str, Any]) -> None:
        option_type = option.get("type")
        if option_type == OptionType.SUB_COMMAND_GROUP:
            path.append(option.get("name", ""))
            for nested in option.get("options") or []:
                visit(nested)
        elif option_type == OptionType.SUB_COMMAND:
            path.append(option.get("name", ""))
            arguments.extend(option.get("options") or [])
        else:
            arguments.append(option)

    for option in options or []:
        if isinstance(option, dict):
            visit(option)

    return tuple(path), tuple(arguments)


def _classify_command(envelope: InteractionEnvelope, raw: Dict[str, Any], cls: type) -> _CommandEvent:
    data = envelope.data or {}
    name = data.get("name")
    if not isinstance(name, str) or not name:
        raise InvalidInteractionPayload("Command interaction is missing a name.")

    command_type = data.get("type", ApplicationCommandType.CHAT_INPUT)
    if command_type == ApplicationCommandType.CHAT_INPUT:
        path, options = walk_options(data.get("options"))
    else:
        # Context menu commands have no option tree to walk.
        path, options = (), tuple(data.get("options") or ())

    return cls(raw=raw, command_type=command_type, name=name, path=path, options=options)


def _modal_fields(components: List[Dict[str, Any]] | None) -> Dict[str, str]:
    fields: Dict[str, str] = {}
    for row in components or []:
        for component in row.get("components") or [row]:
            custom_id = component.get("custom_id")
            if custom_id and component.get("type") == ComponentType.TEXT_INPUT:
                fields[custom_id] = component.get("value") or ""
    return fields


def classify(payload: Any) -> InboundEvent:
    """Parse a verified interaction body into exactly one event kind."""

    if not isinstance(payload, dict):
        raise InvalidInteractionPayload("Interaction body must be a JSON object.")

    try:
        envelope = InteractionEnvelope.model_validate(payload)
    except ValidationError as exc:
        raise InvalidInteractionPayload("Invalid interaction payload.") from exc

    if envelope.type == InteractionType.PING:
        return Ping(raw=payload)

    if envelope.type == InteractionType.APPLICATION_COMMAND:
        return _classify_command(envelope, payload, Command)

    if envelope.type == InteractionType.APPLICATION_COMMAND_AUTOCOMPLETE:
        return _classify_command(envelope, payload, Autocomplete)

    if envelope.type == InteractionType.MESSAGE_COMPONENT:
        data = envelope.data or {}
        custom_id = data.get("custom_id")
        if not isinstance(custom_id, str):
            raise InvalidInteractionPayload("Component interaction is missing a custom_id.")
        return ComponentActivation(
            raw=payload,
            custom_id=custom_id,
            component_type=data.get("component_type", ComponentType.BUTTON),
            values=tuple(data.get("values") or ()),
        )

    if envelope.type == InteractionType.MODAL_SUBMIT:
        data = envelope.data or {}
        custom_id = data.get("custom_id")
        if not isinstance(custom_id, str):
            raise InvalidInteractionPayload("Modal interaction is missing a custom_id.")
        return ModalSubmission(raw=payload, custom_id=custom_id, fields=_modal_fields(data.get("components")))

    raise UnknownInteractionType(envelope.type)
