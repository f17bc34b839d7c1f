"""Handler registry mapping routed interactions to handler callables.

Handlers are collected on a :class:`RegistryBuilder` while modules import,
then frozen into a :class:`HandlerRegistry` once at startup. The frozen
registry is read-only and is passed to the dispatcher explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Tuple

from interaction_router.events import ApplicationCommandType
from interaction_router.resolver import BASE_PATH, normalise_command_name

Handler = Callable[..., Any]
CommandKey = Tuple[int, str]


class DuplicateHandlerError(ValueError):
    """Raised when two handlers claim the same routing key."""


@dataclass(frozen=True)
class CommandEntry:
    """Handlers for one application command, keyed by qualified path."""

    name: str
    command_type: int
    handlers: Mapping[str, Handler]
    autocomplete_handlers: Mapping[str, Handler]
    definition: Mapping[str, Any] | None = None


@dataclass(frozen=True)
class HandlerRegistry:
    commands: Mapping[CommandKey, CommandEntry]
    components: Mapping[str, Handler]
    modals: Mapping[str, Handler]
    static_components: Mapping[str, Handler]
    static_modals: Mapping[str, Handler]

    def find_command(self, command_type: int, name: str) -> CommandEntry | None:
        return self.commands.get((int(command_type), normalise_command_name(name)))

    def command_handler(self, command_type: int, name: str, path: str) -> Handler | None:
        entry = self.find_command(command_type, name)
        return entry.handlers.get(path) if entry else None

    def autocomplete_handler(self, command_type: int, name: str, path: str) -> Handler | None:
        entry = self.find_command(command_type, name)
        return entry.autocomplete_handlers.get(path) if entry else None

    def definitions(self) -> List[Mapping[str, Any]]:
        """Command schemas suitable for a bulk overwrite on Discord."""

        return [entry.definition for entry in self.commands.values() if entry.definition is not None]


@dataclass
class _CommandDraft:
    name: str
    command_type: int
    handlers: Dict[str, Handler] = field(default_factory=dict)
    autocomplete_handlers: Dict[str, Handler] = field(default_factory=dict)
    definition: Dict[str, Any] | None = None


class RegistryBuilder:
    """Mutable collector used while handler modules are being loaded."""

    def __init__(self) -> None:
        self._commands: Dict[CommandKey, _CommandDraft] = {}
        self._components: Dict[str, Handler] = {}
        self._modals: Dict[str, Handler] = {}
        self._static_components: Dict[str, Handler] = {}
        self._static_modals: Dict[str, Handler] = {}

    def _draft(self, name: str, command_type: int) -> _CommandDraft:
        key = (int(command_type), normalise_command_name(name))
        draft = self._commands.get(key)
        if draft is None:
            draft = _CommandDraft(name=key[1], command_type=key[0])
            self._commands[key] = draft
        return draft

    def define(
        self,
        name: str,
        definition: Dict[str, Any],
        *,
        command_type: int = ApplicationCommandType.CHAT_INPUT,
    ) -> None:
        """Attach the command schema that will be registered on Discord."""

        draft = self._draft(name, command_type)
        draft.definition = {"name": draft.name, "type": int(command_type), **definition}

    def command(
        self,
        name: str,
        path: str = BASE_PATH,
        *,
        command_type: int = ApplicationCommandType.CHAT_INPUT,
    ) -> Callable[[Handler], Handler]:
        def decorator(func: Handler) -> Handler:
            _register(self._draft(name, command_type).handlers, path, func, f"command {name!r}")
            return func

        return decorator

    def autocomplete(
        self,
        name: str,
        path: str = BASE_PATH,
        *,
        command_type: int = ApplicationCommandType.CHAT_INPUT,
    ) -> Callable[[Handler], Handler]:
        def decorator(func: Handler) -> Handler:
            _register(self._draft(name, command_type).autocomplete_handlers, path, func, f"autocomplete {name!r}")
            return func

        return decorator

    def component(self, routing_id: str) -> Callable[[Handler], Handler]:
        def decorator(func: Handler) -> Handler:
            _register(self._components, routing_id, func, "component")
            return func

        return decorator

    def modal(self, routing_id: str) -> Callable[[Handler], Handler]:
        def decorator(func: Handler) -> Handler:
            _register(self._modals, routing_id, func, "modal")
            return func

        return decorator

    def static_component(self, routing_id: str) -> Callable[[Handler], Handler]:
        def decorator(func: Handler) -> Handler:
            _register(self._static_components, routing_id, func, "static component")
            return func

        return decorator

    def static_modal(self, routing_id: str) -> Callable[[Handler], Handler]:
        def decorator(func: Handler) -> Handler:
            _register(self._static_modals, routing_id, func, "static modal")
            return func

        return decorator

    def build(self) -> HandlerRegistry:
        commands = {
            key: CommandEntry(
                name=draft.name,
                command_type=draft.command_type,
                handlers=MappingProxyType(dict(draft.handlers)),
                autocomplete_handlers=MappingProxyType(dict(draft.autocomplete_handlers)),
                definition=MappingProxyType(dict(draft.definition)) if draft.definition else None,
            )
            for key, draft in self._commands.items()
        }
        return HandlerRegistry(
            commands=MappingProxyType(commands),
            components=MappingProxyType(dict(self._components)),
            modals=MappingProxyType(dict(self._modals)),
            static_components=MappingProxyType(dict(self._static_components)),
            static_modals=MappingProxyType(dict(self._static_modals)),
        )


def _register(target: Dict[str, Handler], key: str, func: Handler, label: str) -> None:
    if key in target:
        raise DuplicateHandlerError(f"{label} already has a handler for {key!r}")
    target[key] = func


def build_registry(builders: Iterable[RegistryBuilder]) -> HandlerRegistry:
    """Merge several builders into one frozen registry."""

    merged = RegistryBuilder()
    for builder in builders:
        for draft in builder._commands.values():
            target = merged._draft(draft.name, draft.command_type)
            for path, func in draft.handlers.items():
                _register(target.handlers, path, func, f"command {draft.name!r}")
            for path, func in draft.autocomplete_handlers.items():
                _register(target.autocomplete_handlers, path, func, f"autocomplete {draft.name!r}")
            if draft.definition is not None:
                target.definition = draft.definition
        for source, dest, label in (
            (builder._components, merged._components, "component"),
            (builder._modals, merged._modals, "modal"),
            (builder._static_components, merged._static_components, "static component"),
            (builder._static_modals, merged._static_modals, "static modal"),
        ):
            for routing_id, func in source.items():
                _register(dest, routing_id, func, label)
    return merged.build()
