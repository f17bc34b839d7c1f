"""Per-interaction context handed to every handler."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping

from interaction_router import responses
from interaction_router.config import AppSettings
from interaction_router.discord_client import DiscordClient
from interaction_router.events import (
    Autocomplete,
    Command,
    ComponentActivation,
    InboundEvent,
    ModalSubmission,
)
from interaction_router.store import CallbackStore, RoutingState, store_component_state, store_modal_state


class InteractionContext:
    """Everything a handler may touch while answering one interaction.

    ``state`` is the routing state snapshot borrowed from the callback store
    for managed components and modals, and ``None`` everywhere else.
    """

    def __init__(
        self,
        event: InboundEvent,
        *,
        settings: AppSettings,
        store: CallbackStore,
        client: DiscordClient | None = None,
        state: RoutingState | None = None,
    ) -> None:
        self.event = event
        self.settings = settings
        self.store = store
        self.client = client
        self.state = state

    @property
    def interaction(self) -> Dict[str, Any]:
        return self.event.raw

    @property
    def user(self) -> Dict[str, Any] | None:
        return self.event.user

    @property
    def guild_id(self) -> str | None:
        return self.event.guild_id

    @property
    def payload(self) -> Dict[str, Any]:
        return self.state.payload if self.state else {}

    # Options

    def _options(self) -> Iterable[Mapping[str, Any]]:
        if isinstance(self.event, (Command, Autocomplete)):
            return self.event.options
        return ()

    def get_option(self, name: str, default: Any = None) -> Any:
        for option in self._options():
            if option.get("name") == name:
                return option.get("value", default)
        return default

    def get_resolved(self, kind: str, snowflake: str | None) -> Dict[str, Any] | None:
        """Look up a resolved user/channel/role entry for an option value."""

        if snowflake is None:
            return None
        resolved = (self.interaction.get("data") or {}).get("resolved") or {}
        return (resolved.get(kind) or {}).get(str(snowflake))

    def get_channel_option(self, name: str) -> Dict[str, Any] | None:
        return self.get_resolved("channels", self.get_option(name))

    @property
    def focused(self) -> Mapping[str, Any] | None:
        return self.event.focused if isinstance(self.event, Autocomplete) else None

    @property
    def values(self) -> tuple[str, ...]:
        return self.event.values if isinstance(self.event, ComponentActivation) else ()

    def get_field(self, custom_id: str, default: str = "") -> str:
        if isinstance(self.event, ModalSubmission):
            return self.event.fields.get(custom_id, default)
        return default

    # Replies

    def reply(self, data: Mapping[str, Any] | str, *, ephemeral: bool = False) -> Dict[str, Any]:
        if isinstance(data, str):
            data = {"content": data}
        return responses.message(data, ephemeral=ephemeral)

    def defer(self, *, ephemeral: bool = False) -> Dict[str, Any]:
        return responses.deferred(ephemeral=ephemeral)

    def defer_update(self) -> Dict[str, Any]:
        return responses.deferred(update=True)

    def update_message(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        return responses.update_message(data)

    def modal(self, *, custom_id: str, title: str, components: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
        return responses.modal(custom_id=custom_id, title=title, components=components)

    # Follow-ups, meant to run inside deferred work

    def _require_client(self) -> DiscordClient:
        if self.client is None:
            raise RuntimeError("No Discord client configured for this interaction.")
        return self.client

    def followup(self, data: Mapping[str, Any] | str, *, ephemeral: bool = False) -> Mapping[str, Any]:
        if isinstance(data, str):
            data = {"content": data}
        payload = dict(data)
        if ephemeral:
            payload["flags"] = payload.get("flags", 0) | responses.EPHEMERAL_FLAG
        return self._require_client().create_followup_message(self.event.token or "", payload)

    def edit_original(self, data: Mapping[str, Any]) -> Mapping[str, Any]:
        return self._require_client().edit_original_response(self.event.token or "", data)

    def delete_original(self) -> None:
        self._require_client().delete_original_response(self.event.token or "")

    # Stateful callbacks

    def store_component(
        self,
        *,
        component_type: int,
        routing_id: str,
        once: bool = False,
        payload: Dict[str, Any] | None = None,
        ttl: int | None = None,
    ) -> str:
        return store_component_state(
            self.store,
            component_type=component_type,
            routing_id=routing_id,
            once=once,
            payload=payload,
            ttl=ttl if ttl is not None else self.settings.component_ttl_seconds,
        )

    def store_modal(
        self,
        *,
        routing_id: str,
        once: bool = False,
        payload: Dict[str, Any] | None = None,
        ttl: int | None = None,
    ) -> str:
        return store_modal_state(
            self.store,
            routing_id=routing_id,
            once=once,
            payload=payload,
            ttl=ttl if ttl is not None else self.settings.component_ttl_seconds,
        )
