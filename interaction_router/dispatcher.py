"""Verify, classify, route and answer one Discord interaction.

The dispatcher is the only place handler failures are caught: every path
through :meth:`Dispatcher.handle` ends in a well-formed response, and a
handler's deferred work is returned as a :class:`DeferredTask` for the
transport to schedule once the reply has gone out.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Union

import structlog

from interaction_router import responses
from interaction_router.background import BackgroundTasks, DeferredTask
from interaction_router.config import AppSettings
from interaction_router.context import InteractionContext
from interaction_router.discord_client import DiscordApiError, DiscordClient
from interaction_router.errors import get_error_message
from interaction_router.events import (
    Autocomplete,
    Command,
    ComponentActivation,
    InboundEvent,
    ModalSubmission,
    Ping,
    UnknownInteractionType,
    classify,
)
from interaction_router.registry import Handler, HandlerRegistry
from interaction_router.resolver import resolve_qualified_path
from interaction_router.security import is_valid_discord_request
from interaction_router.store import (
    CallbackStore,
    component_key,
    is_managed,
    modal_key,
    parse_static_custom_id,
)

logger = structlog.get_logger(__name__)

ErrorTranslator = Callable[[InteractionContext, Mapping[str, Any]], Union[Dict[str, Any], None]]


@dataclass
class DispatchResponse:
    """What the HTTP layer should send back, plus optional post-reply work."""

    status: int
    body: Any
    deferred: DeferredTask | None = None


@dataclass(frozen=True)
class Replied:
    reply: Any
    deferred: Callable[[], Any] | None = None


@dataclass(frozen=True)
class ProviderFailure:
    error: DiscordApiError


@dataclass(frozen=True)
class UnknownFailure:
    error: BaseException


Outcome = Union[Replied, ProviderFailure, UnknownFailure]


def invoke(handler: Handler, ctx: InteractionContext) -> Outcome:
    """Run *handler* and fold whatever it does into an :data:`Outcome`."""

    try:
        result = handler(ctx)
    except DiscordApiError as exc:
        return ProviderFailure(exc)
    except Exception as exc:
        return UnknownFailure(exc)

    if isinstance(result, tuple):
        if len(result) != 2 or not callable(result[1]):
            return UnknownFailure(TypeError("Handlers must return a reply or a (reply, deferred work) pair."))
        reply, deferred = result
    else:
        reply, deferred = result, None

    try:
        json.dumps(reply)
    except (TypeError, ValueError) as exc:
        return UnknownFailure(exc)
    return Replied(reply=reply, deferred=deferred)


def _ok(body: Any, deferred: DeferredTask | None = None) -> DispatchResponse:
    return DispatchResponse(status=200, body=body, deferred=deferred)


class Dispatcher:
    def __init__(
        self,
        *,
        registry: HandlerRegistry,
        store: CallbackStore,
        settings: AppSettings,
        client: DiscordClient | None = None,
        translator: ErrorTranslator = get_error_message,
        tasks: BackgroundTasks | None = None,
    ) -> None:
        self.registry = registry
        self.store = store
        self.settings = settings
        self.client = client
        self.translator = translator
        self.tasks = tasks

    # Entry point

    def handle(
        self,
        body: bytes,
        *,
        signature: str | None,
        timestamp: str | None,
        trace_id: str | None = None,
    ) -> DispatchResponse:
        log = logger.bind(trace_id=trace_id) if trace_id else logger

        if not is_valid_discord_request(
            public_key=self.settings.public_key,
            timestamp=timestamp,
            body=body,
            signature=signature,
            max_age=self.settings.signature_max_age_seconds,
        ):
            log.warning("interaction_signature_invalid")
            return DispatchResponse(status=401, body={"error": "Bad request signature."})

        try:
            event = classify(json.loads(body))
        except UnknownInteractionType as exc:
            log.error("interaction_type_unknown", interaction_type=exc.interaction_type)
            return _ok(responses.error_body(responses.UNKNOWN_TYPE))
        except ValueError as exc:
            # Covers malformed JSON, bad UTF-8 and InvalidInteractionPayload.
            log.warning("interaction_payload_invalid", error=str(exc))
            return DispatchResponse(status=400, body={"error": "Invalid interaction payload."})

        log = log.bind(interaction_id=event.interaction_id, kind=type(event).__name__)
        log.info("interaction_received")
        return self.dispatch(event, trace_id=trace_id, log=log)

    def dispatch(self, event: InboundEvent, *, trace_id: str | None = None, log=None) -> DispatchResponse:
        """Route an already verified and classified event."""

        log = log or logger
        if isinstance(event, Ping):
            return _ok(responses.pong())
        if isinstance(event, Command):
            return self._dispatch_command(event, trace_id, log)
        if isinstance(event, Autocomplete):
            return self._dispatch_autocomplete(event, log)
        if isinstance(event, ComponentActivation):
            return self._dispatch_component(event, trace_id, log)
        if isinstance(event, ModalSubmission):
            return self._dispatch_modal(event, trace_id, log)

        log.error("interaction_type_unknown")
        return _ok(responses.error_body(responses.UNKNOWN_TYPE))

    # Commands

    def _context(self, event: InboundEvent, state=None) -> InteractionContext:
        return InteractionContext(event, settings=self.settings, store=self.store, client=self.client, state=state)

    def _dispatch_command(self, event: Command, trace_id: str | None, log) -> DispatchResponse:
        entry = self.registry.find_command(event.command_type, event.name)
        if entry is None:
            log.info("command_unknown", command=event.name)
            return _ok(responses.error_body(responses.UNKNOWN_COMMAND))

        path = resolve_qualified_path(event.path)
        handler = entry.handlers.get(path)
        if handler is None:
            log.info("command_unresolved", command=event.name, path=path)
            return _ok(responses.error_body(responses.UNRESOLVED_COMMAND))

        ctx = self._context(event)
        return self._finalise(ctx, invoke(handler, ctx), trace_id, log.bind(command=event.name, path=path))

    def _dispatch_autocomplete(self, event: Autocomplete, log) -> DispatchResponse:
        no_choices = _ok(responses.autocomplete_result())

        path = resolve_qualified_path(event.path)
        handler = self.registry.autocomplete_handler(event.command_type, event.name, path)
        if handler is None:
            return no_choices

        try:
            # Choices may be a lazy iterable; materialise them inside the guard.
            result = responses.autocomplete_result(handler(self._context(event)) or ())
        except Exception:
            log.exception("autocomplete_failed", command=event.name, path=path)
            return no_choices
        return _ok(result)

    # Components and modals

    def _dispatch_component(self, event: ComponentActivation, trace_id: str | None, log) -> DispatchResponse:
        log = log.bind(custom_id=event.custom_id, component_type=event.component_type)
        if is_managed(event.custom_id):
            key = component_key(event.component_type, event.custom_id)
            return self._dispatch_stateful(
                event, key, self.registry.components, responses.UNKNOWN_COMPONENT, trace_id, log
            )
        return self._dispatch_static(
            event, self.registry.static_components, responses.UNKNOWN_COMPONENT, trace_id, log
        )

    def _dispatch_modal(self, event: ModalSubmission, trace_id: str | None, log) -> DispatchResponse:
        log = log.bind(custom_id=event.custom_id)
        if is_managed(event.custom_id):
            key = modal_key(event.custom_id)
            return self._dispatch_stateful(event, key, self.registry.modals, responses.UNKNOWN_MODAL, trace_id, log)
        return self._dispatch_static(event, self.registry.static_modals, responses.UNKNOWN_MODAL, trace_id, log)

    def _dispatch_static(
        self,
        event: ComponentActivation | ModalSubmission,
        families: Mapping[str, Handler],
        unknown_message: str,
        trace_id: str | None,
        log,
    ) -> DispatchResponse:
        parsed = parse_static_custom_id(event.custom_id)
        if parsed is None:
            log.error("interaction_type_unknown")
            return _ok(responses.error_body(responses.UNKNOWN_TYPE))

        handler = families.get(parsed[0])
        if handler is None:
            log.info("static_routing_unknown", routing_id=parsed[0])
            return _ok(responses.error_body(unknown_message))

        ctx = self._context(event)
        return self._finalise(ctx, invoke(handler, ctx), trace_id, log.bind(routing_id=parsed[0]))

    def _dispatch_stateful(
        self,
        event: ComponentActivation | ModalSubmission,
        key: str,
        families: Mapping[str, Handler],
        unknown_message: str,
        trace_id: str | None,
        log,
    ) -> DispatchResponse:
        try:
            state = self.store.get(key)
        except Exception:
            log.exception("routing_state_lookup_failed", key=key)
            return _ok(responses.error_body(responses.UNLUCKY_ERROR, status=500))

        if state is None:
            log.info("routing_state_missing", key=key)
            return _ok(responses.error_body(unknown_message))

        handler = families.get(state.routing_id)
        if handler is None:
            log.warning("routing_id_unknown", routing_id=state.routing_id)
            return _ok(responses.error_body(responses.UNKNOWN_ROUTING_ID))

        ctx = self._context(event, state)
        outcome = invoke(handler, ctx)
        log = log.bind(routing_id=state.routing_id)
        if isinstance(outcome, Replied) and state.once:
            self._forget(key, log)
        return self._finalise(ctx, outcome, trace_id, log)

    def _forget(self, key: str, log) -> None:
        # A concurrent duplicate may still have read the state; that race is accepted.
        try:
            self.store.delete(key)
        except Exception:
            log.warning("routing_state_delete_failed", key=key, exc_info=True)

    # Replies

    def _finalise(self, ctx: InteractionContext, outcome: Outcome, trace_id: str | None, log) -> DispatchResponse:
        if isinstance(outcome, Replied):
            task = None
            if outcome.deferred is not None:
                task = DeferredTask(outcome.deferred, trace_id=trace_id, tasks=self.tasks)
            return _ok(outcome.reply, task)

        if isinstance(outcome, ProviderFailure):
            translated = self.translator(ctx, outcome.error.raw)
            if translated:
                log.info("handler_discord_error", status=outcome.error.status, code=outcome.error.code)
                return _ok(translated)
            log.warning("handler_discord_error_untranslated", status=outcome.error.status, code=outcome.error.code)
        else:
            log.error("handler_failed", exc_info=outcome.error)

        return _ok(responses.error_body(responses.UNLUCKY_ERROR, status=500))
