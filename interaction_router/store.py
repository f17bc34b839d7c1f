"""Persisted routing state for managed component and modal custom ids.

Handlers that need a stateful callback emit a component or modal whose
``custom_id`` carries the managed prefix and store a :class:`RoutingState`
under a key derived from it. When Discord later sends the activation or
submission, the dispatcher reads the state back to pick the handler family
and hands the payload to the handler. Ids without the prefix never reach
the store.
"""

from __future__ import annotations

import json
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any, Dict, Protocol

from pydantic import BaseModel, Field
from sqlalchemy import delete, select

from interaction_router.db import session_scope
from interaction_router.models import RoutingStateRecord

MANAGED_PREFIX = "t_"
STATIC_PREFIX = "a_"
# Discord caps custom ids at 100 characters.
MAX_CUSTOM_ID_LENGTH = 100


class RoutingState(BaseModel):
    """Routing metadata stored for one managed custom id."""

    routing_id: str
    once: bool = False
    payload: Dict[str, Any] = Field(default_factory=dict)


class CallbackStore(Protocol):
    def get(self, key: str) -> RoutingState | None: ...

    def put(self, key: str, state: RoutingState, ttl: int | None = None) -> None: ...

    def delete(self, key: str) -> None: ...


def is_managed(custom_id: str) -> bool:
    return custom_id.startswith(MANAGED_PREFIX)


def new_managed_id() -> str:
    """Return a fresh custom id that routes through the store."""

    return f"{MANAGED_PREFIX}{secrets.token_urlsafe(16)}"


def static_custom_id(routing_id: str, suffix: str = "") -> str:
    """Build a custom id routed by convention to a static handler family."""

    if "_" in routing_id:
        raise ValueError("Static routing ids cannot contain underscores.")
    custom_id = f"{STATIC_PREFIX}{routing_id}_{suffix}"
    if len(custom_id) > MAX_CUSTOM_ID_LENGTH:
        raise ValueError("Custom id exceeds 100 characters.")
    return custom_id


def parse_static_custom_id(custom_id: str) -> tuple[str, str] | None:
    """Return ``(routing_id, suffix)`` for a static custom id, else None."""

    if not custom_id.startswith(STATIC_PREFIX):
        return None
    routing_id, _, suffix = custom_id[len(STATIC_PREFIX):].partition("_")
    if not routing_id:
        return None
    return routing_id, suffix


def component_key(component_type: int, custom_id: str) -> str:
    # Two component kinds may share a custom id, so the type is part of the key.
    return f"component-{int(component_type)}-{custom_id}"


def modal_key(custom_id: str) -> str:
    return f"modal-{custom_id}"


class SqlCallbackStore:
    """Callback store backed by the ``routing_states`` table."""

    def __init__(self, *, clock=None) -> None:
        self._clock = clock or (lambda: datetime.now(UTC))

    def _now(self) -> datetime:
        return self._clock()

    def get(self, key: str) -> RoutingState | None:
        with session_scope() as session:
            record = session.get(RoutingStateRecord, key)
            if record is None:
                return None
            if record.expires_at is not None and _aware(record.expires_at) <= self._now():
                return None
            return RoutingState.model_validate(json.loads(record.value_json))

    def put(self, key: str, state: RoutingState, ttl: int | None = None) -> None:
        if ttl is not None and ttl <= 0:
            raise ValueError("ttl must be a positive number of seconds.")
        expires_at = self._now() + timedelta(seconds=ttl) if ttl is not None else None
        value_json = state.model_dump_json()
        with session_scope() as session:
            record = session.get(RoutingStateRecord, key)
            if record is None:
                session.add(RoutingStateRecord(key=key, value_json=value_json, expires_at=expires_at))
            else:
                record.value_json = value_json
                record.expires_at = expires_at

    def delete(self, key: str) -> None:
        with session_scope() as session:
            session.execute(delete(RoutingStateRecord).where(RoutingStateRecord.key == key))

    def purge_expired(self) -> int:
        """Delete every expired row and return how many were removed."""

        now = self._now()
        with session_scope() as session:
            keys = session.execute(
                select(RoutingStateRecord.key).where(RoutingStateRecord.expires_at <= now)
            ).scalars().all()
            if keys:
                session.execute(delete(RoutingStateRecord).where(RoutingStateRecord.key.in_(keys)))
            return len(keys)


def _aware(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back out.
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def store_component_state(
    store: CallbackStore,
    *,
    component_type: int,
    routing_id: str,
    once: bool = False,
    payload: Dict[str, Any] | None = None,
    ttl: int | None = None,
    custom_id: str | None = None,
) -> str:
    """Persist routing state for a new component and return its custom id."""

    custom_id = custom_id or new_managed_id()
    if not is_managed(custom_id):
        raise ValueError(f"Stateful custom ids must start with {MANAGED_PREFIX!r}.")
    state = RoutingState(routing_id=routing_id, once=once, payload=payload or {})
    store.put(component_key(component_type, custom_id), state, ttl)
    return custom_id


def store_modal_state(
    store: CallbackStore,
    *,
    routing_id: str,
    once: bool = False,
    payload: Dict[str, Any] | None = None,
    ttl: int | None = None,
    custom_id: str | None = None,
) -> str:
    """Persist routing state for a new modal and return its custom id."""

    custom_id = custom_id or new_managed_id()
    if not is_managed(custom_id):
        raise ValueError(f"Stateful custom ids must start with {MANAGED_PREFIX!r}.")
    state = RoutingState(routing_id=routing_id, once=once, payload=payload or {})
    store.put(modal_key(custom_id), state, ttl)
    return custom_id
