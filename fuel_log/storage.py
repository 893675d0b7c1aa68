"""
Snapshot persistence.

The whole ``AppState`` lives as JSON text in one ``StateSnapshot`` row. It is
read and normalized at the start of every edit and rewritten wholesale after
it, inside one transaction with the row locked.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Callable, Optional, Tuple, Union

from django.conf import settings
from django.db import transaction

from .domain import AppState
from .models import StateSnapshot
from .normalize import RawState, normalize

logger = logging.getLogger(__name__)

Outcome = Union[AppState, Tuple[AppState, Any]]


def state_key() -> str:
    return getattr(settings, "FUEL_LOG_STATE_KEY", "fuel-log-state-v1")


def dumps(state: AppState) -> str:
    return json.dumps(state.as_dict(), ensure_ascii=False)


def _write(key: str, blob: str) -> None:
    StateSnapshot.objects.update_or_create(key=key, defaults={"blob": blob})


def _load_locked(key: str) -> AppState:
    StateSnapshot.objects.get_or_create(key=key)
    row = StateSnapshot.objects.select_for_update().get(key=key)
    state = normalize(row.blob)
    blob = dumps(state)
    if row.blob != blob:
        if not row.blob:
            logger.info("Creating state snapshot %r", key)
        else:
            logger.info("Rewriting state snapshot %r in normalized form", key)
        row.blob = blob
        row.save(update_fields=["blob", "updated_at"])
    return state


def load_state(key: Optional[str] = None) -> AppState:
    with transaction.atomic():
        return _load_locked(key or state_key())


def save_state(state: AppState, key: Optional[str] = None) -> None:
    _write(key or state_key(), dumps(state))


def replace_state(raw: RawState, key: Optional[str] = None) -> AppState:
    """Normalize an externally supplied snapshot and store it in place of the current one."""
    state = normalize(raw)
    with transaction.atomic():
        save_state(state, key)
    logger.info(
        "Imported state snapshot: %d work logs, %d drivers, %d trucks, %d trailers",
        len(state.work_logs),
        len(state.drivers),
        len(state.trucks),
        len(state.trailers),
    )
    return state


def update_state(change: Callable[[AppState], Outcome], key: Optional[str] = None) -> Tuple[AppState, Any]:
    """
    Apply one transition to the stored state.

    ``change`` is a store function bound to its arguments; it returns either
    the new state or ``(new_state, created_entity)``. The snapshot is only
    written when the state actually changed. Returns ``(state, entity)``,
    ``entity`` being ``None`` for plain transitions.
    """
    key = key or state_key()
    with transaction.atomic():
        state = _load_locked(key)
        outcome = change(state)
        if isinstance(outcome, AppState):
            new_state, entity = outcome, None
        else:
            new_state, entity = outcome
        if new_state is not state:
            save_state(new_state, key)
    return new_state, entity
