"""Placeholder substitution shared by the notifiers.

Hook strings may reference ``$SNAPSHOT_ID``, ``$USER`` and ``$HOST``.
"""

from __future__ import annotations

from typing import Any

from envsnap.models.events import SnapshotEvent


def placeholders(event: SnapshotEvent) -> dict[str, str]:
    return {
        "$SNAPSHOT_ID": event.snapshot_id,
        "$USER": event.user or "",
        "$HOST": event.hostname or "",
    }


def substitute(text: str, event: SnapshotEvent) -> str:
    """Replace every placeholder in *text*.

    >>> from envsnap.models.events import SnapshotEvent
    >>> ev = SnapshotEvent(snapshot_id="env-1", user="ada", hostname="box")
    >>> substitute("$USER@$HOST made $SNAPSHOT_ID", ev)
    'ada@box made env-1'
    """
    for key, value in placeholders(event).items():
        text = text.replace(key, value)
    return text


def substitute_all(value: Any, event: SnapshotEvent) -> Any:
    """Recursively substitute placeholders in every string of a JSON value."""
    if isinstance(value, str):
        return substitute(value, event)
    if isinstance(value, dict):
        return {k: substitute_all(v, event) for k, v in value.items()}
    if isinstance(value, list):
        return [substitute_all(v, event) for v in value]
    return value
