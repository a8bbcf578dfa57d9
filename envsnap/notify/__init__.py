"""Notifier protocol for post-snapshot notifications.

All notifiers implement the ``Notifier`` protocol: a ``notifier_name``
property and a ``notify(event)`` method.  The dispatcher calls ``notify``
on every registered notifier for every dispatched event.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from envsnap.models.events import SnapshotEvent


@runtime_checkable
class Notifier(Protocol):
    """Protocol that every notification target must implement.

    Attributes
    ----------
    notifier_name : str
        A human-readable identifier (e.g. ``"shell"``, ``"slack"``).
    """

    @property
    def notifier_name(self) -> str:
        """Return the name of this notifier."""
        ...

    def notify(self, event: SnapshotEvent) -> None:
        """Deliver *event*.

        May raise on failure; the dispatcher logs the error and moves on
        to the next notifier.
        """
        ...
