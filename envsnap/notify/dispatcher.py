"""NotificationDispatcher: fans snapshot events out to every notifier.

Each new snapshot is announced through every configured hook.  A hook
that fails is logged and the remaining hooks still run; only a snapshot
that no hook could announce is reported as an error.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

import httpx

from envsnap.models.config import HookConfig, HookType
from envsnap.models.events import SnapshotEvent
from envsnap.notify import Notifier
from envsnap.notify.shell import ShellHookNotifier
from envsnap.notify.webhook import ChatWebhookNotifier, WebhookNotifier

logger = logging.getLogger(__name__)


class NotificationDispatchError(RuntimeError):
    """Raised when no notifier could announce a snapshot.

    ``failures`` lists ``(notifier_name, reason)`` for every hook that failed.
    """

    def __init__(self, event: SnapshotEvent, failures: list[tuple[str, str]]) -> None:
        self.snapshot_id = event.snapshot_id
        self.failures = list(failures)
        reasons = "; ".join(f"{name}: {reason}" for name, reason in self.failures)
        super().__init__(
            f"Snapshot {event.snapshot_id} ({describe_files(event)}) was not announced: {reasons}"
        )


def describe_files(event: SnapshotEvent) -> str:
    return ", ".join(event.files) or "no files"


class NotificationDispatcher:
    """Announces snapshots through the hooks built from the project config.

    ``SnapshotEngine.from_context`` builds one from ``hooks`` via
    ``build_notifiers``; tests register notifiers directly.
    """

    def __init__(self, notifiers: Iterable[Notifier] = ()) -> None:
        self._notifiers: list[Notifier] = []
        for notifier in notifiers:
            self.register(notifier)

    # ------------------------------------------------------------------
    # Notifier management
    # ------------------------------------------------------------------

    def register(self, notifier: Notifier) -> None:
        """Register a notifier.  Registering the same instance twice is ignored."""
        if notifier not in self._notifiers:
            self._notifiers.append(notifier)
            logger.debug("Registered notifier: %s", notifier.notifier_name)

    def unregister(self, notifier: Notifier) -> None:
        try:
            self._notifiers.remove(notifier)
        except ValueError:
            pass

    @property
    def notifiers(self) -> list[Notifier]:
        """Return a copy of the registered notifier list."""
        return list(self._notifiers)

    def close(self) -> None:
        for notifier in self._notifiers:
            close = getattr(notifier, "close", None)
            if callable(close):
                close()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, event: SnapshotEvent) -> list[str]:
        """Announce a snapshot through every registered notifier.

        Returns the names of the notifiers that announced it.  A snapshot
        that at least one notifier announced counts as delivered; the
        failed hooks are only logged.

        Raises
        ------
        NotificationDispatchError
            No notifier announced the snapshot.
        """
        if not self._notifiers:
            logger.debug("Snapshot %s: no notification hooks configured", event.snapshot_id)
            return []

        announced: list[str] = []
        failures: list[tuple[str, str]] = []
        for notifier in self._notifiers:
            reason = _announce(notifier, event)
            if reason is None:
                announced.append(notifier.notifier_name)
            else:
                failures.append((notifier.notifier_name, reason))

        if not announced:
            raise NotificationDispatchError(event, failures)
        if failures:
            logger.warning(
                "Snapshot %s (%s) announced by %s; failed hooks: %s",
                event.snapshot_id,
                describe_files(event),
                ", ".join(announced),
                ", ".join(name for name, _ in failures),
            )
        return announced


def _announce(notifier: Notifier, event: SnapshotEvent) -> str | None:
    """Run one notifier; return its failure reason, or ``None`` on success."""
    try:
        notifier.notify(event)
    except Exception as exc:  # noqa: BLE001
        logger.error(
            "Hook %s failed to announce snapshot %s: %s",
            notifier.notifier_name,
            event.snapshot_id,
            exc,
        )
        return str(exc) or type(exc).__name__
    return None


def build_notifiers(
    hooks: Iterable[HookConfig],
    *,
    cwd: Path | None = None,
    timeout: float = 10.0,
    client: httpx.Client | None = None,
) -> list[Notifier]:
    """Build notifiers from ``hooks`` config entries.

    Entries missing their target (a shell hook without ``command``, a
    webhook without ``url``) are skipped with a warning.
    """
    notifiers: list[Notifier] = []
    for hook in hooks:
        if hook.type == HookType.SHELL:
            if not hook.command:
                logger.warning("Skipping shell hook without a command")
                continue
            notifiers.append(ShellHookNotifier(hook.command, cwd))
        elif hook.type == HookType.WEBHOOK:
            if not hook.url:
                logger.warning("Skipping webhook hook without a url")
                continue
            notifiers.append(
                WebhookNotifier(hook.url, hook.body, client=client, timeout=timeout)
            )
        else:
            if not hook.webhook:
                logger.warning("Skipping %s hook without a webhook url", hook.type.value)
                continue
            message = {
                HookType.SLACK: hook.message,
                HookType.DISCORD: hook.content,
                HookType.TEAMS: hook.text,
            }[hook.type] or ""
            notifiers.append(
                ChatWebhookNotifier(
                    hook.type, hook.webhook, message, client=client, timeout=timeout
                )
            )
    return notifiers
