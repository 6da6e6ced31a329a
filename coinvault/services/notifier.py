"""
coinvault.services.notifier — Fire-and-Forget Notifications
============================================================

Push, e-mail, and feed side effects belong to other systems.  The economy
only calls a :class:`Notifier` *after* its transaction has committed, through
:func:`notify_safely`, so a broken collaborator is logged and never rolls
back or blocks a ledger mutation.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def challenge_approved(self, user_id: str, challenge_title: str, coins: int) -> None: ...

    def challenge_rejected(
        self, user_id: str, challenge_title: str, reason: str | None,
    ) -> None: ...

    def claim_cancelled(self, user_id: str, reward_name: str, coins: int) -> None: ...

    def coins_granted(self, user_id: str, amount: int, description: str) -> None: ...


class LoggingNotifier:
    """Default notifier: records the event in the application log."""

    def challenge_approved(self, user_id: str, challenge_title: str, coins: int) -> None:
        logger.info("notify %s: challenge %r approved (+%d)", user_id, challenge_title, coins)

    def challenge_rejected(
        self, user_id: str, challenge_title: str, reason: str | None,
    ) -> None:
        logger.info("notify %s: challenge %r rejected (%s)", user_id, challenge_title, reason)

    def claim_cancelled(self, user_id: str, reward_name: str, coins: int) -> None:
        logger.info("notify %s: claim for %r cancelled (+%d)", user_id, reward_name, coins)

    def coins_granted(self, user_id: str, amount: int, description: str) -> None:
        logger.info("notify %s: granted %d coins (%s)", user_id, amount, description)


_default_notifier = LoggingNotifier()


def get_default_notifier() -> Notifier:
    return _default_notifier


def notify_safely(callback: Callable[..., Any], *args: Any) -> None:
    """Invoke *callback*; log and drop any exception it raises."""
    try:
        callback(*args)
    except Exception:
        logger.exception(
            "Notification %s failed; ledger change already committed",
            getattr(callback, "__name__", repr(callback)),
        )
