"""
coinvault.errors — Error Taxonomy & Operation Boundary
=======================================================

Services raise the typed errors below; the :func:`economy_action` decorator
sits on every public operation and turns the outcome into an
:class:`ActionResult`, so nothing raises across the service boundary.

Anything that is not an :class:`EconomyError` is logged with its traceback
and surfaced as a generic :class:`InternalError`.  The original exception
stays attached as ``cause`` for operators; the caller-visible message never
mentions it.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, ClassVar, Generic, ParamSpec, TypeVar

from coinvault.constants import MSG_INTERNAL

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


# ---------------------------------------------------------------------------
# Taxonomy
# ---------------------------------------------------------------------------
class EconomyError(Exception):
    """Base for every failure an operation can report to its caller."""

    kind: ClassVar[str] = "internal"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "message": self.message}


class AuthenticationError(EconomyError):
    """No caller identity."""
    kind = "authentication"


class AuthorizationError(EconomyError):
    """Caller lacks the admin/creator role."""
    kind = "authorization"


class NotFoundError(EconomyError):
    """Entity missing, or filtered out by an ownership/state predicate."""
    kind = "not_found"


class ValidationError(EconomyError):
    """A business rule refused the operation."""
    kind = "validation"


class InternalError(EconomyError):
    """Unexpected collaborator failure."""
    kind = "internal"

    def __init__(
        self, message: str = MSG_INTERNAL, *, cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.cause = cause

    def to_log_dict(self) -> dict[str, Any]:
        """Operator-facing view, including the hidden cause."""
        return {
            "kind": self.kind,
            "message": self.message,
            "cause_type": type(self.cause).__name__ if self.cause else None,
            "cause": str(self.cause) if self.cause else None,
        }


# ---------------------------------------------------------------------------
# Result envelope
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ActionResult(Generic[T]):
    """Outcome of a public operation: either ``data`` or ``error``."""

    data: T | None = None
    error: EconomyError | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    @classmethod
    def ok(cls, data: T | None = None) -> ActionResult[T]:
        return cls(data=data)

    @classmethod
    def fail(cls, error: EconomyError) -> ActionResult[T]:
        return cls(error=error)


def economy_action(func: Callable[P, T]) -> Callable[P, ActionResult[T]]:
    """Wrap a service operation so it returns an :class:`ActionResult`."""

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> ActionResult[T]:
        try:
            return ActionResult.ok(func(*args, **kwargs))
        except InternalError as exc:
            logger.error("%s failed: %s", func.__qualname__, exc.to_log_dict())
            return ActionResult.fail(InternalError(cause=exc.cause))
        except EconomyError as exc:
            logger.info("%s refused (%s): %s", func.__qualname__, exc.kind, exc.message)
            return ActionResult.fail(exc)
        except Exception as exc:
            logger.exception("Unexpected error in %s", func.__qualname__)
            return ActionResult.fail(InternalError(cause=exc))

    return wrapper
