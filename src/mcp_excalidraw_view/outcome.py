"""
Outcome values for best-effort operations.

Decoding, rendering, screenshots, persistence and host calls are allowed to
fail without affecting the session. Each of them returns an ``Outcome``
instead of raising, and ``report`` is the single place deciding which
failures are silent and which are logged.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class FailureKind(str, Enum):
    DECODE = "decode"
    RENDER = "render"
    SCREENSHOT = "screenshot"
    PERSISTENCE = "persistence"
    HOST = "host"
    VIEW = "view"


# None = silent
POLICY: dict[FailureKind, Optional[int]] = {
    FailureKind.DECODE: None,
    FailureKind.RENDER: logging.DEBUG,
    FailureKind.SCREENSHOT: logging.DEBUG,
    FailureKind.PERSISTENCE: logging.DEBUG,
    FailureKind.HOST: logging.ERROR,
    FailureKind.VIEW: logging.ERROR,
}


@dataclass(frozen=True)
class Outcome:
    value: Any = None
    error: Optional[BaseException] = None
    kind: Optional[FailureKind] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any = None) -> "Outcome":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: FailureKind, error: BaseException) -> "Outcome":
        return cls(error=error, kind=kind)


def attempt(kind: FailureKind, fn: Callable[..., Any], *args, **kwargs) -> Outcome:
    """Run ``fn`` and capture any exception as a failed outcome of ``kind``."""
    try:
        return Outcome.success(fn(*args, **kwargs))
    except Exception as e:
        return Outcome.failure(kind, e)


def report(outcome: Outcome, context: str) -> Outcome:
    """Log a failed outcome according to POLICY and hand it back."""
    if outcome.ok or outcome.kind is None:
        return outcome
    level = POLICY.get(outcome.kind)
    if level is not None:
        logger.log(level, "%s failed (%s): %s", context, outcome.kind.value, outcome.error)
    return outcome
