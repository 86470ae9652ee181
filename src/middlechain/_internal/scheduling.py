from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, unique
from typing import TYPE_CHECKING, Any

from middlechain._internal.exceptions import SchedulingError

if TYPE_CHECKING:
    from collections.abc import Callable

    from middlechain._internal.common.types import LoopFactory

logger = logging.getLogger("middlechain.scheduling")


@unique
class SchedulingMode(str, Enum):
    DIRECT = "direct"
    DEFERRED = "deferred"


@dataclass(slots=True)
class _Settings:
    mode: SchedulingMode = SchedulingMode.DIRECT


# Process-wide and shared by every handler that does not pin its own mode.
# Read on each continuation, last write wins.
_settings = _Settings()


def set_scheduling_mode(flag: object) -> None:
    """Select deferred (truthy ``flag``) or direct continuation dispatch."""
    mode = SchedulingMode.DEFERRED if flag else SchedulingMode.DIRECT
    if mode is not _settings.mode:
        logger.debug("Scheduling mode switched to %s", mode.value)
    _settings.mode = mode


def get_scheduling_mode() -> SchedulingMode:
    return _settings.mode


def schedule_next(
    next_: Callable[[Any], None],
    error: Any,  # noqa: ANN401
    *,
    mode: SchedulingMode,
    loop_factory: LoopFactory,
) -> None:
    if mode is SchedulingMode.DIRECT:
        next_(error)
        return

    try:
        loop = loop_factory()
    except RuntimeError as exc:
        raise SchedulingError from exc
    loop.call_soon(_run_guarded, next_, error)


def _run_guarded(next_: Callable[[Any], None], error: Any) -> None:  # noqa: ANN401
    try:
        next_(error)
    except Exception as exc:  # noqa: BLE001
        next_(exc)
