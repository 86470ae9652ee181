from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING

from middlechain._internal.scheduling import get_scheduling_mode

if TYPE_CHECKING:
    from middlechain._internal.common.types import LoopFactory
    from middlechain._internal.scheduling import SchedulingMode


@dataclass(slots=True, kw_only=True, frozen=True)
class ChainConfiguration:
    """Per-handler dispatch settings.

    ``mode`` pins the scheduling mode of one handler. Left as ``None`` the
    handler follows the process-wide mode set by ``set_scheduling_mode``.
    ``loop_factory`` supplies the event loop used for deferred continuations
    and for coroutine steps.
    """

    mode: SchedulingMode | None = None
    loop_factory: LoopFactory = asyncio.get_running_loop

    def resolve_mode(self) -> SchedulingMode:
        if self.mode is None:
            return get_scheduling_mode()
        return self.mode
