"""Middleware composition for request pipelines.

This module exposes ``compose``, which turns an ordered list of
``(request, response, next)`` steps into a single handler, the step
variants used to tell normal steps from error traps, and the process-wide
switch between direct and deferred continuation dispatch.
"""

from importlib.metadata import version as get_version

from middlechain._internal.chain import ComposedHandler, compose
from middlechain._internal.configuration import ChainConfiguration
from middlechain._internal.scheduling import (
    SchedulingMode,
    get_scheduling_mode,
    set_scheduling_mode,
)
from middlechain._internal.steps import (
    ErrorTrapStep,
    NormalStep,
    Step,
    error_trap,
    normal_step,
)

__version__ = get_version("middlechain")
__all__ = (
    "ChainConfiguration",
    "ComposedHandler",
    "ErrorTrapStep",
    "NormalStep",
    "SchedulingMode",
    "Step",
    "compose",
    "error_trap",
    "get_scheduling_mode",
    "normal_step",
    "set_scheduling_mode",
)
