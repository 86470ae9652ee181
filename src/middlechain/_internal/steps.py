from __future__ import annotations

import inspect
import logging
from abc import ABCMeta, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeAlias, final

from typing_extensions import override

from middlechain._internal.exceptions import StepSignatureError

Next: TypeAlias = Callable[..., None]
NormalFunc: TypeAlias = Callable[[Any, Any, Next], Any]
ErrorTrapFunc: TypeAlias = Callable[[Any, Any, Any, Next], Any]

logger = logging.getLogger("middlechain.steps")

ERROR_TRAP_ARITY = 4
_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


class BaseStep(metaclass=ABCMeta):
    __slots__: tuple[str, ...] = ()

    func: Callable[..., Any]

    @property
    def name(self) -> str:
        return getattr(self.func, "__qualname__", None) or repr(self.func)

    @abstractmethod
    def accepts(self, error: Any) -> bool:  # noqa: ANN401
        """Whether the step runs while ``error`` is the carried error."""

    @abstractmethod
    def invoke(
        self,
        error: Any,  # noqa: ANN401
        request: Any,  # noqa: ANN401
        response: Any,  # noqa: ANN401
        next_: Next,
    ) -> Any:  # noqa: ANN401
        pass


@final
@dataclass(slots=True, frozen=True)
class NormalStep(BaseStep):
    """Step called as ``func(request, response, next)``."""

    func: NormalFunc

    def __call__(self, request: Any, response: Any, next_: Next) -> Any:  # noqa: ANN401
        return self.func(request, response, next_)

    @override
    def accepts(self, error: Any) -> bool:
        return not error

    @override
    def invoke(
        self,
        error: Any,
        request: Any,
        response: Any,
        next_: Next,
    ) -> Any:
        return self.func(request, response, next_)


@final
@dataclass(slots=True, frozen=True)
class ErrorTrapStep(BaseStep):
    """Step called as ``func(error, request, response, next)``.

    It only runs while an error is being carried through the chain and may
    clear it by calling ``next()`` without arguments.
    """

    func: ErrorTrapFunc

    def __call__(
        self,
        error: Any,  # noqa: ANN401
        request: Any,  # noqa: ANN401
        response: Any,  # noqa: ANN401
        next_: Next,
    ) -> Any:  # noqa: ANN401
        return self.func(error, request, response, next_)

    @override
    def accepts(self, error: Any) -> bool:
        return bool(error)

    @override
    def invoke(
        self,
        error: Any,
        request: Any,
        response: Any,
        next_: Next,
    ) -> Any:
        return self.func(error, request, response, next_)


@final
@dataclass(slots=True, frozen=True)
class InertStep(BaseStep):
    """Step whose signature fits neither calling convention.

    It is kept in the pipeline so positions stay stable but never runs.
    """

    func: Callable[..., Any]

    @override
    def accepts(self, error: Any) -> bool:
        return False

    @override
    def invoke(
        self,
        error: Any,
        request: Any,
        response: Any,
        next_: Next,
    ) -> Any:
        msg = f"{self.name} takes neither (request, response, next) nor "
        msg += "(error, request, response, next)"
        raise TypeError(msg)


Step: TypeAlias = NormalStep | ErrorTrapStep | InertStep


def normal_step(func: NormalFunc) -> NormalStep:
    return NormalStep(func)


def error_trap(func: ErrorTrapFunc) -> ErrorTrapStep:
    return ErrorTrapStep(func)


def get_arity(func: Callable[..., Any]) -> int:
    """Count the required positional parameters of ``func``."""
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        return 0
    return sum(
        1
        for param in sig.parameters.values()
        if param.kind in _POSITIONAL and param.default is param.empty
    )


def as_step(obj: object) -> Step:
    if isinstance(obj, (NormalStep, ErrorTrapStep, InertStep)):
        return obj
    if not callable(obj):
        raise StepSignatureError(obj, "object is not callable")

    arity = get_arity(obj)
    if arity == ERROR_TRAP_ARITY:
        return ErrorTrapStep(obj)
    if arity > ERROR_TRAP_ARITY:
        logger.warning(
            "Step %r takes %d positional parameters and will never run",
            obj,
            arity,
        )
        return InertStep(obj)
    return NormalStep(obj)
