import logging
from typing import Any

import pytest

from middlechain import ErrorTrapStep, NormalStep, error_trap, normal_step
from middlechain._internal.steps import InertStep, as_step, get_arity
from middlechain.exceptions import StepSignatureError
from tests.conftest import Next


def three(req: Any, res: Any, next_: Next) -> None: ...


def four(err: Any, req: Any, res: Any, next_: Next) -> None: ...


def five(a: Any, b: Any, c: Any, d: Any, e: Any) -> None: ...


def with_default(req: Any, res: Any, next_: Next, extra: Any = None) -> None:
    ...


def variadic(*args: Any, **kwargs: Any) -> None: ...


class Middleware:
    def handle(self, req: Any, res: Any, next_: Next) -> None: ...

    def trap(self, err: Any, req: Any, res: Any, next_: Next) -> None: ...

    def __call__(self, req: Any, res: Any, next_: Next) -> None: ...


@pytest.mark.parametrize(
    ("func", "arity"),
    [
        (three, 3),
        (four, 4),
        (five, 5),
        (with_default, 3),
        (variadic, 0),
        (lambda req, res: None, 2),
        (Middleware().trap, 4),
        (Middleware(), 3),
    ],
)
def test_get_arity(func: Any, arity: int) -> None:
    assert get_arity(func) == arity


@pytest.mark.parametrize(
    ("func", "step_type"),
    [
        (three, NormalStep),
        (four, ErrorTrapStep),
        (with_default, NormalStep),
        (variadic, NormalStep),
        (lambda: None, NormalStep),
        (Middleware().handle, NormalStep),
        (Middleware().trap, ErrorTrapStep),
        (Middleware(), NormalStep),
    ],
)
def test_as_step_classifies_by_arity(func: Any, step_type: type) -> None:
    step = as_step(func)
    assert type(step) is step_type
    assert step.func is func


def test_as_step_keeps_explicit_variants() -> None:
    normal = NormalStep(variadic)
    trap = ErrorTrapStep(variadic)
    assert as_step(normal) is normal
    assert as_step(trap) is trap


def test_as_step_rejects_non_callable() -> None:
    with pytest.raises(StepSignatureError, match="not callable") as exc_info:
        as_step("not a step")
    assert exc_info.value.step == "not a step"


def test_wide_signature_is_never_run(
    caplog: pytest.LogCaptureFixture,
) -> None:
    with caplog.at_level(logging.WARNING, logger="middlechain.steps"):
        step = as_step(five)

    assert type(step) is InertStep
    assert not step.accepts(None)
    assert not step.accepts("E")
    assert "will never run" in caplog.text


def test_accepts() -> None:
    normal = NormalStep(three)
    trap = ErrorTrapStep(four)
    assert normal.accepts(None)
    assert not normal.accepts("E")
    assert not trap.accepts(None)
    assert trap.accepts(ValueError())


def test_decorated_functions_stay_callable() -> None:
    @normal_step
    def handle(req: Any, res: Any, next_: Next) -> Any:
        return req, res

    @error_trap
    def recover(err: Any, req: Any, res: Any, next_: Next) -> Any:
        return err

    assert isinstance(handle, NormalStep)
    assert isinstance(recover, ErrorTrapStep)
    assert handle("req", "res", None) == ("req", "res")
    assert recover("E", "req", "res", None) == "E"
    assert recover.name.endswith("recover")


def test_step_name_falls_back_to_repr() -> None:
    class Anonymous:
        def __call__(self, req: Any, res: Any, next_: Next) -> None: ...

        def __repr__(self) -> str:
            return "<anonymous>"

    assert NormalStep(Anonymous()).name == "<anonymous>"
