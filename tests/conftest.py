from collections.abc import Callable, Iterator
from typing import Any

import pytest

from middlechain import set_scheduling_mode

Next = Callable[..., None]


@pytest.fixture(autouse=True)
def _restore_scheduling_mode() -> Iterator[None]:
    yield
    set_scheduling_mode(False)


@pytest.fixture
def calls() -> list[str]:
    return []


def create_step(
    calls: list[str],
    name: str,
    *,
    error: Any = None,
) -> Callable[[Any, Any, Next], None]:
    def step(request: Any, response: Any, next_: Next) -> None:
        calls.append(name)
        next_(error)

    step.__qualname__ = name
    return step


def create_trap(
    calls: list[str],
    name: str,
    *,
    error: Any = None,
) -> Callable[[Any, Any, Any, Next], None]:
    def trap(err: Any, request: Any, response: Any, next_: Next) -> None:
        calls.append(f"{name}:{err}")
        next_(error)

    trap.__qualname__ = name
    return trap


def create_raiser(
    calls: list[str],
    name: str,
    exc: Exception,
) -> Callable[[Any, Any, Next], None]:
    def step(request: Any, response: Any, next_: Next) -> None:
        calls.append(name)
        raise exc

    step.__qualname__ = name
    return step
