import asyncio
from timeit import timeit
from typing import Any

from middlechain import (
    ChainConfiguration,
    ComposedHandler,
    SchedulingMode,
    compose,
)

PIPELINE_SIZE = 20


def passthrough(_req: Any, _res: Any, next_: Any) -> None:
    next_()


def fail(_req: Any, _res: Any, next_: Any) -> None:
    next_("failed")


def recover(_err: Any, _req: Any, _res: Any, next_: Any) -> None:
    next_()


def build_handlers(config: ChainConfiguration) -> dict[str, ComposedHandler]:
    steps = [passthrough] * PIPELINE_SIZE
    return {
        "success": compose(steps, config=config),
        "error_skip": compose([fail, *steps, recover], config=config),
    }


def direct_case(handler: ComposedHandler) -> None:
    handler("req", "res")


async def deferred_case(handler: ComposedHandler, rounds: int) -> None:
    for _ in range(rounds):
        error = await handler.dispatch("req", "res")
        assert error is None


def dispatch_measure() -> dict[str, dict[str, float]]:
    results: dict[str, float] = {}
    config = ChainConfiguration(mode=SchedulingMode.DIRECT)
    for k, handler in build_handlers(config).items():
        globs = {"direct_case": direct_case, "handler": handler}
        results[f"direct_{k}"] = timeit(
            "direct_case(handler)",
            globals=globs,
            number=10_000,
        )

    config = ChainConfiguration(mode=SchedulingMode.DEFERRED)
    for k, handler in build_handlers(config).items():
        globs = {
            "asyncio": asyncio,
            "deferred_case": deferred_case,
            "handler": handler,
        }
        results[f"deferred_{k}"] = timeit(
            "asyncio.run(deferred_case(handler, 1000))",
            globals=globs,
            number=10,
        )
    results = dict(sorted(results.items(), key=lambda item: item[1]))
    return {"dispatch": results}
