from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any, TypeAlias, final

from middlechain._internal.configuration import ChainConfiguration
from middlechain._internal.exceptions import SchedulingError
from middlechain._internal.scheduling import schedule_next
from middlechain._internal.steps import as_step

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from middlechain._internal.steps import Step

TerminalContinuation: TypeAlias = Callable[..., Any]

logger = logging.getLogger("middlechain.chain")


@final
class ComposedHandler:
    """Handler that runs a fixed pipeline of steps for each request.

    Calling it as ``handler(request, response, done)`` dispatches the
    pipeline in order. Errors are carried past normal steps to the next
    error trap, and ``done`` receives whatever error is left once the
    pipeline is exhausted (``None`` on a clean run).
    """

    __slots__: tuple[str, ...] = ("_pending_tasks", "config", "pipeline")

    def __init__(
        self,
        pipeline: tuple[Step, ...],
        config: ChainConfiguration,
    ) -> None:
        self.pipeline: tuple[Step, ...] = pipeline
        self.config: ChainConfiguration = config
        self._pending_tasks: set[asyncio.Future[Any]] = set()

    def __call__(
        self,
        request: Any,  # noqa: ANN401
        response: Any,  # noqa: ANN401
        done: TerminalContinuation | None = None,
    ) -> None:
        _Invocation(self, request, response, done).advance()

    def __len__(self) -> int:
        return len(self.pipeline)

    def __repr__(self) -> str:
        names = ", ".join(step.name for step in self.pipeline)
        return f"{type(self).__name__}([{names}])"

    async def dispatch(self, request: Any, response: Any) -> Any:  # noqa: ANN401
        """Run the pipeline and return the error left at its end, if any."""
        loop = self.config.loop_factory()
        future: asyncio.Future[Any] = loop.create_future()

        def on_done(error: Any = None) -> None:  # noqa: ANN401
            if not future.done():
                future.set_result(error)

        self(request, response, on_done)
        return await future

    def track_task(self, task: asyncio.Future[Any]) -> None:
        self._pending_tasks.add(task)
        task.add_done_callback(self._pending_tasks.discard)


class _Invocation:
    """Dispatch state of a single handler call."""

    __slots__: tuple[str, ...] = (
        "cursor",
        "done",
        "finished",
        "handler",
        "pending",
        "request",
        "response",
        "running",
    )

    def __init__(
        self,
        handler: ComposedHandler,
        request: Any,  # noqa: ANN401
        response: Any,  # noqa: ANN401
        done: TerminalContinuation | None,
    ) -> None:
        self.handler: ComposedHandler = handler
        self.request: Any = request
        self.response: Any = response
        self.done: TerminalContinuation | None = done
        self.cursor: int = 0
        self.finished: bool = False
        self.running: bool = False
        # Error reported by the current step while ``advance`` is still on
        # the stack, wrapped so that a clean ``next()`` is distinguishable.
        self.pending: tuple[Any] | None = None

    def resume(self, error: Any = None) -> None:  # noqa: ANN401
        if self.running:
            self.pending = (error,)
            return
        self.advance(error)

    def advance(self, error: Any = None) -> None:  # noqa: ANN401
        self.running = True
        try:
            while True:
                step = self._take_step(error)
                if step is None:
                    self.finish(error)
                    return

                self.pending = None
                self._invoke(step, error)
                if self.pending is None:
                    return
                (error,) = self.pending
                self.pending = None
        finally:
            self.running = False

    def _take_step(self, error: Any) -> Step | None:  # noqa: ANN401
        pipeline = self.handler.pipeline
        while self.cursor < len(pipeline):
            position = self.cursor
            step = pipeline[position]
            self.cursor += 1
            if step.accepts(error):
                logger.debug("Invoking step %s at %d", step.name, position)
                return step
            logger.debug("Skipping step %s at %d", step.name, position)
        return None

    def _invoke(self, step: Step, error: Any) -> None:  # noqa: ANN401
        continuation = _StepContinuation(self, step)
        try:
            result = step.invoke(
                error,
                self.request,
                self.response,
                continuation,
            )
            if inspect.isawaitable(result):
                self._run_awaitable(result, continuation)
        except Exception as exc:  # noqa: BLE001
            continuation.fail(exc)

    def finish(self, error: Any) -> None:  # noqa: ANN401
        if self.finished:
            if error:
                logger.error(
                    "Error %r raised after the chain completed, dropping it",
                    error,
                    exc_info=error if isinstance(error, BaseException) else None,
                )
            return

        self.finished = True
        logger.debug("Chain exhausted after %d steps", self.cursor)
        if self.done is not None:
            self.done(error if error else None)

    def _run_awaitable(
        self,
        awaitable: Awaitable[Any],
        continuation: _StepContinuation,
    ) -> None:
        try:
            loop = self.handler.config.loop_factory()
        except RuntimeError as exc:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise SchedulingError from exc

        task = asyncio.ensure_future(awaitable, loop=loop)
        self.handler.track_task(task)
        task.add_done_callback(continuation.on_task_done)


class _StepContinuation:
    """One-shot ``next`` callback handed to a single step."""

    __slots__: tuple[str, ...] = ("called", "invocation", "step")

    def __init__(self, invocation: _Invocation, step: Step) -> None:
        self.invocation: _Invocation = invocation
        self.step: Step = step
        self.called: bool = False

    def __call__(self, error: Any = None) -> None:  # noqa: ANN401
        if self.called:
            logger.warning(
                "Step %s called next() more than once, ignoring the call",
                self.step.name,
            )
            return
        self.called = True
        config = self.invocation.handler.config
        try:
            schedule_next(
                self.invocation.resume,
                error,
                mode=config.resolve_mode(),
                loop_factory=config.loop_factory,
            )
        except SchedulingError as exc:
            self.invocation.resume(exc)

    def fail(self, exc: BaseException) -> None:
        if self.called:
            logger.error(
                "Step %s raised after calling next()",
                self.step.name,
                exc_info=exc,
            )
            return
        self.called = True
        self.invocation.resume(exc)

    def on_task_done(self, task: asyncio.Future[Any]) -> None:
        if task.cancelled():
            self.fail(asyncio.CancelledError())
            return
        exc = task.exception()
        if exc is not None:
            self.fail(exc)


def compose(
    *steps: Any,  # noqa: ANN401
    config: ChainConfiguration | None = None,
) -> ComposedHandler:
    """Build a handler from steps.

    Accepts either one iterable of steps or the steps themselves as
    positional arguments (detected by the first argument being callable).
    Called without steps it returns a handler that completes immediately.
    """
    items: Iterable[Any]
    if not steps or steps[0] is None:
        items = ()
    elif callable(steps[0]):
        items = steps
    elif len(steps) == 1:
        items = steps[0]
    else:
        msg = (
            "compose() takes either a single iterable of steps "
            "or the steps as positional arguments"
        )
        raise TypeError(msg)

    pipeline = tuple(as_step(item) for item in items)
    return ComposedHandler(pipeline, config or ChainConfiguration())
