class BaseMiddlechainError(Exception):
    pass


class StepSignatureError(BaseMiddlechainError, TypeError):
    """Raised when an object cannot be used as a pipeline step."""

    def __init__(self, step: object, reason: str) -> None:
        self.step: object = step
        self.reason: str = reason
        super().__init__(f"Cannot use {step!r} as a step: {reason}")


class SchedulingError(BaseMiddlechainError, RuntimeError):
    """Raised when deferred dispatch is requested without a running loop."""

    def __init__(
        self,
        msg: str = (
            "Deferred scheduling needs a running event loop, "
            "call the handler from inside a coroutine or "
            "switch back with set_scheduling_mode(False)"
        ),
    ) -> None:
        super().__init__(msg)
