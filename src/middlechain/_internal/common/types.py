import asyncio
from collections.abc import Callable
from typing import TypeAlias

LoopFactory: TypeAlias = Callable[[], asyncio.AbstractEventLoop]
