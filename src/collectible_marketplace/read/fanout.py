from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Iterable
from typing import TypeVar

from ..models import PartialResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def gather_partial(awaitables: Iterable[Awaitable[T | None]]) -> PartialResult[T]:
    """
    Await all `awaitables` concurrently and keep only what resolved.

    A result of `None` or a raised exception counts as a failure; one failure never
    fails the batch. Input order is preserved in `items`.
    """
    results = await asyncio.gather(*awaitables, return_exceptions=True)
    out: PartialResult[T] = PartialResult()
    for result in results:
        if isinstance(result, BaseException):
            if isinstance(result, asyncio.CancelledError):
                raise result
            logger.warning("fan-out entry failed: %r", result)
            out.failures += 1
        elif result is None:
            out.failures += 1
        else:
            out.items.append(result)
    return out
