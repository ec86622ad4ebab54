"""Race a blocking provider call against a deadline.

Every tiered call goes through :func:`run_with_timeout`, which never raises
for provider problems; it hands back an :class:`Outcome` tagged ``success``,
``timeout`` or ``error``. A call that loses the race keeps running in its
worker thread and its eventual result is thrown away.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Literal, Optional, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Outcome(Generic[T]):
    status: Literal["success", "timeout", "error"]
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status == "success"


def _drain(task: "asyncio.Future[Any]", label: str) -> None:
    # Consume the late result so asyncio does not warn about it
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        log.debug("%s finished after its deadline with %s", label, type(exc).__name__)
    else:
        log.debug("%s finished after its deadline; result discarded", label)


async def run_with_timeout(
    fn: Callable[..., T],
    *args: Any,
    timeout_s: float,
    label: str = "provider call",
) -> Outcome[T]:
    task = asyncio.ensure_future(asyncio.to_thread(fn, *args))
    done, _ = await asyncio.wait({task}, timeout=timeout_s)

    if not done:
        task.add_done_callback(lambda t: _drain(t, label))
        log.warning("%s timed out after %.1fs", label, timeout_s)
        return Outcome(status="timeout")

    exc = task.exception()
    if exc is not None:
        return Outcome(status="error", error=exc)
    return Outcome(status="success", value=task.result())
