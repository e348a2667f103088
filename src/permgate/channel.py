"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

One-shot grant results and the all-true join combinator.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import AsyncIterator, Callable, Generator, Sequence
from concurrent.futures import Future


class GrantResult:
    """
    Single-value broadcast handle over one eventual grant decision.

    The handle emits exactly one boolean and then ends. It can be awaited
    from any event loop, iterated as a one-item async stream, or blocked on
    from a worker thread. Any number of consumers may attach at any time,
    including after the value was decided.
    """

    __slots__ = ("_future",)

    def __init__(self, future: Future[bool]) -> None:
        self._future = future

    @classmethod
    def resolved(cls, granted: bool) -> GrantResult:
        """Return a handle that has already emitted ``granted``."""
        future: Future[bool] = Future()
        future.set_result(bool(granted))
        return cls(future)

    @property
    def future(self) -> Future[bool]:
        """Underlying thread-safe future. Owned by the publisher; consumers must not complete it."""
        return self._future

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: float | None = None) -> bool:
        """Block until the decision arrives. Raises ``TimeoutError`` on timeout."""
        return self._future.result(timeout=timeout)

    def add_done_callback(self, fn: Callable[[bool], object]) -> None:
        """
        Call ``fn(granted)`` once the decision arrives.

        Runs immediately in the calling thread when already decided, otherwise
        in the thread that publishes the decision. Failed results are not
        reported through this hook; use ``await`` or ``result()`` to observe
        them.
        """

        def _deliver(future: Future[bool]) -> None:
            if future.exception() is None:
                fn(future.result())

        self._future.add_done_callback(_deliver)

    def __await__(self) -> Generator[object, None, bool]:
        return asyncio.wrap_future(self._future).__await__()

    def __aiter__(self) -> AsyncIterator[bool]:
        return self._stream()

    async def _stream(self) -> AsyncIterator[bool]:
        yield await self

    def __repr__(self) -> str:
        if not self._future.done():
            return "GrantResult(pending)"
        if self._future.exception() is not None:
            return f"GrantResult(failed={self._future.exception()!r})"
        return f"GrantResult(granted={self._future.result()})"


def all_granted(sources: Sequence[GrantResult]) -> GrantResult:
    """
    Join ``sources`` into one result equal to the AND of their values.

    Nothing is emitted until every source has completed, regardless of the
    order they complete in or whether an early source already denied. If
    any source fails, the joined result fails with the first failure seen.
    """
    if not sources:
        raise ValueError("all_granted requires at least one source")

    joined: Future[bool] = Future()
    lock = threading.Lock()
    state = {"remaining": len(sources), "granted": True}
    failures: list[BaseException] = []

    def _on_source_done(source: Future[bool]) -> None:
        error = source.exception()
        with lock:
            if error is not None:
                failures.append(error)
            elif not source.result():
                state["granted"] = False
            state["remaining"] -= 1
            if state["remaining"] > 0:
                return
        if failures:
            joined.set_exception(failures[0])
        else:
            joined.set_result(state["granted"])

    for source in sources:
        source.future.add_done_callback(_on_source_done)
    return GrantResult(joined)
