"""Asynchronous actions.

``flow(fn)`` marks a coroutine function as a procedure. Once installed on a
node, every synchronous step of the coroutine (the code between two
``await``s) runs inside the node's action context, so state may be modified
after awaiting I/O while writes from outside stay protected. Scheduling,
suspension and cancellation belong to the event loop.
"""

from __future__ import annotations

import functools
import inspect
import logging
from typing import Any, Awaitable, Callable

from treeclass.tracing import SpanPath, service_span

logger = logging.getLogger(__name__)

__all__ = ["Flow", "flow"]

_SPAN_ROOT = SpanPath(("treeclass", "flow"))


class _ActionSteps:
    """Drive ``coro`` one step at a time, each step inside ``node.action_context()``."""

    __slots__ = ("_node", "_coro")

    def __init__(self, node: Any, coro: Any) -> None:
        self._node = node
        self._coro = coro

    def __await__(self):
        coro = self._coro
        sent: Any = None
        thrown: BaseException | None = None
        while True:
            with self._node.action_context():
                try:
                    if thrown is None:
                        signal = coro.send(sent)
                    else:
                        signal = coro.throw(thrown)
                except StopIteration as stop:
                    return stop.value
            try:
                sent, thrown = (yield signal), None
            except GeneratorExit:
                coro.close()
                raise
            except BaseException as exc:  # forwarded into the coroutine, including cancellation
                sent, thrown = None, exc


class Flow:
    """Callable wrapper marking ``fn`` as an asynchronous action."""

    def __init__(self, fn: Callable[..., Any]) -> None:
        if not callable(fn):
            raise TypeError(f"flow expects a callable (got {type(fn).__name__})")
        self.fn = fn
        functools.update_wrapper(self, fn)

    @property
    def name(self) -> str:
        return getattr(self.fn, "__name__", "flow")

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self.fn(*args, **kwargs)

    async def run(self, node: Any, *args: Any, **kwargs: Any) -> Any:
        attrs = {"treeclass.model": node.type.name, "treeclass.flow": self.name}
        async with service_span(_SPAN_ROOT.child(self.name), attributes=attrs):
            with node.action_context():
                result = self.fn(*args, **kwargs)
            if inspect.iscoroutine(result):
                return await _ActionSteps(node, result)
            if inspect.isawaitable(result):
                return await result
            return result


def flow(fn: Callable[..., Awaitable[Any]]) -> Flow:
    """Mark ``fn`` (usually an ``async def``) as an asynchronous action."""
    if isinstance(fn, Flow):
        return fn
    return Flow(fn)
