# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Teardown capability and the concurrent teardown runner.

A built value is *closeable* when it exposes ``aclose()`` (awaited) or
``close()`` (run in a worker thread unless told otherwise; awaited if it
returns an awaitable). ``aclose`` wins when a value has both.

:func:`run_teardown` launches one task per built value inside a single task
group. Failures go into a memory stream whose buffer holds one entry per
task, so no task ever blocks on a reader. The stream's send side is closed
once every task has finished, which lets readers drain it with
``async for`` and stop.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import anyio
import anyio.to_thread
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from .config import TeardownOrder
from .exceptions import TeardownError
from .utils import get_logger, type_name


_logger = get_logger("initgraph.teardown")

_NOTHING = object()


@runtime_checkable
class SupportsClose(Protocol):
    """A value with a parameterless ``close()``."""

    def close(self) -> Any: ...


@runtime_checkable
class SupportsAclose(Protocol):
    """A value with a parameterless ``async aclose()``."""

    def aclose(self) -> Any: ...


def is_closeable(value: Any) -> bool:
    """True if *value* exposes a teardown operation.

    Classes are never closeable themselves: ``SomeClass.close`` is unbound.
    """
    if isinstance(value, type):
        return False
    return isinstance(value, (SupportsAclose, SupportsClose))


async def close_value(value: Any, *, sync_in_thread: bool = True) -> None:
    """Run *value*'s teardown operation to completion."""
    if isinstance(value, SupportsAclose):
        result = value.aclose()
    elif sync_in_thread and not inspect.iscoroutinefunction(value.close):
        result = await anyio.to_thread.run_sync(value.close)
    else:
        result = value.close()
    if inspect.isawaitable(result):
        await result


@dataclass(frozen=True, slots=True)
class TeardownItem:
    """One built value and the keys of built values that depend on it."""

    key: Any
    value: Any
    dependents: tuple[Any, ...] = ()


async def run_teardown(
    items: Sequence[TeardownItem],
    *,
    order: TeardownOrder = TeardownOrder.REVERSE_DEPENDENCY,
    max_concurrent: int | None = None,
    sync_in_thread: bool = True,
    logger: logging.Logger | None = None,
) -> MemoryObjectReceiveStream[TeardownError]:
    """Tear down *items* concurrently and return the stream of failures.

    Returns only after every teardown has finished. An object that appears
    under several keys is closed once, under its last key in build order.
    In reverse-dependency order it also waits for the dependents of its
    other keys, except where that wait would be circular.

    Args:
        items: Built values in build (dependency-first) order.
        order: Whether a value waits for its dependents before closing.
        max_concurrent: Bound on simultaneous teardown operations.
        sync_in_thread: Run blocking ``close()`` in a worker thread.
        logger: Logger for failure records.
    """
    log = logger or _logger
    limiter = anyio.CapacityLimiter(max_concurrent) if max_concurrent is not None else None
    finished = {item.key: anyio.Event() for item in items}
    send, receive = anyio.create_memory_object_stream[TeardownError](max_buffer_size=len(items))

    waits: dict[Any, list[Any]] = {item.key: [] for item in items}
    if order is TeardownOrder.REVERSE_DEPENDENCY:
        for item in items:
            waits[item.key] = [key for key in item.dependents if key in finished]

    closers = _assign_closers(items, waits, order)

    async with send:
        async with anyio.create_task_group() as tg:
            for item in items:
                target = item.value if closers.get(id(item.value)) == item.key else _NOTHING
                tg.start_soon(
                    _teardown_one,
                    item.key,
                    target,
                    [finished[key] for key in waits[item.key]],
                    finished[item.key],
                    send,
                    limiter,
                    sync_in_thread,
                    log,
                )
    return receive


def _assign_closers(
    items: Sequence[TeardownItem],
    waits: dict[Any, list[Any]],
    order: TeardownOrder,
) -> dict[int, Any]:
    """Map each closeable object to the key that closes it.

    A shared object's closing key also waits on its other keys, whose events
    fire once their own dependents are done. ``waits`` is extended in place.
    """
    sharing: dict[int, list[Any]] = {}
    for item in items:
        if is_closeable(item.value):
            sharing.setdefault(id(item.value), []).append(item.key)

    closers: dict[int, Any] = {}
    for object_id, keys in sharing.items():
        closer = keys[-1]
        closers[object_id] = closer
        if order is not TeardownOrder.REVERSE_DEPENDENCY:
            continue
        for key in keys[:-1]:
            if not _reaches(waits, key, closer):
                waits[closer].append(key)
    return closers


def _reaches(waits: dict[Any, list[Any]], start: Any, goal: Any) -> bool:
    stack = [start]
    seen: set[Any] = set()
    while stack:
        key = stack.pop()
        if key == goal:
            return True
        if key in seen:
            continue
        seen.add(key)
        stack.extend(waits.get(key, ()))
    return False


async def _teardown_one(
    key: Any,
    value: Any,
    waits: list[anyio.Event],
    done: anyio.Event,
    send: MemoryObjectSendStream[TeardownError],
    limiter: anyio.CapacityLimiter | None,
    sync_in_thread: bool,
    log: logging.Logger,
) -> None:
    try:
        for event in waits:
            await event.wait()
        if value is _NOTHING:
            return
        try:
            if limiter is not None:
                async with limiter:
                    await close_value(value, sync_in_thread=sync_in_thread)
            else:
                await close_value(value, sync_in_thread=sync_in_thread)
        except Exception as exc:
            log.warning(
                "teardown failed for %s: %s",
                type_name(key),
                exc,
                extra={"event": "container.close.failed", "key": type_name(key)},
            )
            await send.send(TeardownError(key, exc))
    finally:
        done.set()


__all__ = [
    "SupportsAclose",
    "SupportsClose",
    "TeardownItem",
    "close_value",
    "is_closeable",
    "run_teardown",
]
