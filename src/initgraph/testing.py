# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Testing utilities for code wired with initgraph.

Provides closeable stand-ins that record teardown order and a helper to
collect the teardown error stream.

Example:
    >>> log: list[str] = []
    >>> container.register(Cache, lambda: RecordingCloser("cache", log), requires=())
    >>> ...
    >>> errors = await drain(await container.close())
    >>> assert log == ["cache"]
"""

from __future__ import annotations

from collections.abc import AsyncIterable

from .exceptions import TeardownError


__all__ = ["AsyncRecordingCloser", "RecordingCloser", "drain"]


class RecordingCloser:
    """A closeable value that appends its name to *log* when closed.

    Args:
        name: Label written to the log.
        log: Shared list collecting close events across values.
        error: Raised from ``close()`` after recording, if given.
    """

    def __init__(self, name: str, log: list[str] | None = None, *, error: Exception | None = None) -> None:
        self.name = name
        self.log = log if log is not None else []
        self.error = error
        self.closed = False

    def close(self) -> None:
        self.closed = True
        self.log.append(self.name)
        if self.error is not None:
            raise self.error

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, closed={self.closed})"


class AsyncRecordingCloser(RecordingCloser):
    """Like :class:`RecordingCloser` but closed through ``aclose()``."""

    async def aclose(self) -> None:
        self.close()


async def drain(errors: AsyncIterable[TeardownError]) -> list[TeardownError]:
    """Collect every error from a teardown stream, closing it afterwards."""
    collected = [error async for error in errors]
    aclose = getattr(errors, "aclose", None)
    if aclose is not None:
        await aclose()
    return collected
