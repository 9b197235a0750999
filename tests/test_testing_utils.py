# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Tests for testing utilities (recording closers, drain)."""

from __future__ import annotations

import anyio
import pytest

from initgraph.exceptions import TeardownError
from initgraph.testing import AsyncRecordingCloser, RecordingCloser, drain


class Config:
    pass


def test_recording_closer_logs_name():
    """close() marks the value closed and appends to the shared log."""
    log: list[str] = []
    closer = RecordingCloser("db", log)

    closer.close()

    assert closer.closed
    assert log == ["db"]


def test_recording_closer_raises_configured_error():
    """The error is raised after the close is recorded."""
    closer = RecordingCloser("db", error=OSError("disk"))

    with pytest.raises(OSError, match="disk"):
        closer.close()

    assert closer.log == ["db"]


def test_recording_closer_repr():
    assert repr(RecordingCloser("db")) == "RecordingCloser('db', closed=False)"


@pytest.mark.anyio
async def test_async_recording_closer():
    log: list[str] = []
    closer = AsyncRecordingCloser("pool", log)

    await closer.aclose()

    assert closer.closed
    assert log == ["pool"]


@pytest.mark.anyio
async def test_drain_collects_and_closes():
    """drain() reads until the sender closes, then closes the receiver."""
    send, receive = anyio.create_memory_object_stream[TeardownError](2)
    async with send:
        await send.send(TeardownError(Config, RuntimeError("a")))
        await send.send(TeardownError(Config, RuntimeError("b")))

    errors = await drain(receive)

    assert [str(error.__cause__) for error in errors] == ["a", "b"]
    with pytest.raises(anyio.ClosedResourceError):
        await receive.receive()
