# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Container configuration dataclasses."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TeardownOrder(str, Enum):
    """How :meth:`Container.close` sequences teardown of built values."""

    REVERSE_DEPENDENCY = "reverse_dependency"
    """A value is closed only after everything that depends on it has been closed."""

    CONCURRENT = "concurrent"
    """Every closeable value starts tearing down at once, with no ordering."""


@dataclass(slots=True, frozen=True)
class ContainerConfig:
    """Tunable parameters for :class:`~initgraph.container.Container`.

    All fields have sane defaults. Override only what you need.

    Example:
        >>> from initgraph import Container, ContainerConfig, TeardownOrder
        >>>
        >>> container = Container(ContainerConfig(max_concurrent_teardowns=8))
        >>>
        >>> # Legacy behaviour: everything closes at once
        >>> container = Container(ContainerConfig(teardown_order=TeardownOrder.CONCURRENT))
    """

    teardown_order: TeardownOrder = TeardownOrder.REVERSE_DEPENDENCY
    """Ordering between dependent and dependency teardowns."""

    max_concurrent_teardowns: int | None = None
    """Upper bound on teardowns running at once. ``None`` means unbounded."""

    run_sync_close_in_thread: bool = True
    """Run blocking ``close()`` methods in a worker thread instead of the event loop."""

    logger_name: str = "initgraph.container"
    """Logger used for container lifecycle events."""

    def __post_init__(self) -> None:
        if self.max_concurrent_teardowns is not None and self.max_concurrent_teardowns < 1:
            raise ValueError("max_concurrent_teardowns must be >= 1 or None")


__all__ = ["ContainerConfig", "TeardownOrder"]
