# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Dependency container: register, resolve, build, get, close.

Usage:
    container = Container()
    container.register(Settings, load_settings)
    container.register(Database, open_database)   # def open_database(s: Settings) -> Database
    container.resolve()
    container.build()

    db = container.get(Database)

    async with await container.close() as errors:
        async for error in errors:
            log.warning("teardown failed: %s", error)

Or let the context manager drive the whole lifecycle:

    async with container:
        db = container.get(Database)

Phases are strictly ordered. Registration and resolution are
single-threaded, build runs providers one at a time in dependency order, and
only teardown is concurrent.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Literal, TypeVar

from anyio.streams.memory import MemoryObjectReceiveStream

from .config import ContainerConfig
from .dag import Graph, Node
from .exceptions import (
    BuildError,
    ContainerErrorCode,
    InvalidGraphError,
    LifecycleError,
    MissingDependencyError,
    NotBuiltError,
    TeardownError,
    UnknownTypeError,
)
from .plan import BuildPlan, PlanStep
from .registry import ProviderDescriptor, Registry
from .teardown import TeardownItem, run_teardown
from .utils import get_logger, type_name


T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class ProviderNode:
    """Read-only view of one resolved node, handed to :meth:`Container.walk`.

    Attributes:
        key: The type this node builds.
        dependencies: Keys of its dependencies, in argument order.
        return_arity: ``2`` when the provider returns ``(value, failure)``.
        is_async: The provider must be awaited.
        provider: The provider callable.
    """

    key: Any
    dependencies: tuple[Any, ...]
    return_arity: Literal[1, 2]
    is_async: bool
    provider: Callable[..., Any]

    @property
    def name(self) -> str:
        return type_name(self.key)


class Container:
    """Type-indexed container that builds provider values in dependency order."""

    def __init__(self, config: ContainerConfig | None = None) -> None:
        self.config = config or ContainerConfig()
        self._registry = Registry()
        self._graph: Graph[Any] | None = None
        self._values: dict[Any, Any] = {}
        self._built = False
        self._build_started = False
        self._closed = False
        self._logger = get_logger(self.config.logger_name)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self,
        key: Any,
        provider: Callable[..., Any],
        *,
        requires: Sequence[Any] | None = None,
    ) -> Container:
        """Register *provider* as the way to build *key*.

        See :meth:`initgraph.registry.Registry.register` for the rules and
        the errors raised. Returns ``self`` so calls can be chained.
        """
        self._registry.register(key, provider, requires=requires)
        return self

    def __contains__(self, key: object) -> bool:
        return key in self._registry

    def __len__(self) -> int:
        return len(self._registry)

    @property
    def registry(self) -> Registry:
        return self._registry

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    @property
    def resolved(self) -> bool:
        return self._graph is not None

    def resolve(self) -> None:
        """Validate the registrations and compute the build order.

        Idempotent once it succeeds; a successful resolve also freezes the
        registry. After a failure the registry stays open, so the caller can
        fix the registrations and try again.

        Raises:
            MissingDependencyError: A provider needs an unregistered type.
            CircularDependencyError: The providers form a cycle.
        """
        if self._graph is not None:
            return

        graph: Graph[Any] = Graph()
        nodes: dict[Any, Node[Any]] = {}
        for descriptor in self._registry:
            nodes[descriptor.key] = graph.add(descriptor.key)

        for descriptor in self._registry:
            node = nodes[descriptor.key]
            for dep in descriptor.dependencies:
                target = nodes.get(dep)
                if target is None:
                    raise MissingDependencyError(dep, descriptor.key)
                node.add_edge(target)

        graph.resolve()

        self._graph = graph
        self._registry.freeze()
        self._logger.info(
            "resolved %d provider(s)",
            len(graph),
            extra={"event": "container.resolve.done", "order": [type_name(key) for key in graph.values()]},
        )

    def _require_resolved(self, operation: str) -> Graph[Any]:
        if self._graph is None:
            raise LifecycleError(
                f"cannot {operation}: call resolve() first",
                code=ContainerErrorCode.NOT_RESOLVED,
            )
        return self._graph

    def walk(self, visit: Callable[[ProviderNode], bool | None]) -> None:
        """Call *visit* for each node in dependency order.

        Needs a successful :meth:`resolve`, not a build. Returning ``False``
        from *visit* stops the walk.
        """
        for node in self._iter_nodes(self._require_resolved("walk")):
            if visit(node) is False:
                return

    def _iter_nodes(self, graph: Graph[Any]) -> Iterator[ProviderNode]:
        for node in graph:
            descriptor = self._descriptor(node.value)
            yield ProviderNode(
                key=descriptor.key,
                dependencies=descriptor.dependencies,
                return_arity=descriptor.return_arity,
                is_async=descriptor.is_async,
                provider=descriptor.provider,
            )

    def plan(self) -> BuildPlan:
        """Return the resolved order as a serializable :class:`BuildPlan`."""
        steps: list[PlanStep] = []

        def collect(node: ProviderNode) -> None:
            steps.append(
                PlanStep(
                    key=node.name,
                    provider=self._descriptor(node.key).name,
                    dependencies=[type_name(dep) for dep in node.dependencies],
                    return_arity=node.return_arity,
                    is_async=node.is_async,
                )
            )

        self.walk(collect)
        return BuildPlan(steps=steps)

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    @property
    def built(self) -> bool:
        return self._built

    def build(self) -> None:
        """Run every provider in dependency order.

        Resolves first if needed. Refuses to start when any provider is
        async; use :meth:`abuild` for those.

        Raises:
            BuildError: A provider raised or reported a failure. The original
                error is the ``__cause__``.
            LifecycleError: Already built, or an async provider is registered.
        """
        graph = self._begin_build()
        pending = [type_name(d.key) for d in self._registry if d.is_async]
        if pending:
            self._build_started = False
            raise LifecycleError(
                f"async provider(s) registered for {', '.join(pending)}; use abuild()",
                code=ContainerErrorCode.ASYNC_PROVIDER,
            )

        for node in graph:
            descriptor = self._descriptor(node.value)
            result = self._invoke(descriptor)
            if inspect.isawaitable(result):
                # A sync-looking provider handed back an awaitable
                if inspect.iscoroutine(result):
                    result.close()
                raise BuildError(
                    descriptor.key,
                    f"provider for '{type_name(descriptor.key)}' returned an awaitable; use abuild()",
                )
            self._store(descriptor, result)

        self._finish_build()

    async def abuild(self) -> None:
        """Async variant of :meth:`build`; awaits async providers in order."""
        graph = self._begin_build()
        for node in graph:
            descriptor = self._descriptor(node.value)
            result = self._invoke(descriptor)
            if inspect.isawaitable(result):
                try:
                    result = await result
                except Exception as exc:
                    self._fail(descriptor, exc)
            self._store(descriptor, result)

        self._finish_build()

    def _begin_build(self) -> Graph[Any]:
        if self._build_started:
            raise LifecycleError("container has already been built", code=ContainerErrorCode.ALREADY_BUILT)
        if self._closed:
            raise LifecycleError("container is closed", code=ContainerErrorCode.ALREADY_CLOSED)
        self.resolve()
        self._build_started = True
        return self._require_resolved("build")

    def _finish_build(self) -> None:
        self._built = True
        self._logger.info(
            "built %d value(s)",
            len(self._values),
            extra={"event": "container.build.done"},
        )

    def _invoke(self, descriptor: ProviderDescriptor) -> Any:
        args = [self._values[dep] for dep in descriptor.dependencies]
        self._logger.debug(
            "building %s",
            type_name(descriptor.key),
            extra={"event": "container.build.step", "key": type_name(descriptor.key), "provider": descriptor.name},
        )
        try:
            return descriptor.call(args)
        except Exception as exc:
            self._fail(descriptor, exc)

    def _store(self, descriptor: ProviderDescriptor, result: Any) -> None:
        key = descriptor.key
        if descriptor.return_arity == 2:
            if not isinstance(result, tuple) or len(result) != 2:
                raise BuildError(key, f"provider for '{type_name(key)}' must return a (value, error) pair")
            value, failure = result
            if failure is not None:
                if not isinstance(failure, BaseException):
                    raise BuildError(
                        key, f"provider for '{type_name(key)}' returned a non-exception failure: {failure!r}"
                    )
                self._fail(descriptor, failure)
        else:
            value = result

        # Slots are single-assignment; the topological order guarantees it
        if key in self._values:
            raise InvalidGraphError(f"slot for {type_name(key)} written twice")
        self._values[key] = value

    def _fail(self, descriptor: ProviderDescriptor, failure: BaseException) -> Any:
        self._logger.warning(
            "provider for %s failed: %s",
            type_name(descriptor.key),
            failure,
            extra={"event": "container.build.failed", "key": type_name(descriptor.key)},
        )
        raise BuildError(descriptor.key) from failure

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, key: type[T]) -> T:
        """Return the built value for *key*.

        Raises:
            UnknownTypeError: No provider was registered for *key*.
            NotBuiltError: :meth:`build` has not completed successfully.
        """
        if key not in self._registry:
            raise UnknownTypeError(key)
        if not self._built:
            raise NotBuiltError(key)
        return self._values[key]

    def _descriptor(self, key: Any) -> ProviderDescriptor:
        descriptor = self._registry.get(key)
        if descriptor is None:
            raise UnknownTypeError(key)
        return descriptor

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    async def close(self) -> MemoryObjectReceiveStream[TeardownError]:
        """Tear down every built value that exposes ``close``/``aclose``.

        Teardowns run concurrently; see :class:`~initgraph.config.ContainerConfig`
        for ordering and bounds. Returns once all of them have finished, with a
        stream holding one :class:`TeardownError` per failure. The stream is
        fully buffered, so leaving it unread never blocks anything.

        Raises:
            LifecycleError: The container was already closed.
        """
        if self._closed:
            raise LifecycleError("container is already closed", code=ContainerErrorCode.ALREADY_CLOSED)
        self._closed = True

        items = self._teardown_items()
        errors = await run_teardown(
            items,
            order=self.config.teardown_order,
            max_concurrent=self.config.max_concurrent_teardowns,
            sync_in_thread=self.config.run_sync_close_in_thread,
            logger=self._logger,
        )
        self._logger.info(
            "closed container",
            extra={
                "event": "container.close.done",
                "values": len(items),
                "failures": errors.statistics().current_buffer_used,
            },
        )
        return errors

    async def shutdown(self) -> list[TeardownError]:
        """Close the container and collect every teardown failure."""
        errors = await self.close()
        async with errors:
            return [error async for error in errors]

    def _teardown_items(self) -> list[TeardownItem]:
        if self._graph is None:
            return []
        dependents: dict[Any, list[Any]] = {key: [] for key in self._values}
        for node in self._graph:
            if node.value not in self._values:
                continue
            for edge in node.edges:
                if edge.value in dependents and node.value not in dependents[edge.value]:
                    dependents[edge.value].append(node.value)
        return [
            TeardownItem(key=node.value, value=self._values[node.value], dependents=tuple(dependents[node.value]))
            for node in self._graph
            if node.value in self._values
        ]

    async def __aenter__(self) -> Container:
        try:
            await self.abuild()
        except BuildError:
            # Release whatever was built before the failure
            await self.shutdown()
            raise
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._closed:
            return
        errors = await self.shutdown()
        if not errors:
            return
        if exc_val is None:
            raise ExceptionGroup("teardown failed", errors)
        for error in errors:
            self._logger.warning(
                "suppressed teardown failure: %s",
                error,
                extra={"event": "container.close.suppressed", "key": type_name(error.key)},
            )


__all__ = ["Container", "ProviderNode"]
