# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Tests for Container.resolve, walk and plan."""

from __future__ import annotations

import random

import pytest

from initgraph import (
    CircularDependencyError,
    Container,
    ContainerErrorCode,
    LifecycleError,
    MissingDependencyError,
    ProviderNode,
)
from tests.helpers import (
    Alpha,
    Beta,
    Greeter,
    MyGreeter,
    MyInt,
    MyMultiplier,
    Sentence,
    Service,
    new_alpha,
    new_alpha_from_alpha,
    new_beta,
    new_greeter,
    new_my_int,
    new_my_multiplier,
    new_sentence,
    positional_provider,
)


def _hello_world(container: Container) -> Container:
    return (
        container.register(Service, Service)
        .register(Greeter, new_greeter)
        .register(Sentence, new_sentence)
        .register(MyMultiplier, new_my_multiplier)
        .register(MyInt, new_my_int)
    )


def _order(container: Container) -> list[object]:
    keys: list[object] = []
    container.walk(lambda node: keys.append(node.key))
    return keys


def _random_container(rng: random.Random, size: int) -> tuple[Container, dict[type, list[type]]]:
    keys = [type(f"Key{i}", (), {}) for i in range(size)]
    edges: dict[type, list[type]] = {}
    for i, key in enumerate(keys):
        edges[key] = [keys[j] for j in range(i) if rng.random() < 0.25]

    container = Container()
    registration = list(keys)
    rng.shuffle(registration)
    for key in registration:
        container.register(key, positional_provider(len(edges[key])), requires=edges[key])
    return container, edges


# =============================================================================
# Ordering
# =============================================================================


class TestResolveOrder:
    def test_dependencies_precede_dependents(self):
        container = _hello_world(Container())
        container.resolve()

        order = _order(container)
        position = {key: i for i, key in enumerate(order)}

        assert len(order) == 5
        assert position[MyInt] < position[Sentence]
        assert position[MyMultiplier] < position[Sentence]
        assert position[Sentence] < position[Greeter]
        assert position[Greeter] < position[Service]
        assert position[MyMultiplier] < position[Service]

    def test_order_is_deterministic(self):
        first = _hello_world(Container())
        second = _hello_world(Container())
        first.resolve()
        second.resolve()

        assert _order(first) == _order(second)

    def test_random_graphs_sort_soundly(self):
        rng = random.Random(42)
        for _ in range(25):
            container, edges = _random_container(rng, rng.randint(1, 25))
            container.resolve()

            order = _order(container)
            position = {key: i for i, key in enumerate(order)}
            assert len(order) == len(edges)
            for key, deps in edges.items():
                for dep in deps:
                    assert position[dep] < position[key]

    def test_registration_order_does_not_change_edges(self):
        forward = _hello_world(Container())
        backward = Container()
        for descriptor in reversed(list(forward.registry)):
            backward.register(descriptor.key, descriptor.provider)

        forward.resolve()
        backward.resolve()

        def edge_set(container: Container) -> set[tuple[object, object]]:
            edges: set[tuple[object, object]] = set()
            container.walk(lambda node: edges.update((node.key, dep) for dep in node.dependencies))
            return edges

        assert edge_set(forward) == edge_set(backward)
        assert set(_order(forward)) == set(_order(backward))

    def test_empty_container_resolves(self):
        container = Container()
        container.resolve()

        assert container.resolved
        assert _order(container) == []

    def test_resolve_is_idempotent(self):
        container = _hello_world(Container())
        container.resolve()
        first = _order(container)
        container.resolve()

        assert _order(container) == first


# =============================================================================
# Validation
# =============================================================================


class TestResolveErrors:
    def test_missing_dependency_names_both_sides(self):
        calls: list[str] = []

        def counting_int() -> MyInt:
            calls.append("int")
            return MyInt(1)

        container = Container()
        container.register(MyInt, counting_int)
        container.register(Sentence, new_sentence)

        with pytest.raises(MissingDependencyError) as exc_info:
            container.resolve()

        error = exc_info.value
        assert error.code is ContainerErrorCode.MISSING_DEPENDENCY
        assert error.missing is MyMultiplier
        assert error.requested_by is Sentence
        assert "MyMultiplier" in str(error)
        assert "Sentence" in str(error)
        assert calls == []
        assert not container.resolved

    def test_two_node_cycle(self):
        container = Container().register(Alpha, new_alpha).register(Beta, new_beta)

        with pytest.raises(CircularDependencyError) as exc_info:
            container.resolve()

        error = exc_info.value
        assert error.code is ContainerErrorCode.CIRCULAR_DEPENDENCY
        assert error.key is Alpha
        assert error.cycle == [Alpha, Beta, Alpha]
        assert "cycle detected on type" in str(error)

    def test_self_cycle(self):
        container = Container().register(Alpha, new_alpha_from_alpha)

        with pytest.raises(CircularDependencyError) as exc_info:
            container.resolve()

        assert exc_info.value.cycle == [Alpha, Alpha]

    def test_failed_resolve_keeps_registry_open(self):
        container = Container().register(Sentence, new_sentence).register(MyInt, new_my_int)

        with pytest.raises(MissingDependencyError):
            container.resolve()

        container.register(MyMultiplier, new_my_multiplier)
        container.resolve()
        assert container.resolved

    def test_registry_frozen_after_resolve(self):
        container = Container().register(MyInt, new_my_int)
        container.resolve()

        with pytest.raises(LifecycleError) as exc_info:
            container.register(MyMultiplier, new_my_multiplier)

        assert exc_info.value.code is ContainerErrorCode.REGISTRY_FROZEN
        assert MyMultiplier not in container


# =============================================================================
# Walk
# =============================================================================


class TestWalk:
    def test_walk_requires_resolve(self):
        container = _hello_world(Container())

        with pytest.raises(LifecycleError) as exc_info:
            container.walk(lambda node: None)

        assert exc_info.value.code is ContainerErrorCode.NOT_RESOLVED

    def test_walk_does_not_build(self):
        container = _hello_world(Container())
        container.resolve()
        container.walk(lambda node: None)

        assert not container.built

    def test_walk_stops_on_false(self):
        container = _hello_world(Container())
        container.resolve()
        seen: list[ProviderNode] = []

        def visit(node: ProviderNode) -> bool:
            seen.append(node)
            return len(seen) < 2

        container.walk(visit)

        assert len(seen) == 2

    def test_nodes_describe_providers(self):
        container = _hello_world(Container())
        container.resolve()
        nodes: dict[object, ProviderNode] = {}
        container.walk(lambda node: nodes.__setitem__(node.key, node))

        greeter = nodes[Greeter]
        assert greeter.dependencies == (Sentence,)
        assert greeter.return_arity == 2
        assert greeter.is_async is False
        assert greeter.provider is new_greeter
        assert greeter.name.endswith("Greeter")
        assert nodes[Service].provider is Service
        assert MyGreeter not in nodes


# =============================================================================
# Plan
# =============================================================================


class TestPlan:
    def test_plan_matches_walk_order(self):
        container = _hello_world(Container())
        container.resolve()

        plan = container.plan()

        assert len(plan.steps) == 5
        assert plan.order[-1].endswith("Service")
        step = plan.step(plan.order[-1])
        assert step.provider == "Service"
        assert len(step.dependencies) == 2

    def test_plan_records_arity(self):
        container = _hello_world(Container())
        container.resolve()

        plan = container.plan()
        greeter = next(step for step in plan.steps if step.key.endswith("Greeter"))

        assert greeter.return_arity == 2
        assert greeter.provider == "new_greeter"

    def test_plan_requires_resolve(self):
        with pytest.raises(LifecycleError):
            Container().plan()
