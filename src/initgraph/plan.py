# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Serializable view of a resolved build order.

A :class:`BuildPlan` is what an initializer generator needs to emit static
wiring code: for each key, in dependency order, the provider to call, the
keys to pass it, and whether the provider can report a failure.

Example:
    >>> container.resolve()
    >>> print(container.plan().model_dump_json(indent=2))
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PlanStep(BaseModel):
    """One provider invocation in the build order.

    Attributes:
        key: Readable name of the type being built.
        provider: Qualified name of the provider callable.
        dependencies: Keys passed to the provider, in argument order.
        return_arity: ``2`` if the provider returns ``(value, failure)``.
        is_async: The provider must be awaited.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    key: str = Field(..., min_length=1)
    provider: str
    dependencies: list[str] = Field(default_factory=list)
    return_arity: Literal[1, 2] = 1
    is_async: bool = False


class BuildPlan(BaseModel):
    """Ordered build steps; every dependency precedes its dependents."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    steps: list[PlanStep] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_order(self) -> BuildPlan:
        """Reject plans where a step consumes a key built later (or never)."""
        seen: set[str] = set()
        for step in self.steps:
            for dep in step.dependencies:
                if dep not in seen:
                    raise ValueError(f"step '{step.key}' depends on '{dep}' which is not built before it")
            seen.add(step.key)
        return self

    @property
    def order(self) -> list[str]:
        return [step.key for step in self.steps]

    def step(self, key: str) -> PlanStep:
        for step in self.steps:
            if step.key == key:
                return step
        raise KeyError(key)


__all__ = ["BuildPlan", "PlanStep"]
