# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Tests for the serializable build plan."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from initgraph import BuildPlan, Container, PlanStep
from tests.helpers import MyInt, MyMultiplier, Sentence, new_my_int, new_my_multiplier, new_sentence


def _plan() -> BuildPlan:
    container = Container()
    container.register(Sentence, new_sentence)
    container.register(MyInt, new_my_int)
    container.register(MyMultiplier, new_my_multiplier)
    container.resolve()
    return container.plan()


class TestPlanStep:
    def test_defaults(self):
        step = PlanStep(key="app.Config", provider="load_config")

        assert step.dependencies == []
        assert step.return_arity == 1
        assert step.is_async is False

    def test_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            PlanStep(key="app.Config", provider="load_config", scope="singleton")

    def test_rejects_empty_key(self):
        with pytest.raises(ValidationError):
            PlanStep(key="", provider="load_config")

    def test_rejects_bad_arity(self):
        with pytest.raises(ValidationError):
            PlanStep(key="app.Config", provider="load_config", return_arity=3)

    def test_is_frozen(self):
        step = PlanStep(key="app.Config", provider="load_config")
        with pytest.raises(ValidationError):
            step.key = "other"


class TestBuildPlan:
    def test_order_from_container(self):
        plan = _plan()

        assert [key.rsplit(".", 1)[-1] for key in plan.order] == ["MyInt", "MyMultiplier", "Sentence"]
        assert plan.step(plan.order[-1]).dependencies == plan.order[:2]

    def test_round_trips_through_json(self):
        plan = _plan()

        payload = json.loads(plan.model_dump_json())
        restored = BuildPlan.model_validate(payload)

        assert restored == plan
        assert payload["steps"][0]["provider"] == "new_my_int"

    def test_rejects_dependency_built_later(self):
        with pytest.raises(ValidationError, match="not built before it"):
            BuildPlan(
                steps=[
                    PlanStep(key="app.Service", provider="Service", dependencies=["app.Config"]),
                    PlanStep(key="app.Config", provider="load_config"),
                ]
            )

    def test_rejects_unknown_dependency(self):
        with pytest.raises(ValidationError):
            BuildPlan(steps=[PlanStep(key="app.Service", provider="Service", dependencies=["app.Missing"])])

    def test_unknown_step_lookup(self):
        with pytest.raises(KeyError):
            _plan().step("nope")

    def test_empty_plan(self):
        assert BuildPlan().order == []
