# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Shared provider fixtures for container tests.

Types live at module level so ``typing.get_type_hints`` can resolve the
string annotations produced by ``from __future__ import annotations``.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any, NewType, Protocol


MyInt = NewType("MyInt", int)
MyMultiplier = NewType("MyMultiplier", int)
Sentence = NewType("Sentence", str)


def new_my_int() -> MyInt:
    return MyInt(21)


def new_my_multiplier() -> MyMultiplier:
    return MyMultiplier(2)


def new_sentence(number: MyInt, mult: MyMultiplier) -> Sentence:
    return Sentence(f"hello world {number * mult}")


class Greeter(Protocol):
    def greet(self) -> str: ...


class MyGreeter:
    def __init__(self, sentence: Sentence) -> None:
        self.sentence = sentence

    def greet(self) -> str:
        return str(self.sentence)


def new_greeter(sentence: Sentence) -> tuple[MyGreeter, Exception | None]:
    return MyGreeter(sentence), None


class Service:
    def __init__(self, greeter: Greeter, mult: MyMultiplier) -> None:
        self.greeter = greeter
        self.mult = mult

    def greetings(self) -> str:
        return f"sentence: {self.greeter.greet()}, mult: {self.mult}"


class Alpha:
    pass


class Beta:
    pass


def new_alpha(beta: Beta) -> Alpha:
    return Alpha()


def new_beta(alpha: Alpha) -> Beta:
    return Beta()


def new_alpha_from_alpha(alpha: Alpha) -> Alpha:
    return alpha


def positional_provider(arity: int, result: Callable[..., Any] | None = None) -> Callable[..., Any]:
    """Build an unannotated provider taking exactly *arity* positional parameters."""

    def provider(*args: Any) -> Any:
        return result(*args) if result is not None else object()

    provider.__signature__ = inspect.Signature(  # type: ignore[attr-defined]
        [inspect.Parameter(f"arg{i}", inspect.Parameter.POSITIONAL_OR_KEYWORD) for i in range(arity)]
    )
    return provider


__all__ = [
    "Alpha",
    "Beta",
    "Greeter",
    "MyGreeter",
    "MyInt",
    "MyMultiplier",
    "Sentence",
    "Service",
    "new_alpha",
    "new_alpha_from_alpha",
    "new_beta",
    "new_greeter",
    "new_my_int",
    "new_my_multiplier",
    "new_sentence",
    "positional_provider",
]
