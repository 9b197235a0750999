# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Helpers for reasoning about type annotations used as registry keys.

Providers are matched to dependencies by comparing annotation objects, so
these helpers answer three questions:

- is this object usable as a key at all (:func:`is_type_key`)
- can a value declared as ``source`` stand in for ``target`` (:func:`is_assignable`)
- what should we call this key in a log line or error (:func:`type_name`)
"""

from __future__ import annotations

import types
import typing
from typing import Annotated, Any, Union, get_args, get_origin


__all__ = ["is_assignable", "is_failure_type", "is_type_key", "type_name"]

_UNION_ORIGINS = (Union, types.UnionType)

# Names typing injects into every Protocol class namespace
_PROTOCOL_INTERNALS = frozenset(
    {
        "_is_protocol",
        "_is_runtime_protocol",
        "_abc_impl",
        "__protocol_attrs__",
        "__non_callable_proto_members__",
        "__parameters__",
        "__orig_bases__",
        "__annotations__",
        "__type_params__",
    }
)


def _is_newtype(obj: Any) -> bool:
    return isinstance(obj, typing.NewType)


def _strip_annotated(tp: Any) -> Any:
    while get_origin(tp) is Annotated:
        tp = get_args(tp)[0]
    return tp


def _is_union(tp: Any) -> bool:
    return get_origin(tp) in _UNION_ORIGINS


def is_type_key(obj: Any) -> bool:
    """Return True if *obj* can identify a registered dependency.

    Classes, protocols, ``NewType`` aliases and parameterized typing forms
    qualify. Instances such as ``42`` or ``None`` do not.
    """
    if obj is None or obj is Any:
        return False
    if isinstance(obj, type) or _is_newtype(obj):
        return True
    return get_origin(obj) is not None


def type_name(tp: Any) -> str:
    """Render *tp* for humans: ``module.Qualname`` or the typing repr."""
    if tp is None or tp is type(None):
        return "None"
    if _is_newtype(tp):
        module = getattr(tp, "__module__", None)
        name = getattr(tp, "__qualname__", None) or tp.__name__
        return name if module in (None, "builtins", "typing") else f"{module}.{name}"
    if isinstance(tp, type) and get_origin(tp) is None:
        if tp.__module__ == "builtins":
            return tp.__qualname__
        return f"{tp.__module__}.{tp.__qualname__}"
    return repr(tp).replace("typing.", "")


def is_failure_type(tp: Any) -> bool:
    """True for ``Exception``-like annotations, optionally unioned with ``None``."""
    tp = _strip_annotated(tp)
    if _is_union(tp):
        members = [m for m in get_args(tp) if m is not type(None)]
        return bool(members) and all(is_failure_type(m) for m in members)
    return isinstance(tp, type) and issubclass(tp, BaseException)


def is_assignable(source: Any, target: Any) -> bool:
    """Return True if a value declared as *source* satisfies *target*.

    Generic parameters are compared invariantly. Protocol targets that refuse
    ``issubclass`` are checked structurally by member presence.
    """
    source = _strip_annotated(source)
    target = _strip_annotated(target)

    if source is target or source == target:
        return True
    if target is Any or source is Any:
        return True

    if _is_union(target):
        return any(is_assignable(source, member) for member in get_args(target))
    if _is_union(source):
        return all(is_assignable(member, target) for member in get_args(source))

    if _is_newtype(target):
        return False
    if _is_newtype(source):
        return is_assignable(source.__supertype__, target)

    source_origin = get_origin(source) or source
    target_origin = get_origin(target) or target
    target_args = get_args(target)
    if target_args and get_args(source) != target_args:
        return False

    if not (isinstance(source_origin, type) and isinstance(target_origin, type)):
        return False

    try:
        return issubclass(source_origin, target_origin)
    except TypeError:
        if not getattr(target_origin, "_is_protocol", False):
            raise
    return _satisfies_protocol(source_origin, target_origin)


def _protocol_members(proto: type) -> set[str]:
    getter = getattr(typing, "get_protocol_members", None)
    if getter is not None:
        return set(getter(proto))
    attrs = getattr(proto, "__protocol_attrs__", None)
    if attrs is not None:
        return set(attrs)

    members: set[str] = set()
    for base in proto.__mro__:
        if base is object or base is typing.Protocol or base is typing.Generic:
            continue
        if not getattr(base, "_is_protocol", False):
            continue
        members.update(getattr(base, "__annotations__", {}))
        members.update(
            name
            for name in vars(base)
            if name not in _PROTOCOL_INTERNALS and not (name.startswith("__") and name.endswith("__"))
        )
    return members


def _satisfies_protocol(cls: type, proto: type) -> bool:
    declared: set[str] = set()
    for base in cls.__mro__:
        declared.update(getattr(base, "__annotations__", {}))
    return all(hasattr(cls, name) or name in declared for name in _protocol_members(proto))
