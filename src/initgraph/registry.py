# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Provider registry: one descriptor per type key.

Registration inspects the provider once and records everything later phases
need: which types it consumes (from parameter annotations), how its result is
shaped, and whether it must be awaited. No graph work happens here.

A provider declares a fallible result by annotating a two-element tuple whose
second element is an exception type::

    def new_client(settings: Settings) -> tuple[Client, Exception | None]:
        ...

Providers may just as well raise. Both forms surface as
:class:`~initgraph.exceptions.BuildError` during build.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Literal, get_args, get_origin, get_type_hints

from .exceptions import (
    ContainerErrorCode,
    DuplicateRegistrationError,
    InvalidProviderError,
    InvalidTypeKeyError,
    LifecycleError,
    TypeMismatchError,
)
from .utils import get_logger, is_assignable, is_failure_type, is_type_key, type_name


_logger = get_logger("initgraph.registry")

_MISSING = object()

_VARIADIC_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


@dataclass(frozen=True, slots=True)
class Argument:
    """One provider parameter and the key that satisfies it."""

    name: str
    key: Any
    keyword_only: bool = False


@dataclass(frozen=True, slots=True)
class ProviderDescriptor:
    """Everything the container needs to know about one provider.

    Attributes:
        key: The type this provider builds.
        provider: The callable itself. Treated as immutable once registered.
        arguments: Parameters in declaration order.
        return_arity: ``2`` when the provider returns ``(value, failure)``.
        is_async: The provider must be awaited.
    """

    key: Any
    provider: Callable[..., Any]
    arguments: tuple[Argument, ...] = ()
    return_arity: Literal[1, 2] = 1
    is_async: bool = False

    @property
    def dependencies(self) -> tuple[Any, ...]:
        return tuple(argument.key for argument in self.arguments)

    @property
    def name(self) -> str:
        return getattr(self.provider, "__qualname__", None) or type(self.provider).__qualname__

    def call(self, values: Sequence[Any]) -> Any:
        """Invoke the provider with dependency values in argument order."""
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for argument, value in zip(self.arguments, values, strict=True):
            if argument.keyword_only:
                kwargs[argument.name] = value
            else:
                args.append(value)
        return self.provider(*args, **kwargs)


class Registry:
    """Mapping from type key to :class:`ProviderDescriptor`.

    Iteration yields descriptors in registration order. Once frozen (after a
    successful resolve) the registry rejects new providers.
    """

    def __init__(self) -> None:
        self._descriptors: dict[Any, ProviderDescriptor] = {}
        self._frozen = False

    def register(
        self,
        key: Any,
        provider: Callable[..., Any],
        *,
        requires: Sequence[Any] | None = None,
    ) -> ProviderDescriptor:
        """Register *provider* as the way to build *key*.

        Args:
            key: Type identifying the dependency.
            provider: Function, class, or callable object producing the value.
            requires: Explicit dependency keys, one per parameter. Overrides
                parameter annotations; needed for unannotated callables.

        Raises:
            LifecycleError: The registry is frozen.
            InvalidTypeKeyError: ``key`` is not a type.
            DuplicateRegistrationError: ``key`` already has a provider.
            InvalidProviderError: The provider's shape is unusable.
            TypeMismatchError: The provider's output is not assignable to ``key``.
        """
        if self._frozen:
            raise LifecycleError(
                f"cannot register '{type_name(key)}': registry is frozen after resolve",
                code=ContainerErrorCode.REGISTRY_FROZEN,
            )
        if not is_type_key(key):
            raise InvalidTypeKeyError(key)
        if key in self._descriptors:
            raise DuplicateRegistrationError(key)

        descriptor = inspect_provider(key, provider, requires=requires)
        self._descriptors[key] = descriptor
        _logger.debug(
            "provider registered",
            extra={
                "event": "container.register",
                "key": type_name(key),
                "provider": descriptor.name,
                "dependencies": [type_name(dep) for dep in descriptor.dependencies],
            },
        )
        return descriptor

    def get(self, key: Any) -> ProviderDescriptor | None:
        return self._descriptors.get(key)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __contains__(self, key: object) -> bool:
        try:
            return key in self._descriptors
        except TypeError:  # unhashable
            return False

    def __iter__(self) -> Iterator[ProviderDescriptor]:
        return iter(self._descriptors.values())

    def __len__(self) -> int:
        return len(self._descriptors)


# =============================================================================
# Provider inspection
# =============================================================================


def inspect_provider(
    key: Any,
    provider: Callable[..., Any],
    *,
    requires: Sequence[Any] | None = None,
) -> ProviderDescriptor:
    """Validate *provider*'s shape and describe it.

    Raises:
        InvalidProviderError: See :meth:`Registry.register`.
        TypeMismatchError: The declared output does not fit ``key``.
    """
    if not callable(provider):
        raise InvalidProviderError(key, provider, "provider must be callable")

    try:
        signature = inspect.signature(provider)
    except (TypeError, ValueError) as exc:
        raise InvalidProviderError(key, provider, f"cannot read signature: {exc}") from exc

    hints = _type_hints(key, provider)
    parameters = list(signature.parameters.values())

    for param in parameters:
        if param.kind in _VARIADIC_KINDS:
            raise InvalidProviderError(key, provider, f"variadic parameter '{param.name}' is not supported")

    if requires is not None:
        requires = tuple(requires)
        if len(requires) != len(parameters):
            raise InvalidProviderError(
                key,
                provider,
                f"requires lists {len(requires)} type(s) but the provider takes {len(parameters)} parameter(s)",
            )
        dependency_keys = list(requires)
    else:
        dependency_keys = []
        for param in parameters:
            annotation = hints.get(param.name, _MISSING)
            if annotation is _MISSING:
                raise InvalidProviderError(key, provider, f"parameter '{param.name}' has no type annotation")
            dependency_keys.append(annotation)

    for param, dep in zip(parameters, dependency_keys):
        if not is_type_key(dep):
            raise InvalidProviderError(key, provider, f"parameter '{param.name}' is not typed with a type: {dep!r}")

    arguments = tuple(
        Argument(param.name, dep, param.kind is inspect.Parameter.KEYWORD_ONLY)
        for param, dep in zip(parameters, dependency_keys)
    )

    if inspect.isclass(provider):
        declared: Any = provider
    else:
        declared = hints.get("return", _MISSING)
    return_arity = _check_output(key, provider, declared)

    return ProviderDescriptor(
        key=key,
        provider=provider,
        arguments=arguments,
        return_arity=return_arity,
        is_async=_is_async(provider),
    )


def _type_hints(key: Any, provider: Callable[..., Any]) -> dict[str, Any]:
    if inspect.isclass(provider):
        target: Any = provider.__init__
    elif inspect.isfunction(provider) or inspect.ismethod(provider):
        target = provider
    else:
        target = getattr(type(provider), "__call__", provider)
    try:
        return get_type_hints(target, include_extras=True)
    except (NameError, TypeError) as exc:
        raise InvalidProviderError(key, provider, f"cannot evaluate annotations: {exc}") from exc


def _check_output(key: Any, provider: Any, declared: Any) -> Literal[1, 2]:
    if declared is _MISSING:
        _logger.debug(
            "provider has no return annotation; output type unchecked",
            extra={"event": "container.register.unchecked", "key": type_name(key)},
        )
        return 1
    if declared is None or declared is type(None):
        raise InvalidProviderError(key, provider, "provider must return a value")

    if is_assignable(declared, key):
        return 1

    if get_origin(declared) is tuple:
        outputs = get_args(declared)
        if not outputs or outputs == ((),):
            raise InvalidProviderError(key, provider, "provider must return a value")
        if len(outputs) > 2 or Ellipsis in outputs:
            raise InvalidProviderError(key, provider, "provider must return at most 2 values")
        if len(outputs) == 2:
            value_type, failure_type = outputs
            if not is_failure_type(failure_type):
                raise InvalidProviderError(
                    key,
                    provider,
                    f"second return value must be an exception type, got '{type_name(failure_type)}'",
                )
            if not is_assignable(value_type, key):
                raise TypeMismatchError(key, value_type)
            return 2

    raise TypeMismatchError(key, declared)


def _is_async(provider: Any) -> bool:
    if inspect.isclass(provider):
        return False
    if inspect.iscoroutinefunction(provider):
        return True
    call = getattr(type(provider), "__call__", None)
    return call is not None and inspect.iscoroutinefunction(call)


__all__ = ["Argument", "ProviderDescriptor", "Registry", "inspect_provider"]
