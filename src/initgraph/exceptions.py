# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Error taxonomy for registration, resolution, build, lookup and teardown.

Every library error derives from :class:`ContainerError` and carries a
machine-readable :class:`ContainerErrorCode`. Diagnostics (the offending key,
the requesting key, the cycle) are exposed as attributes so callers do not
need to parse messages.

The one exception outside the hierarchy is :class:`InvalidGraphError`: it
signals a broken internal invariant, not a caller mistake, and subclasses
``AssertionError`` so ``except ContainerError`` never hides it.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Any

from .utils.annotations import type_name


class ContainerErrorCode(str, Enum):
    """Error codes for container failures.

    Registration:
        DUPLICATE_REGISTRATION, INVALID_PROVIDER, INVALID_TYPE_KEY, TYPE_MISMATCH

    Resolution:
        MISSING_DEPENDENCY, CIRCULAR_DEPENDENCY

    Runtime:
        BUILD_FAILURE, UNKNOWN_TYPE, NOT_BUILT, TEARDOWN_FAILURE

    Lifecycle misuse:
        REGISTRY_FROZEN, ALREADY_BUILT, ALREADY_CLOSED, NOT_RESOLVED, ASYNC_PROVIDER
    """

    # Registration
    DUPLICATE_REGISTRATION = "DUPLICATE_REGISTRATION"
    INVALID_PROVIDER = "INVALID_PROVIDER"
    INVALID_TYPE_KEY = "INVALID_TYPE_KEY"
    TYPE_MISMATCH = "TYPE_MISMATCH"

    # Resolution
    MISSING_DEPENDENCY = "MISSING_DEPENDENCY"
    CIRCULAR_DEPENDENCY = "CIRCULAR_DEPENDENCY"

    # Build, lookup, teardown
    BUILD_FAILURE = "BUILD_FAILURE"
    UNKNOWN_TYPE = "UNKNOWN_TYPE"
    NOT_BUILT = "NOT_BUILT"
    TEARDOWN_FAILURE = "TEARDOWN_FAILURE"

    # Lifecycle
    REGISTRY_FROZEN = "REGISTRY_FROZEN"
    ALREADY_BUILT = "ALREADY_BUILT"
    ALREADY_CLOSED = "ALREADY_CLOSED"
    NOT_RESOLVED = "NOT_RESOLVED"
    ASYNC_PROVIDER = "ASYNC_PROVIDER"


class ContainerError(Exception):
    """Base class for every error raised by initgraph."""

    code: ContainerErrorCode

    def __init__(self, message: str, *, code: ContainerErrorCode) -> None:
        super().__init__(message)
        self.code = code


class LifecycleError(ContainerError):
    """Raised when an operation is called in the wrong phase.

    The ``code`` says which rule was broken, e.g. ``ALREADY_BUILT``.
    """


# =============================================================================
# Registration
# =============================================================================


class RegistrationError(ContainerError):
    """Base for errors raised while registering a provider."""

    def __init__(self, message: str, *, code: ContainerErrorCode, key: Any) -> None:
        super().__init__(message, code=code)
        self.key = key


class DuplicateRegistrationError(RegistrationError):
    """A provider is already registered for this key."""

    def __init__(self, key: Any) -> None:
        super().__init__(
            f"a provider for '{type_name(key)}' is already registered",
            code=ContainerErrorCode.DUPLICATE_REGISTRATION,
            key=key,
        )


class InvalidTypeKeyError(RegistrationError):
    """The registration key is not a type."""

    def __init__(self, key: Any) -> None:
        super().__init__(
            f"registration key must be a type, got {key!r}",
            code=ContainerErrorCode.INVALID_TYPE_KEY,
            key=key,
        )


class InvalidProviderError(RegistrationError):
    """The provider's shape cannot be used to build a value."""

    def __init__(self, key: Any, provider: Any, reason: str) -> None:
        super().__init__(
            f"invalid provider for '{type_name(key)}': {reason}",
            code=ContainerErrorCode.INVALID_PROVIDER,
            key=key,
        )
        self.provider = provider
        self.reason = reason


class TypeMismatchError(RegistrationError):
    """The provider's declared output is not assignable to the key."""

    def __init__(self, key: Any, provided: Any) -> None:
        super().__init__(
            f"provider output '{type_name(provided)}' is not assignable to '{type_name(key)}'",
            code=ContainerErrorCode.TYPE_MISMATCH,
            key=key,
        )
        self.provided = provided


# =============================================================================
# Resolution
# =============================================================================


class ResolutionError(ContainerError):
    """Base for errors raised while deriving the dependency graph."""


class MissingDependencyError(ResolutionError):
    """A provider requires a type nobody provides.

    Attributes:
        missing: The unregistered dependency key.
        requested_by: The key whose provider asked for it.
    """

    def __init__(self, missing: Any, requested_by: Any) -> None:
        super().__init__(
            f"missing provider for '{type_name(missing)}' (required by '{type_name(requested_by)}')",
            code=ContainerErrorCode.MISSING_DEPENDENCY,
        )
        self.missing = missing
        self.requested_by = requested_by


class CircularDependencyError(ResolutionError):
    """The dependency graph contains a cycle.

    Attributes:
        cycle: Keys along the cycle, starting and ending with the same key.
    """

    def __init__(self, cycle: Sequence[Any]) -> None:
        self.cycle = list(cycle)
        path = " -> ".join(type_name(key) for key in self.cycle)
        super().__init__(
            f"cycle detected on type '{type_name(self.key)}': {path}",
            code=ContainerErrorCode.CIRCULAR_DEPENDENCY,
        )

    @property
    def key(self) -> Any:
        """The type at which the cycle was detected."""
        return self.cycle[0] if self.cycle else None


class InvalidGraphError(AssertionError):
    """Topological sort made no progress. Indicates a bug, not bad input."""


# =============================================================================
# Build, lookup, teardown
# =============================================================================


class BuildError(ContainerError):
    """A provider failed. The provider's own failure is the ``__cause__``."""

    def __init__(self, key: Any, message: str | None = None) -> None:
        super().__init__(
            message or f"provider for '{type_name(key)}' failed",
            code=ContainerErrorCode.BUILD_FAILURE,
        )
        self.key = key


class UnknownTypeError(ContainerError, LookupError):
    """No provider was ever registered for the requested key."""

    def __init__(self, key: Any) -> None:
        super().__init__(f"no provider registered for '{type_name(key)}'", code=ContainerErrorCode.UNKNOWN_TYPE)
        self.key = key

    def __str__(self) -> str:
        return str(self.args[0])


class NotBuiltError(ContainerError):
    """The container has not completed a successful build."""

    def __init__(self, key: Any) -> None:
        super().__init__(
            f"cannot get '{type_name(key)}': container is not built",
            code=ContainerErrorCode.NOT_BUILT,
        )
        self.key = key


class TeardownError(ContainerError):
    """Closing one built value failed. The original error is the ``__cause__``."""

    def __init__(self, key: Any, cause: BaseException) -> None:
        super().__init__(
            f"teardown of '{type_name(key)}' failed: {cause}",
            code=ContainerErrorCode.TEARDOWN_FAILURE,
        )
        self.key = key
        self.__cause__ = cause


__all__ = [
    "BuildError",
    "CircularDependencyError",
    "ContainerError",
    "ContainerErrorCode",
    "DuplicateRegistrationError",
    "InvalidGraphError",
    "InvalidProviderError",
    "InvalidTypeKeyError",
    "LifecycleError",
    "MissingDependencyError",
    "NotBuiltError",
    "RegistrationError",
    "ResolutionError",
    "TeardownError",
    "TypeMismatchError",
    "UnknownTypeError",
]
