# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""initgraph: dependency-ordered initialization of provider-built values.

This module exports the core API surface. Lower-level pieces are available
through their submodules:

- ``initgraph.dag`` - the graph primitive and topological sort
- ``initgraph.registry`` - provider inspection and the type registry
- ``initgraph.teardown`` - teardown capability protocols and runner
- ``initgraph.testing`` - closeable stand-ins for tests

Example:
    >>> container = Container()
    >>> container.register(Settings, load_settings).register(Database, open_database)
    >>> container.build()
    >>> container.get(Database)
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from .config import ContainerConfig, TeardownOrder
from .container import Container, ProviderNode
from .exceptions import (
    BuildError,
    CircularDependencyError,
    ContainerError,
    ContainerErrorCode,
    DuplicateRegistrationError,
    InvalidGraphError,
    InvalidProviderError,
    InvalidTypeKeyError,
    LifecycleError,
    MissingDependencyError,
    NotBuiltError,
    RegistrationError,
    ResolutionError,
    TeardownError,
    TypeMismatchError,
    UnknownTypeError,
)
from .plan import BuildPlan, PlanStep
from .registry import Argument, ProviderDescriptor, Registry
from .teardown import SupportsAclose, SupportsClose, is_closeable

try:
    __version__ = version("initgraph")
except PackageNotFoundError:
    __version__ = "0.0.0+local"


__all__ = [
    "Argument",
    "BuildError",
    "BuildPlan",
    "CircularDependencyError",
    "Container",
    "ContainerConfig",
    "ContainerError",
    "ContainerErrorCode",
    "DuplicateRegistrationError",
    "InvalidGraphError",
    "InvalidProviderError",
    "InvalidTypeKeyError",
    "LifecycleError",
    "MissingDependencyError",
    "NotBuiltError",
    "PlanStep",
    "ProviderDescriptor",
    "ProviderNode",
    "RegistrationError",
    "Registry",
    "ResolutionError",
    "SupportsAclose",
    "SupportsClose",
    "TeardownError",
    "TeardownOrder",
    "TypeMismatchError",
    "UnknownTypeError",
    "__version__",
    "is_closeable",
]
