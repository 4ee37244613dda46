# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
bootkit public API: capability contracts and the error taxonomy.
"""

from .contracts import (
    DependencyDeclaring,
    Extension,
    ExtensionHooks,
    Initializable,
    Provider,
    Startable,
)
from .errors import (
    AlreadyInitializedError,
    AlreadyStartedError,
    AlreadyStartedPhaseError,
    BootkitError,
    CyclicDependencyError,
    DuplicateNameError,
    HookFailureError,
    InvalidProviderError,
    MissingDependencyError,
    NotFoundError,
    NotInitializedError,
    StartupConfigError,
)

__all__ = [
    # contracts
    "DependencyDeclaring",
    "Extension",
    "ExtensionHooks",
    "Initializable",
    "Provider",
    "Startable",
    # errors
    "BootkitError",
    "DuplicateNameError",
    "NotFoundError",
    "InvalidProviderError",
    "CyclicDependencyError",
    "MissingDependencyError",
    "AlreadyStartedError",
    "AlreadyInitializedError",
    "AlreadyStartedPhaseError",
    "NotInitializedError",
    "HookFailureError",
    "StartupConfigError",
]
