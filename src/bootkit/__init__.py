from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _pkg_version

try:
    __version__ = _pkg_version("bootkit")
except PackageNotFoundError:  # pragma: no cover
    # running from a source checkout without installation
    __version__ = "0.0.0"

from .api import (
    AlreadyInitializedError,
    AlreadyStartedError,
    AlreadyStartedPhaseError,
    BootkitError,
    CyclicDependencyError,
    DuplicateNameError,
    Extension,
    HookFailureError,
    InvalidProviderError,
    MissingDependencyError,
    NotFoundError,
    NotInitializedError,
    Provider,
    StartupConfigError,
)
from .core.config import StartupConfig
from .runtime.orchestrator import Orchestrator, OrchestratorState, StartFault, StartupResult
from .runtime.registry import ProviderEntry, ProviderState

__all__ = [
    "Orchestrator",
    "OrchestratorState",
    "StartupConfig",
    "StartupResult",
    "StartFault",
    "ProviderEntry",
    "ProviderState",
    "Provider",
    "Extension",
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
    "__version__",
]
