# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Error taxonomy for bootkit.

Registration and lookup errors reject the single offending call. Sort, hook and
init errors abort the startup sequence and surface through `StartupResult.error`.
"""

from collections.abc import Sequence


class BootkitError(Exception):
    """Base class for all bootkit errors."""

    ...


class DuplicateNameError(BootkitError):
    """
    A provider or extension with this name is already registered, or the same
    provider instance is already registered under another name (`existing`).
    """

    def __init__(self, kind: str, name: str, *, existing: str | None = None) -> None:
        if existing is None:
            msg = f"{kind} already registered: {name!r}"
        else:
            msg = f"{kind} instance already registered as {existing!r}, cannot register it again as {name!r}"
        super().__init__(msg)
        self.kind = kind
        self.name = name
        self.existing = existing


class NotFoundError(BootkitError, LookupError):
    """No provider or extension is registered under the requested name."""

    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f"unknown {kind}: {name!r}")
        self.kind = kind
        self.name = name


class InvalidProviderError(BootkitError):
    """The object does not have the shape of a provider or extension."""

    ...


class CyclicDependencyError(BootkitError):
    """
    The dependency graph contains a cycle.

    Attributes:
        path: Provider names along the cycle, first name repeated at the end.
    """

    def __init__(self, path: Sequence[str]) -> None:
        self.path = list(path)
        super().__init__(f"cyclic dependency: {' -> '.join(self.path)}")


class MissingDependencyError(BootkitError):
    """A declared dependency is not a registered provider."""

    def __init__(self, provider: str, dependency: str) -> None:
        super().__init__(f"{provider!r} depends on {dependency}, which is not registered")
        self.provider = provider
        self.dependency = dependency


class AlreadyStartedError(BootkitError):
    """Mutation after the system started, or a second start attempt."""

    ...


class AlreadyInitializedError(BootkitError):
    """A provider's init was invoked again after it had already run."""

    def __init__(self, name: str) -> None:
        super().__init__(f"provider {name!r} is already initialized")
        self.name = name


class AlreadyStartedPhaseError(BootkitError):
    """A provider's start was invoked again after it had already been dispatched."""

    def __init__(self, name: str) -> None:
        super().__init__(f"provider {name!r} is already started")
        self.name = name


class NotInitializedError(BootkitError):
    """A provider's start was invoked before its init completed."""

    def __init__(self, name: str) -> None:
        super().__init__(f"provider {name!r} is not initialized")
        self.name = name


class HookFailureError(BootkitError):
    """
    An extension hook raised. The original exception is chained as __cause__.

    Attributes:
        hook: Hook name ("prepare", "before_init", "before_start").
        extension: Extension name.
        provider: Target provider name, None for "prepare".
    """

    def __init__(self, hook: str, extension: str, provider: str | None, cause: BaseException) -> None:
        target = f" for provider {provider!r}" if provider is not None else ""
        super().__init__(f"extension {extension!r} failed in {hook}{target}: {cause!r}")
        self.hook = hook
        self.extension = extension
        self.provider = provider


class StartupConfigError(BootkitError, ValueError):
    """Unknown or mistyped startup option."""

    ...
