# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Provider/extension registry.

The registry owns the canonical provider and extension instances for one
orchestrator. It is mutable until `freeze()` (called when initialization
begins) and read-only afterwards.
"""

from collections.abc import Iterator
from contextlib import suppress
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from ..api.contracts import is_initializable, is_startable, object_name
from ..api.errors import (
    AlreadyInitializedError,
    AlreadyStartedError,
    AlreadyStartedPhaseError,
    DuplicateNameError,
    InvalidProviderError,
    NotFoundError,
    NotInitializedError,
)
from ..core.log import get_logger
from ..core.utils import call_maybe_async, describe


class ProviderState(str, Enum):
    REGISTERED = "registered"
    INITIALIZING = "initializing"
    INITIALIZED = "initialized"
    INIT_FAILED = "init_failed"
    STARTING = "starting"
    STARTED = "started"
    START_FAILED = "start_failed"


class ProviderEntry:
    """
    Registry record for one provider: the canonical instance plus its
    lifecycle state.

    `init()` and `start()` are the guarded entry points; each runs the
    provider's own method at most once.
    """

    def __init__(self, name: str, provider: Any) -> None:
        self.name = name
        self.provider = provider
        self.state = ProviderState.REGISTERED
        self.init_elapsed_ms: float | None = None
        self.start_error: BaseException | None = None

    def __repr__(self) -> str:
        return f"ProviderEntry(name={self.name!r}, state={self.state.value})"

    @property
    def is_initialized(self) -> bool:
        return self.state in (
            ProviderState.INITIALIZED,
            ProviderState.STARTING,
            ProviderState.STARTED,
            ProviderState.START_FAILED,
        )

    @property
    def is_started(self) -> bool:
        return self.state is ProviderState.STARTED

    @property
    def has_init(self) -> bool:
        return is_initializable(self.provider)

    @property
    def has_start(self) -> bool:
        return is_startable(self.provider)

    async def init(self) -> None:
        if self.state is not ProviderState.REGISTERED:
            raise AlreadyInitializedError(self.name)
        self.state = ProviderState.INITIALIZING
        try:
            if self.has_init:
                await call_maybe_async(self.provider.init)
        except BaseException:
            self.state = ProviderState.INIT_FAILED
            raise
        self.state = ProviderState.INITIALIZED

    async def start(self) -> None:
        if self.state in (ProviderState.STARTING, ProviderState.STARTED, ProviderState.START_FAILED):
            raise AlreadyStartedPhaseError(self.name)
        if self.state is not ProviderState.INITIALIZED:
            raise NotInitializedError(self.name)
        self.state = ProviderState.STARTING
        try:
            if self.has_start:
                await call_maybe_async(self.provider.start)
        except BaseException as e:
            self.state = ProviderState.START_FAILED
            self.start_error = e
            raise
        self.state = ProviderState.STARTED


class RegistryView:
    """Read-only view of a frozen registry."""

    def __init__(self, providers: Mapping[str, ProviderEntry], extensions: Mapping[str, Any]) -> None:
        self.entries: Mapping[str, ProviderEntry] = MappingProxyType(dict(providers))
        self.providers: Mapping[str, Any] = MappingProxyType({n: e.provider for n, e in providers.items()})
        self.extensions: Mapping[str, Any] = MappingProxyType(dict(extensions))


class Registry:
    """
    Name -> provider and name -> extension maps with duplicate checks and the
    "no registration after start" rule.
    """

    def __init__(self) -> None:
        self._providers: dict[str, ProviderEntry] = {}
        self._extensions: dict[str, Any] = {}
        self._frozen = False
        self._started = False
        self._view: RegistryView | None = None
        self._warned: set[str] = set()
        self._log = get_logger("registry")

    # ---- registration ------------------------------------------------------

    def _check_open(self, kind: str, name: str | None) -> None:
        if self._frozen:
            raise AlreadyStartedError(f"cannot register {kind} {name!r}: the system has already started")

    def _resolve_name(self, kind: str, obj: Any, name: str | None) -> str:
        resolved = name if name is not None else object_name(obj)
        if not resolved or resolved.strip() != resolved:
            raise InvalidProviderError(f"{kind} {describe(obj)} has no valid name")
        return resolved

    def register(self, provider: Any, *, name: str | None = None) -> ProviderEntry:
        """
        Register a provider; returns its entry.

        Re-registering the same instance under the same name is a no-op; under
        another name it is a DuplicateNameError (one entry per instance).
        """
        self._check_open("provider", name or object_name(provider))
        resolved = self._resolve_name("provider", provider, name)
        existing = self._providers.get(resolved)
        if existing is not None:
            if existing.provider is provider:
                return existing
            raise DuplicateNameError("provider", resolved)
        owner = self.find_entry(provider)
        if owner is not None:
            raise DuplicateNameError("provider", resolved, existing=owner.name)
        if getattr(provider, "name", None) is None:
            # frozen/slotted objects keep their own attributes
            with suppress(AttributeError):
                provider.name = resolved
        entry = ProviderEntry(resolved, provider)
        self._providers[resolved] = entry
        self._log.debug("registry.provider.registered", provider=resolved)
        return entry

    def register_extension(self, extension: Any, *, name: str | None = None) -> Any:
        self._check_open("extension", name or object_name(extension))
        resolved = self._resolve_name("extension", extension, name)
        existing = self._extensions.get(resolved)
        if existing is not None:
            if existing is extension:
                return existing
            raise DuplicateNameError("extension", resolved)
        for other, ext in self._extensions.items():
            if ext is extension:
                raise DuplicateNameError("extension", resolved, existing=other)
        self._extensions[resolved] = extension
        self._log.debug("registry.extension.registered", extension=resolved)
        return extension

    def freeze(self) -> RegistryView:
        """Make the registry read-only; returns the immutable view."""
        if self._view is None:
            self._frozen = True
            self._view = RegistryView(self._providers, self._extensions)
        return self._view

    def mark_started(self) -> None:
        self._started = True

    # ---- lookups -----------------------------------------------------------

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def view(self) -> RegistryView | None:
        return self._view

    def entry(self, name: str) -> ProviderEntry:
        try:
            return self._providers[name]
        except KeyError as e:
            raise NotFoundError("provider", name) from e

    def get(self, name: str) -> Any:
        """
        Return the provider registered as `name`.

        Before the system has started the provider may not be initialized yet;
        this is reported once per name as a warning, not an error.
        """
        entry = self.entry(name)
        if not self._started and name not in self._warned:
            self._warned.add(name)
            self._log.warning("registry.get.before_start", provider=name, state=entry.state.value)
        return entry.provider

    def get_extension(self, name: str) -> Any:
        try:
            return self._extensions[name]
        except KeyError as e:
            raise NotFoundError("extension", name) from e

    def find_entry(self, provider: Any) -> ProviderEntry | None:
        """Entry owning this exact instance, if registered."""
        for e in self._providers.values():
            if e.provider is provider:
                return e
        return None

    def entries(self) -> list[ProviderEntry]:
        return list(self._providers.values())

    def extensions(self) -> list[Any]:
        return list(self._extensions.values())

    def __contains__(self, name: object) -> bool:
        return name in self._providers

    def __iter__(self) -> Iterator[str]:
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)
