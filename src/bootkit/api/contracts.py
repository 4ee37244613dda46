# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Capability contracts for providers and extensions (public, stable).

A provider is any object with a `name`; it opts into lifecycle phases by
implementing `init()` and/or `start()`, and into ordering by exposing
`dependencies`. The orchestrator checks these capabilities by presence, so
plain classes, dataclasses and `Provider` instances are all valid.

Both `init()` and `start()` may be regular callables or coroutine functions;
awaitable results are awaited by the orchestrator.
"""

from collections.abc import Callable, Iterable, Sequence
from typing import Any, Awaitable, Protocol, Union, runtime_checkable

MaybeAwaitable = Union[Awaitable[Any], Any]


@runtime_checkable
class Initializable(Protocol):
    """Provider with a one-shot init phase, run in dependency order."""

    def init(self) -> MaybeAwaitable: ...


@runtime_checkable
class Startable(Protocol):
    """Provider with a one-shot start phase, run concurrently after all inits."""

    def start(self) -> MaybeAwaitable: ...


@runtime_checkable
class DependencyDeclaring(Protocol):
    """Provider that must be initialized after the providers it lists."""

    dependencies: Iterable[Any]


@runtime_checkable
class ExtensionHooks(Protocol):
    """
    Hook bundle observing provider lifecycle transitions.

    Every hook is optional; implement any subset.
    """

    name: str

    def prepare(self) -> MaybeAwaitable: ...
    def before_init(self, provider: Any) -> MaybeAwaitable: ...
    def before_start(self, provider: Any) -> MaybeAwaitable: ...


HOOK_NAMES: tuple[str, ...] = ("prepare", "before_init", "before_start")
_LIFECYCLE_NAMES: tuple[str, ...] = ("init", "start")


def _has_callable(obj: Any, attr: str) -> bool:
    return callable(getattr(obj, attr, None))


def is_initializable(obj: Any) -> bool:
    return isinstance(obj, Initializable) and _has_callable(obj, "init")


def is_startable(obj: Any) -> bool:
    return isinstance(obj, Startable) and _has_callable(obj, "start")


def declares_dependencies(obj: Any) -> bool:
    return isinstance(obj, DependencyDeclaring) and getattr(obj, "dependencies", None) is not None


def has_hook(obj: Any, hook: str) -> bool:
    return _has_callable(obj, hook)


def object_name(obj: Any) -> str | None:
    """Return the declared `name` if it is a non-empty string."""
    name = getattr(obj, "name", None)
    if isinstance(name, str) and name.strip():
        return name
    return None


def looks_like_extension(obj: Any) -> bool:
    """Hooks only, no lifecycle methods of its own."""
    return any(has_hook(obj, h) for h in HOOK_NAMES) and not any(_has_callable(obj, m) for m in _LIFECYCLE_NAMES)


class Provider:
    """
    Convenience base for providers.

    Subclass and define `init`/`start` methods, or pass callables:

        db = Provider("db", init=connect_pool)
        api = Provider("api", dependencies=[db], start=serve)
    """

    name: str | None = None
    dependencies: Sequence[Any] = ()
    extensions: Sequence[Any] = ()

    def __init__(
        self,
        name: str | None = None,
        *,
        dependencies: Iterable[Any] = (),
        extensions: Iterable[Any] = (),
        init: Callable[[], MaybeAwaitable] | None = None,
        start: Callable[[], MaybeAwaitable] | None = None,
    ) -> None:
        if name is not None:
            self.name = name
        self.dependencies = list(dependencies)
        self.extensions = list(extensions)
        if init is not None:
            self.init = init
        if start is not None:
            self.start = start

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class Extension:
    """
    Convenience base for extensions; override hooks or pass callables.

        audit = Extension("audit", before_init=lambda p: log.info("init %s", p.name))
    """

    name: str | None = None

    def __init__(
        self,
        name: str | None = None,
        *,
        prepare: Callable[[], MaybeAwaitable] | None = None,
        before_init: Callable[[Any], MaybeAwaitable] | None = None,
        before_start: Callable[[Any], MaybeAwaitable] | None = None,
    ) -> None:
        if name is not None:
            self.name = name
        if prepare is not None:
            self.prepare = prepare
        if before_init is not None:
            self.before_init = before_init
        if before_start is not None:
            self.before_start = before_start

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


__all__ = [
    "DependencyDeclaring",
    "Extension",
    "ExtensionHooks",
    "HOOK_NAMES",
    "Initializable",
    "MaybeAwaitable",
    "Provider",
    "Startable",
    "declares_dependencies",
    "has_hook",
    "is_initializable",
    "is_startable",
    "looks_like_extension",
    "object_name",
]
