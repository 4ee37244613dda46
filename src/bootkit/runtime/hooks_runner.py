# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Extension hook pipeline.

Dispatches `prepare` once across all registered extensions, and
`before_init`/`before_start` per provider across the global extensions
(registration order) followed by the provider's local extensions (declaration
order). Hooks are awaited before the provider's own method runs; a failing hook
is wrapped in HookFailureError and propagates.
"""

from collections.abc import Iterable
from enum import Enum
from typing import Any

from ..api.contracts import has_hook, object_name
from ..api.errors import HookFailureError
from ..core.log import get_logger, log_context
from ..core.utils import call_maybe_async, describe
from .registry import ProviderEntry, Registry


class Hook(str, Enum):
    PREPARE = "prepare"
    BEFORE_INIT = "before_init"
    BEFORE_START = "before_start"


class ExtensionPipeline:
    def __init__(self, registry: Registry) -> None:
        self._registry = registry
        self._log = get_logger("extensions")

    async def run_prepare(self) -> None:
        """Run `prepare` on every registered extension, in registration order."""
        for ext in self._registry.extensions():
            await self._invoke(Hook.PREPARE, ext, None)

    async def run(self, hook: Hook, entry: ProviderEntry) -> None:
        """Run a per-provider hook: global extensions first, then local ones."""
        if hook is Hook.PREPARE:
            raise ValueError("prepare is a global hook; use run_prepare()")
        for ext in self._registry.extensions():
            await self._invoke(hook, ext, entry)
        for ext in self.local_extensions(entry):
            await self._invoke(hook, ext, entry)

    def local_extensions(self, entry: ProviderEntry) -> list[Any]:
        declared = getattr(entry.provider, "extensions", None)
        if not declared:
            return []
        if not isinstance(declared, Iterable):
            self._log.warning("extensions.local.invalid", provider=entry.name, reason="not iterable")
            return []
        out: list[Any] = []
        for ext in declared:
            if object_name(ext) is None:
                self._log.warning("extensions.local.skipped", provider=entry.name, extension=describe(ext))
                continue
            out.append(ext)
        return out

    async def _invoke(self, hook: Hook, ext: Any, entry: ProviderEntry | None) -> None:
        if not has_hook(ext, hook.value):
            return
        ext_name = object_name(ext) or describe(ext)
        provider_name = entry.name if entry is not None else None
        fn = getattr(ext, hook.value)
        with log_context(hook=hook.value, extension=ext_name):
            try:
                if entry is None:
                    await call_maybe_async(fn)
                else:
                    await call_maybe_async(fn, entry.provider)
            except Exception as e:
                self._log.error("extensions.hook.failed", provider=provider_name, exc_info=e)
                raise HookFailureError(hook.value, ext_name, provider_name, e) from e
            self._log.debug("extensions.hook.done", provider=provider_name)
