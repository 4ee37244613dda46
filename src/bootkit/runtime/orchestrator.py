# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Lifecycle orchestrator.

Responsibilities:
  - Own the registry of providers and extensions (one orchestrator per process or per test).
  - Resolve the init order (dependency sort, or an explicit caller-supplied order).
  - Run `prepare` hooks, then initialize providers one by one, each fully awaited.
  - Run the optional post-init callback, then dispatch each provider's `start`
    as its own tracked asyncio task without waiting for it.
  - Fire the "started" signal exactly once.

Failure semantics:
  - Anything raised before the start tasks are dispatched (sort, hooks, init,
    post-init callback, before_start hooks) aborts startup. The result is a
    failed StartupResult; the orchestrator never becomes started.
  - A raising `start` is isolated to its task: it is recorded in
    `start_faults`, logged and counted, and does not affect sibling tasks.

Minimal lifecycle:
    orch = Orchestrator()
    orch.register_provider(db)
    orch.register_provider(api)
    result = await orch.start()
    result.raise_for_error()
"""

import asyncio
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from ..api.errors import AlreadyStartedError, StartupConfigError
from ..core.config import StartupConfig
from ..core.log import get_logger, log_context
from ..core.time import Clock, SystemClock
from ..core.utils import call_maybe_async
from ..discovery import CandidateKind, NameFor, normalize_candidates
from ..graph.sort import dependency_names, make_lookup, topological_sort
from .hooks_runner import ExtensionPipeline, Hook
from .metrics import LifecycleMetrics
from .registry import ProviderEntry, Registry


class OrchestratorState(str, Enum):
    NOT_STARTED = "not_started"
    INITIALIZING = "initializing"
    STARTED = "started"
    FAILED = "failed"


@dataclass(frozen=True)
class StartFault:
    """A provider whose `start` raised."""

    provider: str
    error: BaseException


@dataclass(frozen=True)
class StartupResult:
    """
    Outcome of `Orchestrator.start()`.

    Attributes:
        ok: True when every provider initialized and every start was dispatched.
        error: The exception that aborted startup (None on success).
        order: Provider names in init order (empty if the order could not be resolved).
        init_timings_ms: Elapsed init time per initialized provider.
        total_init_ms: Sum of `init_timings_ms`.
    """

    ok: bool
    error: BaseException | None = None
    order: tuple[str, ...] = ()
    init_timings_ms: Mapping[str, float] = field(default_factory=dict)
    total_init_ms: float = 0.0

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


class Orchestrator:
    def __init__(
        self,
        *,
        clock: Clock | None = None,
        metrics: LifecycleMetrics | None = None,
        logger: logging.LoggerAdapter | None = None,
    ) -> None:
        self.registry = Registry()
        self.hooks = ExtensionPipeline(self.registry)
        self.clock = clock or SystemClock()
        self.metrics = metrics or LifecycleMetrics.create()
        self.log = logger or get_logger("orchestrator")

        self._state = OrchestratorState.NOT_STARTED
        self._started = asyncio.Event()
        self._start_tasks: dict[str, asyncio.Task] = {}
        self._faults: list[StartFault] = []

    # ---- registration ------------------------------------------------------

    def register_provider(self, provider: Any, *, name: str | None = None) -> ProviderEntry:
        return self.registry.register(provider, name=name)

    def register_extension(self, extension: Any, *, name: str | None = None) -> Any:
        return self.registry.register_extension(extension, name=name)

    def load(self, candidates: Iterable[Any], *, name_for: NameFor | None = None) -> list[str]:
        """
        Register discovered providers and extensions.

        Malformed candidates are skipped with a warning; a name already taken by
        a different object raises DuplicateNameError. Returns registered names.
        """
        names: list[str] = []
        for cand in normalize_candidates(candidates, name_for=name_for):
            if cand.kind is CandidateKind.EXTENSION:
                self.registry.register_extension(cand.obj, name=cand.name)
            else:
                self.registry.register(cand.obj, name=cand.name)
            names.append(cand.name)
        self.log.debug("orchestrator.load.done", registered=len(names))
        return names

    # ---- queries -----------------------------------------------------------

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def is_started(self) -> bool:
        return self._state is OrchestratorState.STARTED

    @property
    def providers(self) -> Mapping[str, Any]:
        view = self.registry.view
        if view is not None:
            return view.providers
        return MappingProxyType({e.name: e.provider for e in self.registry.entries()})

    @property
    def start_faults(self) -> tuple[StartFault, ...]:
        return tuple(self._faults)

    def get_provider(self, name: str) -> Any:
        return self.registry.get(name)

    def get_extension(self, name: str) -> Any:
        return self.registry.get_extension(name)

    def entry(self, name: str) -> ProviderEntry:
        return self.registry.entry(name)

    async def when_started(self) -> bool:
        """Resolve once the system is started; immediately if it already is."""
        if not self.is_started:
            await self._started.wait()
        return True

    async def wait_for_start_tasks(self) -> tuple[StartFault, ...]:
        """Await every dispatched start task; returns the recorded faults."""
        if self._start_tasks:
            await asyncio.gather(*self._start_tasks.values(), return_exceptions=True)
        return self.start_faults

    # ---- startup -----------------------------------------------------------

    async def start(self, config: StartupConfig | Mapping[str, Any] | None = None, **options: Any) -> StartupResult:
        """
        Run the startup sequence once.

        Options (see StartupConfig): explicit_provider_order,
        post_init_pre_start_callback, debug_logging.
        """
        if self._state is not OrchestratorState.NOT_STARTED:
            err = AlreadyStartedError(f"start() was already called (state={self._state.value})")
            self.log.warning("orchestrator.start.rejected", state=self._state.value)
            return StartupResult(ok=False, error=err)

        try:
            cfg = StartupConfig.from_options(config, **options)
        except StartupConfigError as e:
            self.log.error("orchestrator.start.bad_config", error=str(e))
            return StartupResult(ok=False, error=e)

        self._state = OrchestratorState.INITIALIZING
        order: list[ProviderEntry] = []
        timings: dict[str, float] = {}
        try:
            order = self._resolve_order(cfg)
            self.registry.freeze()
            await self.hooks.run_prepare()
            await self._init_phase(order, timings, debug=cfg.debug_logging)
            if cfg.post_init_pre_start_callback is not None:
                await call_maybe_async(cfg.post_init_pre_start_callback)
            await self._start_phase(order)
        except asyncio.CancelledError:
            self._fail()
            raise
        except Exception as e:
            self._fail()
            self.log.error("orchestrator.start.failed", exc_info=e)
            self.metrics.startups_total.labels(result="failed").inc()
            return StartupResult(
                ok=False,
                error=e,
                order=tuple(x.name for x in order),
                init_timings_ms=dict(timings),
                total_init_ms=sum(timings.values()),
            )

        self._state = OrchestratorState.STARTED
        self.registry.mark_started()
        self._started.set()
        self.metrics.startups_total.labels(result="ok").inc()
        self.log.info("orchestrator.started", providers=len(order), dispatched=len(self._start_tasks))
        return StartupResult(
            ok=True,
            order=tuple(x.name for x in order),
            init_timings_ms=dict(timings),
            total_init_ms=sum(timings.values()),
        )

    def _fail(self) -> None:
        self._state = OrchestratorState.FAILED
        self.registry.freeze()

    def _resolve_order(self, cfg: StartupConfig) -> list[ProviderEntry]:
        if cfg.explicit_provider_order is None:
            entries = self.registry.entries()
            lookup = make_lookup(entries)
            order = topological_sort(entries, lookup)
            self.log.debug(
                "orchestrator.order.sorted",
                order=[e.name for e in order],
                dependencies={e.name: dependency_names(e, lookup) for e in order},
            )
            return order

        # Explicit order: used verbatim, registering entries not seen before.
        order = []
        seen: set[str] = set()
        for cand in normalize_candidates(cfg.explicit_provider_order):
            if cand.kind is CandidateKind.EXTENSION:
                self.registry.register_extension(cand.obj, name=cand.name)
                continue
            entry = self.registry.register(cand.obj, name=cand.name)
            if entry.name in seen:
                self.log.warning("orchestrator.order.duplicate", provider=entry.name)
                continue
            seen.add(entry.name)
            order.append(entry)
        self.log.debug("orchestrator.order.explicit", order=[e.name for e in order])
        return order

    async def _init_phase(self, order: list[ProviderEntry], timings: dict[str, float], *, debug: bool) -> None:
        level = logging.INFO if debug else logging.DEBUG
        for entry in order:
            with log_context(provider=entry.name, phase="init"):
                if entry.has_init:
                    await self.hooks.run(Hook.BEFORE_INIT, entry)
                t0 = self.clock.mono_ms()
                await entry.init()
                elapsed = self.clock.mono_ms() - t0
                if entry.has_init:
                    entry.init_elapsed_ms = elapsed
                    timings[entry.name] = elapsed
                    self.metrics.init_duration_ms.labels(provider=entry.name).observe(elapsed)
                    self.log.log(level, "orchestrator.init.done", elapsed_ms=round(elapsed, 3))
        self.log.log(level, "orchestrator.init.total", providers=len(timings), total_ms=round(sum(timings.values()), 3))

    async def _start_phase(self, order: list[ProviderEntry]) -> None:
        for entry in order:
            with log_context(provider=entry.name, phase="start"):
                if not entry.has_start:
                    await entry.start()
                    continue
                await self.hooks.run(Hook.BEFORE_START, entry)
                self._spawn_start(entry)

    def _spawn_start(self, entry: ProviderEntry) -> None:
        task = asyncio.create_task(self._run_start(entry), name=f"bootkit.start:{entry.name}")
        self._start_tasks[entry.name] = task

    async def _run_start(self, entry: ProviderEntry) -> None:
        try:
            await entry.start()
        except Exception as e:
            self._faults.append(StartFault(provider=entry.name, error=e))
            self.metrics.start_faults_total.labels(provider=entry.name).inc()
            self.log.exception("orchestrator.start.fault", error=repr(e))
            return
        self.metrics.providers_started_total.labels(provider=entry.name).inc()
        self.log.debug("orchestrator.start.done")
