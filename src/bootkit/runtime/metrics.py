# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Prometheus metrics for the lifecycle orchestrator.

Each orchestrator gets its own CollectorRegistry unless one is passed in, so
several orchestrators (one per test, for instance) can coexist in a process.
Labels stay low-cardinality: provider names are bounded by the registry.
"""

from dataclasses import dataclass

from prometheus_client import CollectorRegistry, Counter, Histogram


@dataclass
class LifecycleMetrics:
    registry: CollectorRegistry
    init_duration_ms: Histogram
    providers_started_total: Counter
    start_faults_total: Counter
    startups_total: Counter

    @classmethod
    def create(cls, registry: CollectorRegistry | None = None) -> LifecycleMetrics:
        reg = registry if registry is not None else CollectorRegistry()
        init_duration_ms = Histogram(
            "bootkit_provider_init_duration_ms",
            "Time spent in a provider's init (ms)",
            ["provider"],
            buckets=(1, 5, 10, 25, 50, 100, 250, 500, 1000, 5000),
            registry=reg,
        )
        providers_started_total = Counter(
            "bootkit_providers_started_total", "Providers whose start completed", ["provider"], registry=reg
        )
        start_faults_total = Counter(
            "bootkit_provider_start_faults_total", "Providers whose start raised", ["provider"], registry=reg
        )
        startups_total = Counter(
            "bootkit_startups_total", "Startup attempts by result", ["result"], registry=reg
        )
        return cls(
            registry=reg,
            init_duration_ms=init_duration_ms,
            providers_started_total=providers_started_total,
            start_faults_total=start_faults_total,
            startups_total=startups_total,
        )
