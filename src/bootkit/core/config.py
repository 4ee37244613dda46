from __future__ import annotations

"""
bootkit.core.config
===================

Startup options consumed by the orchestrator.

- Strict pydantic validation: unknown keys and mistyped values fail fast.
- Both snake_case field names and camelCase aliases are accepted
  (`explicitProviderOrder`, `postInitPreStartCallback`, `debugLogging`).
- `load()` applies env overrides, then explicit overrides.
"""

import os
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, StrictBool, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from ..api.errors import StartupConfigError

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off", "")


class StartupConfig(BaseModel):
    """
    Attributes:
        explicit_provider_order: Providers/extensions to load, in this exact
            order. Bypasses the dependency sort; providers not listed are not run.
        post_init_pre_start_callback: Zero-argument callable run once after
            every init and before any start; awaited if it returns an awaitable.
        debug_logging: Log per-provider init timings at INFO instead of DEBUG.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        arbitrary_types_allowed=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    explicit_provider_order: list[Any] | None = None
    post_init_pre_start_callback: Callable[[], Any] | None = None
    debug_logging: StrictBool = False

    @field_validator("explicit_provider_order", mode="before")
    @classmethod
    def _order_is_sequence(cls, v: Any) -> Any:
        if v is None:
            return v
        if isinstance(v, (str, bytes, Mapping)) or not hasattr(v, "__iter__"):
            raise ValueError("must be a sequence of providers/extensions")
        return list(v)

    @classmethod
    def from_options(cls, options: StartupConfig | Mapping[str, Any] | None = None, **kwargs: Any) -> StartupConfig:
        """Validate options into a StartupConfig or raise StartupConfigError."""
        if isinstance(options, StartupConfig) and not kwargs:
            return options
        data: dict[str, Any] = {}
        if isinstance(options, StartupConfig):
            data.update({k: getattr(options, k) for k in options.model_fields_set})
        elif options is not None:
            if not isinstance(options, Mapping):
                raise StartupConfigError(f"startup options must be a mapping, got {type(options).__name__}")
            data.update(options)
        data.update(kwargs)
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise StartupConfigError(f"invalid startup options: {e}") from e

    @classmethod
    def load(cls, overrides: Mapping[str, Any] | None = None) -> StartupConfig:
        """
        Build options from the environment, then apply overrides.

        Env:
          - BOOTKIT_DEBUG_LOGGING=1|0
        """
        data: dict[str, Any] = {}
        raw = os.getenv("BOOTKIT_DEBUG_LOGGING")
        if raw is not None:
            val = raw.strip().lower()
            if val in _TRUE:
                data["debug_logging"] = True
            elif val in _FALSE:
                data["debug_logging"] = False
            else:
                raise StartupConfigError(f"BOOTKIT_DEBUG_LOGGING must be a boolean flag, got {raw!r}")
        if overrides:
            data.update(overrides)
        return cls.from_options(data)
