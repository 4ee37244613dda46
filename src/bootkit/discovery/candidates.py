# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Normalization of discovered provider/extension candidates.

Whatever finds the candidates (package scanning, entry points, a hand-written
list) hands them over as objects or mappings shaped like

    {"name": "db", "dependencies": [...], "init": fn, "start": fn, "extensions": [...]}
    {"name": "audit", "prepare": fn, "before_init": fn, "before_start": fn}

Discovery is best-effort: a malformed candidate is logged as a warning and
skipped rather than aborting the whole batch. Name conflicts are not a shape
problem and are left to the registry, which rejects them.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..api.contracts import HOOK_NAMES, Extension, Provider, looks_like_extension, object_name
from ..api.errors import InvalidProviderError
from ..core.log import get_logger
from ..core.utils import describe

NameFor = Callable[[Any], "str | None"]

_PROVIDER_KEYS = frozenset({"name", "dependencies", "init", "start", "extensions"})
_EXTENSION_KEYS = frozenset({"name", *HOOK_NAMES})
_SCALARS = (str, bytes, int, float, bool)

_log = get_logger("discovery")


class CandidateKind(str, Enum):
    PROVIDER = "provider"
    EXTENSION = "extension"


@dataclass(frozen=True)
class Candidate:
    kind: CandidateKind
    name: str
    obj: Any


def classify(obj: Any) -> CandidateKind:
    """
    Tell providers from extensions: an object exposing hooks and no lifecycle
    methods of its own is an extension, anything else a provider.
    """
    if isinstance(obj, Extension) or looks_like_extension(obj):
        return CandidateKind.EXTENSION
    return CandidateKind.PROVIDER


def from_mapping(data: Mapping[str, Any]) -> Provider | Extension:
    """Build a Provider or Extension from a mapping-shaped candidate."""
    keys = set(data)
    if keys & set(HOOK_NAMES) and not keys & {"init", "start", "dependencies", "extensions"}:
        unknown = keys - _EXTENSION_KEYS
        if unknown:
            raise InvalidProviderError(f"unknown extension field(s): {sorted(unknown)}")
        for hook in HOOK_NAMES:
            if hook in data and not callable(data[hook]):
                raise InvalidProviderError(f"extension field {hook!r} must be callable")
        return Extension(data.get("name"), **{h: data[h] for h in HOOK_NAMES if h in data})

    unknown = keys - _PROVIDER_KEYS
    if unknown:
        raise InvalidProviderError(f"unknown provider field(s): {sorted(unknown)}")
    return Provider(
        data.get("name"),
        dependencies=data.get("dependencies") or (),
        extensions=data.get("extensions") or (),
        init=data.get("init"),
        start=data.get("start"),
    )


def _check_shape(obj: Any) -> None:
    if obj is None or isinstance(obj, _SCALARS):
        raise InvalidProviderError(f"{obj!r} is not a provider or extension")
    name = getattr(obj, "name", None)
    if name is not None and not isinstance(name, str):
        raise InvalidProviderError(f"{describe(obj)}: name must be a string, got {type(name).__name__}")
    for attr in ("init", "start", *HOOK_NAMES):
        val = getattr(obj, attr, None)
        if val is not None and not callable(val):
            raise InvalidProviderError(f"{describe(obj)}: {attr!r} must be callable")
    deps = getattr(obj, "dependencies", None)
    if deps is not None and not isinstance(deps, (str, Iterable)):
        raise InvalidProviderError(f"{describe(obj)}: dependencies must be iterable")


def normalize_candidate(raw: Any, *, name_for: NameFor | None = None) -> Candidate:
    """Validate one candidate; raises InvalidProviderError when it is malformed."""
    obj = from_mapping(raw) if isinstance(raw, Mapping) else raw
    _check_shape(obj)
    name = object_name(obj)
    if name is None and name_for is not None:
        name = name_for(raw)
    if not name:
        raise InvalidProviderError(f"{describe(obj)} has no name and none could be derived")
    if not isinstance(name, str) or name.strip() != name:
        raise InvalidProviderError(f"{describe(obj)}: invalid name {name!r}")
    return Candidate(kind=classify(obj), name=name, obj=obj)


def normalize_candidates(candidates: Iterable[Any], *, name_for: NameFor | None = None) -> list[Candidate]:
    """
    Validate a batch of candidates, skipping malformed ones with a warning.

    Order is preserved.
    """
    out: list[Candidate] = []
    for index, raw in enumerate(candidates):
        try:
            out.append(normalize_candidate(raw, name_for=name_for))
        except InvalidProviderError as e:
            _log.warning("discovery.candidate.skipped", index=index, reason=str(e))
    return out
