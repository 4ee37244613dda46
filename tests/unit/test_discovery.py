from __future__ import annotations

from dataclasses import dataclass

import pytest

from bootkit import Extension, InvalidProviderError, Provider
from bootkit.discovery import CandidateKind, classify, from_mapping, normalize_candidate, normalize_candidates

pytestmark = [pytest.mark.unit]


def test_mapping_becomes_provider():
    calls = []
    dep = Provider("dep")
    p = from_mapping({"name": "svc", "dependencies": [dep], "init": lambda: calls.append("init")})
    assert isinstance(p, Provider)
    assert p.name == "svc"
    assert p.dependencies == [dep]
    p.init()
    assert calls == ["init"]
    assert not hasattr(p, "start")


def test_mapping_with_hooks_only_becomes_extension():
    ext = from_mapping({"name": "audit", "before_init": lambda p: None})
    assert isinstance(ext, Extension)
    assert classify(ext) is CandidateKind.EXTENSION


def test_classify_objects():
    class Hooks:
        name = "h"

        def before_start(self, provider):
            return None

    class Service:
        name = "s"

        def init(self):
            return None

        def before_init(self, provider):
            return None

    assert classify(Hooks()) is CandidateKind.EXTENSION
    # lifecycle methods win over hooks
    assert classify(Service()) is CandidateKind.PROVIDER
    assert classify(Provider("plain")) is CandidateKind.PROVIDER


def test_name_for_is_used_only_when_name_is_missing():
    derive = lambda obj: "derived"  # noqa: E731
    assert normalize_candidate(Provider(), name_for=derive).name == "derived"
    assert normalize_candidate({"init": lambda: None}, name_for=derive).name == "derived"
    assert normalize_candidate(Provider("own"), name_for=derive).name == "own"


def test_frozen_dataclass_provider_is_accepted():
    @dataclass(frozen=True)
    class Settings:
        name: str = "settings"

        def init(self):
            return None

    cand = normalize_candidate(Settings())
    assert cand.kind is CandidateKind.PROVIDER and cand.name == "settings"


@pytest.mark.parametrize(
    "raw",
    [
        None,
        42,
        "provider",
        {"name": "x", "init": "not callable"},
        {"name": "x", "unexpected": True},
        {"name": "x", "prepare": 1},
        {"init": lambda: None},  # no name, no name_for
        Provider(" db "),
        {"name": "db\n"},
    ],
)
def test_malformed_candidates_raise(raw):
    with pytest.raises(InvalidProviderError):
        normalize_candidate(raw)


def test_derived_names_are_checked_like_declared_ones():
    with pytest.raises(InvalidProviderError):
        normalize_candidate(Provider(), name_for=lambda obj: " padded")


def test_padded_name_is_skipped_not_fatal(caplog):
    caplog.set_level("WARNING")

    out = normalize_candidates([Provider(" db "), Provider("api")])

    assert [c.name for c in out] == ["api"]
    skipped = [r for r in caplog.records if r.getMessage() == "discovery.candidate.skipped"]
    assert [getattr(r, "index", None) for r in skipped] == [0]


def test_batch_skips_malformed_with_warning_and_keeps_order(caplog):
    good_a = Provider("a")
    good_b = {"name": "b", "start": lambda: None}
    caplog.set_level("WARNING")

    out = normalize_candidates([good_a, None, {"name": 3}, good_b, {"name": "c", "start": 5}])

    assert [c.name for c in out] == ["a", "b"]
    assert out[0].obj is good_a
    skipped = [r for r in caplog.records if r.getMessage() == "discovery.candidate.skipped"]
    assert [getattr(r, "index", None) for r in skipped] == [1, 2, 4]
