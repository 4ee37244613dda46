from __future__ import annotations

import pytest

from bootkit import (
    AlreadyInitializedError,
    AlreadyStartedError,
    AlreadyStartedPhaseError,
    DuplicateNameError,
    Extension,
    InvalidProviderError,
    NotFoundError,
    NotInitializedError,
    Provider,
    ProviderState,
)
from bootkit.runtime.registry import Registry

pytestmark = [pytest.mark.unit]


def test_register_and_get():
    reg = Registry()
    p = Provider("db")
    entry = reg.register(p)
    assert entry.provider is p
    assert reg.get("db") is p
    assert "db" in reg and len(reg) == 1


def test_duplicate_name_with_other_instance_is_rejected():
    reg = Registry()
    reg.register(Provider("db"))
    with pytest.raises(DuplicateNameError) as ei:
        reg.register(Provider("db"))
    assert ei.value.name == "db"


def test_same_instance_registers_once():
    reg = Registry()
    p = Provider("db")
    first = reg.register(p)
    assert reg.register(p) is first
    assert len(reg) == 1


def test_same_instance_under_another_name_is_rejected():
    reg = Registry()
    p = Provider("db")
    reg.register(p)
    with pytest.raises(DuplicateNameError) as ei:
        reg.register(p, name="alias")
    assert (ei.value.name, ei.value.existing) == ("alias", "db")
    assert list(reg) == ["db"]
    assert reg.find_entry(p) is reg.entry("db")


def test_same_extension_under_another_name_is_rejected():
    reg = Registry()
    ext = Extension("audit", prepare=lambda: None)
    reg.register_extension(ext)
    with pytest.raises(DuplicateNameError) as ei:
        reg.register_extension(ext, name="audit2")
    assert ei.value.existing == "audit"
    assert reg.extensions() == [ext]


def test_extensions_have_their_own_namespace():
    reg = Registry()
    reg.register(Provider("audit"))
    ext = Extension("audit", prepare=lambda: None)
    assert reg.register_extension(ext) is ext
    assert reg.get_extension("audit") is ext
    with pytest.raises(DuplicateNameError):
        reg.register_extension(Extension("audit"))


def test_explicit_name_is_assigned_to_unnamed_provider():
    reg = Registry()
    p = Provider()
    reg.register(p, name="cache")
    assert p.name == "cache"
    assert reg.get("cache") is p


def test_unnamed_provider_is_invalid():
    reg = Registry()
    with pytest.raises(InvalidProviderError):
        reg.register(Provider())
    with pytest.raises(InvalidProviderError):
        reg.register(Provider(" padded "))


def test_registration_after_freeze_fails_loudly():
    reg = Registry()
    reg.register(Provider("a"))
    view = reg.freeze()
    with pytest.raises(AlreadyStartedError):
        reg.register(Provider("b"))
    with pytest.raises(AlreadyStartedError):
        reg.register_extension(Extension("e"))
    assert list(view.providers) == ["a"]


def test_frozen_view_is_read_only():
    reg = Registry()
    reg.register(Provider("a"))
    view = reg.freeze()
    with pytest.raises(TypeError):
        view.providers["b"] = Provider("b")  # type: ignore[index]
    assert reg.freeze() is view


def test_unknown_name_raises_not_found():
    reg = Registry()
    with pytest.raises(NotFoundError):
        reg.get("missing")
    with pytest.raises(LookupError):
        reg.get_extension("missing")


def test_get_before_start_warns_once_per_name(caplog):
    reg = Registry()
    reg.register(Provider("db"))
    caplog.set_level("WARNING")

    reg.get("db")
    reg.get("db")
    warnings = [r for r in caplog.records if r.getMessage() == "registry.get.before_start"]
    assert len(warnings) == 1
    assert getattr(warnings[0], "provider", None) == "db"

    caplog.clear()
    reg.mark_started()
    reg.get("db")
    assert not [r for r in caplog.records if r.getMessage() == "registry.get.before_start"]


@pytest.mark.asyncio
async def test_entry_init_runs_once_then_guards():
    calls = []
    entry = Registry().register(Provider("db", init=lambda: calls.append("init")))

    await entry.init()
    assert entry.is_initialized and entry.state is ProviderState.INITIALIZED

    with pytest.raises(AlreadyInitializedError):
        await entry.init()
    assert calls == ["init"]


@pytest.mark.asyncio
async def test_entry_start_requires_init_and_runs_once():
    calls = []

    async def start():
        calls.append("start")

    entry = Registry().register(Provider("api", start=start))
    with pytest.raises(NotInitializedError):
        await entry.start()

    await entry.init()
    await entry.start()
    assert entry.is_started

    with pytest.raises(AlreadyStartedPhaseError):
        await entry.start()
    assert calls == ["start"]


@pytest.mark.asyncio
async def test_entry_failures_are_recorded_in_state():
    boom = RuntimeError("boom")

    def fail():
        raise boom

    bad_init = Registry().register(Provider("a", init=fail))
    with pytest.raises(RuntimeError):
        await bad_init.init()
    assert bad_init.state is ProviderState.INIT_FAILED
    assert not bad_init.is_initialized

    bad_start = Registry().register(Provider("b", start=fail))
    await bad_start.init()
    with pytest.raises(RuntimeError):
        await bad_start.start()
    assert bad_start.state is ProviderState.START_FAILED
    assert bad_start.start_error is boom
    assert not bad_start.is_started
