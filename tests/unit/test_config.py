from __future__ import annotations

import pytest

from bootkit import Provider, StartupConfig, StartupConfigError

pytestmark = [pytest.mark.unit]


def test_defaults():
    cfg = StartupConfig()
    assert cfg.explicit_provider_order is None
    assert cfg.post_init_pre_start_callback is None
    assert cfg.debug_logging is False


def test_snake_case_and_camel_case_options():
    a, b = Provider("a"), Provider("b")

    def cb():
        return None

    snake = StartupConfig.from_options({"explicit_provider_order": [a, b], "debug_logging": True})
    camel = StartupConfig.from_options(
        {"explicitProviderOrder": (a, b), "postInitPreStartCallback": cb, "debugLogging": True}
    )
    assert snake.explicit_provider_order == [a, b]
    assert camel.explicit_provider_order == [a, b]
    assert camel.post_init_pre_start_callback is cb
    assert snake.debug_logging is camel.debug_logging is True


def test_order_keeps_instances_by_identity():
    a = Provider("a")
    cfg = StartupConfig.from_options(explicit_provider_order=[a])
    assert cfg.explicit_provider_order[0] is a


@pytest.mark.parametrize(
    "options",
    [
        {"unknown_option": 1},
        {"debug_logging": "yes"},
        {"debug_logging": 1},
        {"post_init_pre_start_callback": "not callable"},
        {"explicit_provider_order": "ab"},
        {"explicit_provider_order": {"a": 1}},
        {"explicit_provider_order": 3},
    ],
)
def test_unknown_or_mistyped_options_fail_fast(options):
    with pytest.raises(StartupConfigError):
        StartupConfig.from_options(options)


def test_non_mapping_options_are_rejected():
    with pytest.raises(StartupConfigError):
        StartupConfig.from_options(["debug_logging"])  # type: ignore[arg-type]


def test_existing_config_is_passed_through_or_extended():
    cfg = StartupConfig(debug_logging=True)
    assert StartupConfig.from_options(cfg) is cfg
    extended = StartupConfig.from_options(cfg, explicit_provider_order=[])
    assert extended.debug_logging is True
    assert extended.explicit_provider_order == []


def test_load_reads_env_then_overrides(monkeypatch):
    monkeypatch.setenv("BOOTKIT_DEBUG_LOGGING", "on")
    assert StartupConfig.load().debug_logging is True
    assert StartupConfig.load(overrides={"debug_logging": False}).debug_logging is False

    monkeypatch.setenv("BOOTKIT_DEBUG_LOGGING", "0")
    assert StartupConfig.load().debug_logging is False


def test_load_rejects_garbage_env(monkeypatch):
    monkeypatch.setenv("BOOTKIT_DEBUG_LOGGING", "maybe")
    with pytest.raises(StartupConfigError):
        StartupConfig.load()
