from __future__ import annotations

import pytest

from astrbot_plugin_qfarm_panel.services.runtime_settings import (
    RuntimeSettingsStore,
    SchedulerConfig,
    SettingsValidationError,
)


def test_invalid_farm_interval_keeps_prior_settings():
    config = SchedulerConfig(farm_check_interval=3000, friend_check_interval=10000)
    store = RuntimeSettingsStore(config)

    with pytest.raises(SettingsValidationError) as exc:
        store.update({"farmIntervalSec": -1})

    assert exc.value.code == "invalid_farm_interval"
    assert store.get() == {"farmIntervalSec": 3, "friendIntervalSec": 10}


def test_fractional_interval_is_floored_and_written_in_ms():
    config = SchedulerConfig()
    store = RuntimeSettingsStore(config)

    settings = store.update({"friendIntervalSec": 2.7})

    assert settings["friendIntervalSec"] == 2
    assert config.friend_check_interval == 2000
    assert config.farm_check_interval == 1000


def test_sub_second_interval_is_floored_to_one():
    store = RuntimeSettingsStore()
    assert store.update({"farmIntervalSec": 0.3})["farmIntervalSec"] == 1


def test_invalid_second_field_blocks_whole_patch():
    config = SchedulerConfig(farm_check_interval=5000, friend_check_interval=10000)
    store = RuntimeSettingsStore(config)

    with pytest.raises(SettingsValidationError) as exc:
        store.update({"farmIntervalSec": 8, "friendIntervalSec": "abc"})

    assert exc.value.code == "invalid_friend_interval"
    assert config.farm_check_interval == 5000


def test_numeric_strings_and_none_values():
    store = RuntimeSettingsStore()
    assert store.update({"farmIntervalSec": "5"})["farmIntervalSec"] == 5

    with pytest.raises(SettingsValidationError):
        store.update({"friendIntervalSec": None})
    with pytest.raises(SettingsValidationError):
        store.update({"friendIntervalSec": float("inf")})


def test_partial_patch_leaves_unaligned_ms_untouched():
    config = SchedulerConfig(farm_check_interval=1500, friend_check_interval=10000)
    store = RuntimeSettingsStore(config)

    assert store.get()["farmIntervalSec"] == 2
    store.update({"friendIntervalSec": 12})
    assert config.farm_check_interval == 1500
    assert config.friend_check_interval == 12000


def test_zero_ms_reads_as_one_second():
    store = RuntimeSettingsStore(SchedulerConfig(farm_check_interval=0, friend_check_interval=0))
    assert store.get() == {"farmIntervalSec": 1, "friendIntervalSec": 1}


def test_interval_too_large_for_float_is_rejected():
    config = SchedulerConfig(farm_check_interval=2000, friend_check_interval=10000)
    store = RuntimeSettingsStore(config)

    with pytest.raises(SettingsValidationError) as exc:
        store.update({"farmIntervalSec": 10**400})

    assert exc.value.code == "invalid_farm_interval"
    assert config.farm_check_interval == 2000
