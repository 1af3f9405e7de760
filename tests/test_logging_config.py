import logging

import pytest

from runar_node.logging_config import (
    Component,
    ComponentKey,
    LoggingConfig,
    LogLevel,
    component_key,
    target_for,
)


@pytest.fixture
def restore_logging():
    names = ["", "runar_node.network", "runar_node.services.registry", "custom.area"]
    saved = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


def test_component_key_maps_discovery_to_network():
    assert component_key(Component.NETWORK_DISCOVERY) is ComponentKey.NETWORK


@pytest.mark.parametrize(
    "component, key",
    [
        (Component.NODE, ComponentKey.NODE),
        (Component.REGISTRY, ComponentKey.REGISTRY),
        (Component.SERVICE, ComponentKey.SERVICE),
        (Component.DATABASE, ComponentKey.DATABASE),
        (Component.NETWORK, ComponentKey.NETWORK),
        (Component.SYSTEM, ComponentKey.SYSTEM),
    ],
)
def test_component_key_matches_names(component, key):
    assert component_key(component) is key


def test_component_key_custom_string():
    assert component_key("my_component") == "my_component"


def test_component_key_rejects_other_types():
    with pytest.raises(TypeError):
        component_key(42)


def test_target_for_node():
    assert target_for(ComponentKey.NODE) == "runar_node"


def test_target_for_registry_is_under_services():
    assert target_for(ComponentKey.REGISTRY).startswith(target_for(ComponentKey.SERVICE) + ".")


def test_targets_are_under_node():
    for key in ComponentKey:
        assert target_for(key).startswith(target_for(ComponentKey.NODE))


def test_target_for_custom():
    assert target_for("custom.area") == "custom.area"


@pytest.mark.parametrize(
    "level, numeric",
    [
        (LogLevel.ERROR, logging.ERROR),
        (LogLevel.WARN, logging.WARNING),
        (LogLevel.INFO, logging.INFO),
        (LogLevel.DEBUG, logging.DEBUG),
    ],
)
def test_to_level_standard(level, numeric):
    assert level.to_level() == numeric


def test_trace_below_debug_and_off_above_critical():
    assert LogLevel.TRACE.to_level() < logging.DEBUG
    assert LogLevel.OFF.to_level() > logging.CRITICAL


def test_default_info():
    config = LoggingConfig.default_info()
    assert config.default_level is LogLevel.INFO
    assert config.component_levels == {}


def test_builders_do_not_mutate_original():
    base = LoggingConfig()
    changed = base.with_default_level(LogLevel.DEBUG).with_component_level(
        Component.NETWORK, LogLevel.TRACE
    )
    assert base.default_level is LogLevel.INFO
    assert base.component_levels == {}
    assert changed.default_level is LogLevel.DEBUG
    assert changed.component_levels == {ComponentKey.NETWORK: LogLevel.TRACE}


def test_with_component_level_merges_discovery_into_network():
    config = (
        LoggingConfig()
        .with_component_level(Component.NETWORK, LogLevel.DEBUG)
        .with_component_level(Component.NETWORK_DISCOVERY, LogLevel.ERROR)
    )
    assert config.component_levels == {ComponentKey.NETWORK: LogLevel.ERROR}


def test_apply_sets_levels(restore_logging):
    config = (
        LoggingConfig()
        .with_default_level(LogLevel.WARN)
        .with_component_level(Component.NETWORK, LogLevel.DEBUG)
        .with_component_level(Component.REGISTRY, LogLevel.OFF)
        .with_component_level("custom.area", LogLevel.TRACE)
    )
    config.apply()
    assert logging.getLogger().level == logging.WARNING
    assert logging.getLogger("runar_node.network").level == logging.DEBUG
    assert logging.getLogger("runar_node.services.registry").level == LogLevel.OFF.to_level()
    assert logging.getLogger("custom.area").level == LogLevel.TRACE.to_level()


def test_apply_twice_keeps_handler_count_and_updates_level(restore_logging):
    LoggingConfig().apply()
    count = len(logging.getLogger().handlers)
    LoggingConfig().with_default_level(LogLevel.ERROR).apply()
    assert len(logging.getLogger().handlers) == count
    assert logging.getLogger().level == LogLevel.ERROR.to_level()