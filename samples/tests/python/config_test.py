"""Tests for binding configuration loading and validation"""

import pytest

from latticegen import BindingConfig, load_config
from latticegen.errors import ConfigError


def test_load_sample_config(wit_dir):
    config = BindingConfig.from_mapping(load_config(wit_dir / "kvredis.toml"))

    assert config.impl_struct == "KvRedisProvider"
    assert config.contract == "wasmcloud:keyvalue"
    assert config.world == "provider-kvredis"
    assert config.replace_witified_maps is True
    assert config.exposed_interface_allow_list == frozenset()


def test_pyproject_table(tmp_path):
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text(
        '[project]\nname = "kvredis"\n\n'
        '[tool.latticegen]\n'
        'impl_struct = "KvRedisProvider"\n'
        'contract = "wasmcloud:keyvalue"\n'
        'exposed_interface_deny_list = ["wasmcloud:keyvalue/admin"]\n'
    )
    config = BindingConfig.from_mapping(load_config(pyproject))

    assert config.exposed_interface_deny_list == frozenset({"wasmcloud:keyvalue/admin"})


def test_pyproject_without_table(tmp_path):
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text('[project]\nname = "kvredis"\n')
    assert load_config(pyproject) == {}


def test_malformed_toml(tmp_path):
    path = tmp_path / "bindings.toml"
    path.write_text("impl_struct = \n")
    with pytest.raises(ConfigError, match="failed to read configuration"):
        load_config(path)


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="failed to read configuration"):
        load_config(tmp_path / "absent.toml")


@pytest.mark.parametrize("data", [
    {"contract": "wasmcloud:keyvalue"},
    {"impl_struct": "KvRedisProvider", "contract": "wasmcloud:keyvalue", "replace_witified_maps": "yes"},
    {"impl_struct": "KvRedisProvider", "contract": "wasmcloud:keyvalue", "unknown": 1},
])
def test_invalid_settings(data):
    with pytest.raises(ConfigError, match="invalid binding configuration"):
        BindingConfig.from_mapping(data)


def test_impl_struct_must_be_an_identifier():
    with pytest.raises(ConfigError, match="not a valid Python identifier"):
        BindingConfig(impl_struct="kv-redis", contract="wasmcloud:keyvalue")


def test_namespace_override_needs_both_parts():
    with pytest.raises(ConfigError, match="set together"):
        BindingConfig.from_mapping({"impl_struct": "P", "contract": "c", "wit_ns": "acme"})


def test_with_overrides(kv_config):
    config = kv_config.with_overrides(world="provider-kvredis", contract=None)

    assert config.world == "provider-kvredis"
    assert config.contract == "wasmcloud:keyvalue"
    assert kv_config.world is None
