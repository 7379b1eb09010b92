"""Binding configuration"""

import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

import msgspec

from .errors import ConfigError


class BindingConfig(msgspec.Struct, frozen=True, kw_only=True, forbid_unknown_fields=True):
    """Settings for one generation run"""

    # name of the provider implementation; the generated base class is <impl_struct>Base
    impl_struct: str
    # contract id returned by every capability interface (ex. wasmcloud:keyvalue)
    contract: str
    # namespace/package used for interfaces declared in the world's own package
    wit_ns: Optional[str] = None
    wit_pkg: Optional[str] = None
    # qualified interface names (ns:pkg/iface); an empty allow list allows everything
    exposed_interface_allow_list: frozenset[str] = frozenset()
    exposed_interface_deny_list: frozenset[str] = frozenset()
    # turn list<tuple<K, V>> parameters into dicts in handler signatures
    replace_witified_maps: bool = False
    # world to bind when the WIT input declares more than one
    world: Optional[str] = None

    def __post_init__(self):
        if not self.impl_struct.isidentifier():
            raise ConfigError(f"impl_struct [{self.impl_struct}] is not a valid Python identifier")
        if (self.wit_ns is None) != (self.wit_pkg is None):
            raise ConfigError("wit_ns and wit_pkg must be set together")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> 'BindingConfig':
        try:
            return msgspec.convert(dict(data), type=cls)
        except msgspec.ValidationError as e:
            raise ConfigError(f"invalid binding configuration: {e}") from e

    def with_overrides(self, **overrides: Any) -> 'BindingConfig':
        """Return a copy with every non-None override applied"""
        merged = {f: getattr(self, f) for f in self.__struct_fields__}
        merged.update({k: v for k, v in overrides.items() if v is not None})
        return BindingConfig.from_mapping(merged)


def load_config(path: Path) -> dict[str, Any]:
    """Read raw settings from a TOML file; pyproject.toml uses its [tool.latticegen] table"""
    try:
        data = tomllib.loads(Path(path).read_text())
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"failed to read configuration [{path}]: {e}") from e
    if Path(path).name == "pyproject.toml":
        data = data.get("tool", {}).get("latticegen", {})
    return data
