"""Shared fixtures for the latticegen test suite"""

import sys
import types
from pathlib import Path

import pytest

from latticegen import BindingConfig, ParsedWIT, WITParser

WIT_DIR = Path(__file__).resolve().parents[2] / "wit"


def parse_samples(*names: str) -> ParsedWIT:
    """Parse sample WIT documents by file stem"""
    return WITParser(*((WIT_DIR / f"{n}.wit").read_text() for n in names)).parse()


@pytest.fixture
def keyvalue_wit() -> ParsedWIT:
    return parse_samples("keyvalue", "bus")


@pytest.fixture
def messaging_wit() -> ParsedWIT:
    return parse_samples("messaging", "bus", "io")


@pytest.fixture
def shapes_wit() -> ParsedWIT:
    return parse_samples("shapes")


@pytest.fixture
def kv_config() -> BindingConfig:
    return BindingConfig(impl_struct="KvRedisProvider", contract="wasmcloud:keyvalue")


@pytest.fixture
def load_generated(monkeypatch):
    """Execute generated source as a registered module so msgspec can resolve its annotations"""
    counter = iter(range(1_000_000))

    def load(source: str) -> types.ModuleType:
        name = f"generated_bindings_{next(counter)}"
        module = types.ModuleType(name)
        monkeypatch.setitem(sys.modules, name, module)
        exec(compile(source, f"<{name}>", "exec"), module.__dict__)
        return module

    return load


@pytest.fixture
def parse_wit():
    return parse_samples


@pytest.fixture
def wit_dir() -> Path:
    return WIT_DIR
