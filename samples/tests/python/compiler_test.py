"""Tests for the binding compiler and the command line"""

import pytest

from latticegen import BaseGenerator, BindingCompiler, BindingConfig, TypeCatalog, WITParser, scrape_bindings
from latticegen.cli import main
from latticegen.errors import BaseBindingsError, UnresolvedInterfaceError


def test_output_is_deterministic(parse_wit, kv_config):
    first = BindingCompiler(parse_wit("keyvalue", "bus"), kv_config).compile()
    second = BindingCompiler(parse_wit("bus", "keyvalue"), kv_config).compile()
    assert first == second


def test_scraped_catalog_gives_the_same_module(messaging_wit):
    config = BindingConfig(impl_struct="NatsMessagingProvider", contract="wasmcloud:messaging")
    (world,) = messaging_wit.worlds
    scraped = scrape_bindings(BaseGenerator(messaging_wit, world).generate())

    assert (BindingCompiler(messaging_wit, config, catalog=scraped).compile()
            == BindingCompiler(messaging_wit, config).compile())


def test_module_layout(keyvalue_wit, kv_config):
    source = BindingCompiler(keyvalue_wit, kv_config).compile()

    assert "class PutArgs(msgspec.Struct):" in source
    assert "class WasmcloudKeyvalueKeyValue(abc.ABC):" in source
    assert "class KvRedisProviderBase(WasmcloudKeyvalueKeyValue, WasmcloudCapabilityProvider):" in source
    assert "class InvocationHandler:" in source
    sections = [line for line in source.splitlines() if line.startswith("# ") and "═" not in line]
    assert sections == ["# Type Definitions", "# Capability Interfaces", "# Provider", "# Invocation Handler"]


def test_deny_list_hides_exports(keyvalue_wit, kv_config):
    config = kv_config.with_overrides(exposed_interface_deny_list=["wasmcloud:keyvalue/key-value"])
    compiler = BindingCompiler(keyvalue_wit, config)

    assert compiler.exported_interfaces() == []
    assert compiler.subject_entries() == []
    assert "class KvRedisProviderBase(WasmcloudCapabilityProvider):" in compiler.compile()


def test_allow_list_limits_exports(keyvalue_wit, kv_config):
    allowed = BindingCompiler(keyvalue_wit, kv_config.with_overrides(
        exposed_interface_allow_list=["wasmcloud:keyvalue/key-value"]))
    other = BindingCompiler(keyvalue_wit, kv_config.with_overrides(
        exposed_interface_allow_list=["wasmcloud:keyvalue/admin"]))

    assert [i.name for i in allowed.exported_interfaces()] == ["key-value"]
    assert other.exported_interfaces() == []


def test_allow_list_does_not_apply_to_imports(messaging_wit):
    config = BindingConfig(impl_struct="P", contract="c", exposed_interface_allow_list=frozenset({"wasmcloud:messaging/consumer"}),
                           exposed_interface_deny_list=frozenset({"wasmcloud:messaging/handler"}))
    compiler = BindingCompiler(messaging_wit, config)
    assert [i.qualified_name for i in compiler.imported_interfaces()] == ["wasmcloud:messaging/handler"]


def test_namespace_override(keyvalue_wit, kv_config):
    config = kv_config.with_overrides(wit_ns="acme", wit_pkg="store")
    compiler = BindingCompiler(keyvalue_wit, config)
    source = compiler.compile()

    assert 'case "acme:store/key-value.get":' in source
    assert "class AcmeStoreKeyValue(abc.ABC):" in source
    assert {e.operation_name.split("/")[0] for e in compiler.subject_entries()} == {"acme:store"}


def test_world_selection(parse_wit, kv_config):
    wit = parse_wit("keyvalue", "shapes", "bus")
    with pytest.raises(UnresolvedInterfaceError, match="exactly one world"):
        BindingCompiler(wit, kv_config)
    with pytest.raises(UnresolvedInterfaceError, match=r"world \[nope\] is not defined"):
        BindingCompiler(wit, kv_config.with_overrides(world="nope"))

    compiler = BindingCompiler(wit, kv_config.with_overrides(world="painter"))
    assert compiler.world.name == "painter"


def test_base_bindings_without_an_interface(keyvalue_wit, kv_config):
    with pytest.raises(BaseBindingsError, match="declares no methods"):
        BindingCompiler(keyvalue_wit, kv_config, catalog=TypeCatalog()).compile()


def test_base_bindings_out_of_step_with_the_world(keyvalue_wit, kv_config):
    (world,) = keyvalue_wit.worlds
    catalog = TypeCatalog.from_wit(keyvalue_wit, world)
    catalog.methods["wasmcloud.keyvalue.key_value"] = catalog.methods["wasmcloud.keyvalue.key_value"][:2]

    with pytest.raises(BaseBindingsError, match="disagree"):
        BindingCompiler(keyvalue_wit, kv_config, catalog=catalog).compile()


def test_keyword_function_names():
    wit = WITParser("""
        package acme:flow;
        interface control { pass: func(from: string) -> bool; }
        world w { export control; }
    """).parse()
    source = BindingCompiler(wit, BindingConfig(impl_struct="Flow", contract="acme:flow")).compile()

    assert "async def pass_(self, ctx: Context, from_: str) -> bool:" in source
    assert 'case "acme:flow/control.pass":' in source


# ══════════════════════════════════════════════════════════════
# Command line
# ══════════════════════════════════════════════════════════════

def kv_args(wit_dir, output_dir, *extra):
    return [
        str(wit_dir / "keyvalue.wit"), str(wit_dir / "bus.wit"),
        "-c", str(wit_dir / "kvredis.toml"),
        "-o", str(output_dir),
        *extra,
    ]


def test_cli_writes_bindings(wit_dir, tmp_path, capsys):
    assert main(kv_args(wit_dir, tmp_path, "--emit-base")) == 0

    bindings = tmp_path / "kv_redis_provider_bindings.py"
    base = tmp_path / "kv_redis_provider_base.py"
    assert sorted(p.name for p in tmp_path.iterdir()) == [base.name, bindings.name]
    assert "labels: dict[str, str]" in bindings.read_text()

    out = capsys.readouterr().out
    assert f"Generated: {bindings}" in out
    assert "Generation completed in" in out


def test_cli_flags_override_the_config_file(wit_dir, tmp_path):
    assert main(kv_args(wit_dir, tmp_path, "--impl-struct", "RedisStore")) == 0
    assert "class RedisStoreBase(" in (tmp_path / "redis_store_bindings.py").read_text()


def test_cli_with_base_bindings(wit_dir, tmp_path):
    assert main(kv_args(wit_dir, tmp_path / "first", "--emit-base")) == 0
    base = tmp_path / "first" / "kv_redis_provider_base.py"
    assert main(kv_args(wit_dir, tmp_path / "second", "--base-bindings", str(base))) == 0

    name = "kv_redis_provider_bindings.py"
    assert (tmp_path / "first" / name).read_text() == (tmp_path / "second" / name).read_text()


def test_cli_failure_writes_nothing(wit_dir, tmp_path, capsys):
    output_dir = tmp_path / "out"
    assert main(kv_args(wit_dir, output_dir, "--world", "nope")) == 1

    assert not output_dir.exists()
    assert "error: world [nope] is not defined" in capsys.readouterr().err


def test_cli_missing_wit_file(tmp_path, capsys):
    assert main([str(tmp_path / "absent.wit"), "--impl-struct", "P", "--contract", "c"]) == 1
    assert "error:" in capsys.readouterr().err


def test_cli_rejects_undecodable_wit(tmp_path, capsys):
    wit = tmp_path / "broken.wit"
    wit.write_bytes(b"package acme:x;\n\xff\xfe")
    assert main([str(wit), "--impl-struct", "P", "--contract", "c", "-o", str(tmp_path / "out")]) == 1

    assert "error:" in capsys.readouterr().err
    assert not (tmp_path / "out").exists()


def test_cli_write_failure_leaves_no_partial_output(wit_dir, tmp_path, capsys):
    # a directory in the way of the second staged file makes the write fail midway
    (tmp_path / "kv_redis_provider_base.py.tmp").mkdir()
    assert main(kv_args(wit_dir, tmp_path, "--emit-base")) == 1

    assert sorted(p.name for p in tmp_path.iterdir()) == ["kv_redis_provider_base.py.tmp"]
    captured = capsys.readouterr()
    assert "error:" in captured.err
    assert "Generated:" not in captured.out
