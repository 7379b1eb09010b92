"""
Lattice binding generator command line

Usage:
    latticegen provider.wit deps/*.wit --config bindings.toml --output-dir generated/
    latticegen provider.wit --impl-struct KvRedisProvider --contract wasmcloud:keyvalue
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from .base_generator import BaseGenerator
from .catalog import scrape_bindings
from .compiler import BindingCompiler
from .config import BindingConfig, load_config
from .errors import GenerationError
from .naming import to_snake
from .parser import WITParser


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate lattice provider bindings from WIT")
    parser.add_argument("wit_files", nargs="+", help="WIT documents (the world and every package it uses)")
    parser.add_argument("--config", "-c", default="", help="TOML configuration (or pyproject.toml with [tool.latticegen])")
    parser.add_argument("--output-dir", "-o", default="generated", help="Output directory")
    parser.add_argument("--world", default=None, help="World to bind")
    parser.add_argument("--impl-struct", default=None, help="Provider implementation name")
    parser.add_argument("--contract", default=None, help="Contract id (ex. wasmcloud:keyvalue)")
    parser.add_argument("--wit-ns", default=None, help="Namespace override for the world's own package")
    parser.add_argument("--wit-pkg", default=None, help="Package override for the world's own package")
    parser.add_argument("--allow", action="append", default=None, help="Exposed interface allow list entry")
    parser.add_argument("--deny", action="append", default=None, help="Exposed interface deny list entry")
    parser.add_argument("--replace-witified-maps", action="store_true", default=None,
                        help="Present list<tuple<K, V>> parameters as dicts")
    parser.add_argument("--base-bindings", default="", help="Scrape type catalogs from this base bindings module")
    parser.add_argument("--emit-base", action="store_true", help="Also write the base bindings module")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def resolve_config(args: argparse.Namespace) -> BindingConfig:
    data = load_config(Path(args.config)) if args.config else {}
    overrides = {
        "world": args.world,
        "impl_struct": args.impl_struct,
        "contract": args.contract,
        "wit_ns": args.wit_ns,
        "wit_pkg": args.wit_pkg,
        "exposed_interface_allow_list": args.allow,
        "exposed_interface_deny_list": args.deny,
        "replace_witified_maps": args.replace_witified_maps,
    }
    data.update({k: v for k, v in overrides.items() if v is not None})
    return BindingConfig.from_mapping(data)


def generate(args: argparse.Namespace) -> dict[Path, str]:
    """Run the whole pipeline in memory; nothing is written unless every step succeeds"""
    config = resolve_config(args)
    wit = WITParser(*(Path(p).read_text(encoding="utf-8") for p in args.wit_files)).parse()

    catalog = None
    if args.base_bindings:
        catalog = scrape_bindings(Path(args.base_bindings).read_text(encoding="utf-8"))
    compiler = BindingCompiler(wit, config, catalog=catalog)

    output_dir = Path(args.output_dir)
    module_name = to_snake(config.impl_struct)
    files = {output_dir / f"{module_name}_bindings.py": compiler.compile()}
    if args.emit_base:
        files[output_dir / f"{module_name}_base.py"] = BaseGenerator(wit, compiler.world).generate()
    return files


def write_files(files: dict[Path, str]):
    """Stage every file next to its target, then move them all into place"""
    staged = []
    try:
        for path, content in files.items():
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_name(path.name + ".tmp")
            staged.append(tmp)
            tmp.write_text(content, encoding="utf-8")
    except OSError:
        for tmp in staged:
            if tmp.is_file():
                tmp.unlink()
        raise
    for path, tmp in zip(files, staged):
        tmp.replace(path)


def main(argv=None) -> int:
    start_time = time.perf_counter()

    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    try:
        files = generate(args)
        write_files(files)
    except (GenerationError, OSError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    for path in files:
        print(f"Generated: {path}")

    elapsed = time.perf_counter() - start_time
    print(f"Generation completed in {elapsed*1000:.2f} ms")
    return 0


if __name__ == "__main__":
    sys.exit(main())
