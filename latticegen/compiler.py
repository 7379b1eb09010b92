"""Binding compiler - assembles the lattice bindings module for one provider"""

import logging
from collections import Counter
from typing import Optional

from .base_generator import section
from .catalog import MethodDecl, TypeCatalog, interface_path, render_types, world_interfaces
from .config import BindingConfig
from .dispatch_generator import DispatchGenerator
from .errors import BaseBindingsError, UnresolvedInterfaceError
from .invocation_generator import InvocationGenerator
from .naming import to_snake, to_upper_camel
from .policy import InterfacePolicy
from .subject_generator import SubjectEntry, SubjectGenerator, TypeLookup, build_dynamic_function
from .translator import (
    ExportedFunction, ImportedFunction, LatticeMethod, interface_trait_name, operation_name,
    translate,
)
from .types import Interface, ParsedWIT, World

logger = logging.getLogger(__name__)


def select_world(wit: ParsedWIT, name: Optional[str]) -> World:
    if name is not None:
        for world in wit.worlds:
            if world.name == name:
                return world
        raise UnresolvedInterfaceError(f"world [{name}] is not defined")
    if len(wit.worlds) != 1:
        raise UnresolvedInterfaceError(
            f"expected exactly one world, found {len(wit.worlds)}; select one with the world setting")
    return wit.worlds[0]


class BindingCompiler:
    """Compiles a resolved WIT world into provider bindings

    compile() either returns the complete module or raises a GenerationError;
    nothing is produced for a failed run.
    """

    def __init__(self, wit: ParsedWIT, config: BindingConfig,
                 catalog: Optional[TypeCatalog] = None, policy: Optional[InterfacePolicy] = None):
        self.wit = wit
        self.config = config
        self.world = select_world(wit, config.world)
        self.catalog = catalog if catalog is not None else TypeCatalog.from_wit(wit, self.world)
        self.policy = policy if policy is not None else InterfacePolicy.from_config(config)

    def lattice_path(self, iface: Interface) -> str:
        """Interface path used on the lattice, honouring the namespace/package override"""
        ns, pkg = iface.namespace, iface.package
        if self.config.wit_ns and (ns, pkg) == (self.world.namespace, self.world.package):
            ns, pkg = self.config.wit_ns, self.config.wit_pkg
        return '.'.join(to_snake(s) for s in (ns, pkg, iface.name))

    def _declared_methods(self, iface: Interface) -> list[MethodDecl]:
        path = interface_path(iface)
        if path not in self.catalog.methods:
            raise BaseBindingsError(f"base bindings declare no methods for interface [{path}]")
        return self.catalog.methods[path]

    def exported_interfaces(self) -> list[Interface]:
        ifaces = [self.wit.interfaces[q] for q in sorted(set(self.world.exports))]
        return [i for i in ifaces if self.policy.exposes(i)]

    def imported_interfaces(self) -> list[Interface]:
        ifaces = [self.wit.interfaces[q] for q in sorted(set(self.world.imports))]
        return [i for i in ifaces if self.policy.invokes(i)]

    def lattice_methods_by_interface(self) -> dict[str, list[LatticeMethod]]:
        methods_by_iface = {}
        for iface in self.exported_interfaces():
            path = self.lattice_path(iface)
            methods_by_iface[interface_trait_name(path)] = [
                translate(ExportedFunction(path, method), self.catalog, self.config)
                for method in self._declared_methods(iface)
            ]
        return methods_by_iface

    def invocation_methods(self) -> list[LatticeMethod]:
        imported = [(iface, m) for iface in self.imported_interfaces() for m in self._declared_methods(iface)]
        counts = Counter(m.name for _, m in imported)
        methods = []
        for iface, method in imported:
            stub_name = method.name
            # same function name in two imported interfaces: qualify with the interface
            if counts[method.name] > 1:
                stub_name = f"{to_snake(iface.name)}_{method.name}"
            methods.append(translate(ImportedFunction(self.lattice_path(iface), method, stub_name),
                                     self.catalog, self.config))
        return methods

    def subject_entries(self) -> list[SubjectEntry]:
        types = {}
        for iface in world_interfaces(self.wit, self.world):
            for typedef in iface.type_defs():
                types.setdefault(typedef.name, typedef)
        lookup = TypeLookup(types)

        entries = []
        for iface in self.exported_interfaces():
            path = self.lattice_path(iface)
            for fn in iface.functions:
                entries.append(SubjectEntry(
                    operation_name=operation_name(path, fn.name),
                    world_key_name=to_upper_camel(iface.name),
                    function_name=fn.name,
                    dynamic_function=build_dynamic_function(fn, lookup),
                ))
        return entries

    def compile(self) -> str:
        """Generate the complete bindings module"""
        dispatch = DispatchGenerator(self.lattice_methods_by_interface(), self.config.contract)
        invocations = InvocationGenerator(self.invocation_methods())
        subjects = SubjectGenerator(self.subject_entries())
        dispatched = {m.operation_name for methods in dispatch.methods_by_iface.values() for m in methods}
        routed = {e.operation_name for e in subjects.entries}
        if dispatched != routed:
            raise BaseBindingsError(
                f"base bindings disagree with the WIT world: {sorted(dispatched ^ routed)}")
        impl = self.config.impl_struct
        world = self.world

        lines = [
            '"""',
            f"AUTO-GENERATED lattice bindings for {impl} ({self.config.contract})",
            f"DO NOT EDIT - Generated from WIT world {world.namespace}:{world.package}/{world.name}",
            '"""',
            "",
            "from __future__ import annotations",
            "",
            "import abc",
            "import collections",
            "import enum",
            "from collections.abc import Mapping, Sequence",
            "from types import MappingProxyType",
            "from typing import Any, Optional, Union",
            "",
            "import msgspec",
            "",
            "from latticegen import runtime as _rt",
            "from latticegen.runtime import Context, Err, Ok, Result, SubjectTarget, WrpcClient",
            "",
            "",
        ]

        lines.extend(section("Type Definitions"))
        lines.extend(render_types(self.catalog))
        lines.append("")

        lines.extend(section("Capability Interfaces"))
        lines.extend(dispatch.generate_interfaces())

        lines.extend(section("Provider"))
        lines.extend(self._generate_lifecycle())
        lines.extend(subjects.generate_constants())
        bases = ", ".join([*dispatch.interface_names, "WasmcloudCapabilityProvider"])
        lines.extend([
            f"class {impl}Base({bases}):",
            f'    """Lattice-facing base class; subclass it as {impl} and implement the interface methods"""',
            "",
        ])
        lines.extend(dispatch.generate_dispatch())
        lines.extend(subjects.generate())
        lines.append("")

        lines.extend(section("Invocation Handler"))
        lines.extend(invocations.generate())

        logger.debug("compiled bindings for [%s]: %d exported interfaces, %d invocation stubs",
                     impl, len(dispatch.interface_names), len(invocations.methods))
        return "\n".join(lines)

    @staticmethod
    def _generate_lifecycle() -> list[str]:
        """Host lifecycle hooks; each one succeeds unless the provider overrides it"""
        return [
            "class WasmcloudCapabilityProvider:",
            '    """Lifecycle hooks called by the host runtime"""',
            "",
            "    async def receive_link_config_as_source(self, link_config: Any) -> None:",
            "        return None",
            "",
            "    async def receive_link_config_as_target(self, link_config: Any) -> None:",
            "        return None",
            "",
            "    async def delete_link(self, actor_id: str) -> None:",
            "        return None",
            "",
            "    async def shutdown(self) -> None:",
            "        return None",
            "",
            "",
        ]
