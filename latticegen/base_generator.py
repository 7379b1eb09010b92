"""Base Generator - generates plain Python type and interface declarations for a WIT world"""

from .catalog import TypeCatalog, render_types
from .translator import interface_trait_name
from .types import ParsedWIT, World

SECTION_RULE = "# ══════════════════════════════════════════════════════════════"


def section(title: str) -> list[str]:
    return [SECTION_RULE, f"# {title}", SECTION_RULE, ""]


class BaseGenerator:
    """Generates the base bindings module: msgspec types plus one Protocol per interface"""

    def __init__(self, wit: ParsedWIT, world: World):
        self.wit = wit
        self.world = world
        self.catalog = TypeCatalog.from_wit(wit, world)

    def generate(self) -> str:
        """Generate complete base bindings module"""
        lines = [
            '"""',
            f"AUTO-GENERATED base bindings for world {self.world.namespace}:{self.world.package}/{self.world.name}",
            "DO NOT EDIT - Generated from WIT",
            '"""',
            "",
            "from __future__ import annotations",
            "",
            "import enum",
            "from typing import Optional, Protocol, Union",
            "",
            "import msgspec",
            "",
            "from latticegen.runtime import Err, Ok, Result",
            "",
            "",
        ]

        lines.extend(section("Type Definitions"))
        lines.extend(render_types(self.catalog))
        lines.append("")

        lines.extend(section("Interface Declarations"))
        for path in sorted(self.catalog.methods):
            lines.extend(self._generate_protocol(path))

        lines.extend(self._generate_provenance())
        return "\n".join(lines)

    def _generate_protocol(self, path: str) -> list[str]:
        lines = [
            f"class {interface_trait_name(path)}(Protocol):",
            f'    __interface_path__ = "{path}"',
            "",
        ]
        for method in self.catalog.methods[path]:
            params = "".join(f", {name}: {ann}" for name, ann in method.params)
            lines.append(f"    async def {method.name}(self{params}) -> {method.returns or 'None'}:")
            lines.append("        ...")
            lines.append("")
        lines.append("")
        return lines

    def _generate_provenance(self) -> list[str]:
        """Map each declared type to the interface path it came from"""
        entries = {}
        for table in (self.catalog.records, self.catalog.variants, self.catalog.aliases):
            for name, (qualified, _) in table.items():
                entries[name] = qualified.rsplit('.', 1)[0]
        lines = ["__wit_types__ = {"]
        for name in sorted(entries):
            lines.append(f'    "{name}": "{entries[name]}",')
        lines.append("}")
        lines.append("")
        return lines
