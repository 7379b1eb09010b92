"""Type catalogs: record, variant and alias declarations plus per-interface methods

Catalogs are built either by scraping a base bindings module with `ast`
(scrape_bindings) or straight from the resolved WIT graph
(TypeCatalog.from_wit). Both produce identical contents.
"""

import ast
import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from .errors import BaseBindingsError
from .naming import safe_ident, to_constant, to_kebab, to_snake, to_upper_camel
from .type_mapper import TypeMapper
from .types import Enum, Interface, ParsedWIT, Record, TypeAlias, Variant, World

logger = logging.getLogger(__name__)

# Names available to annotations without a catalog entry
BUILTIN_NAMES = frozenset({
    'None', 'bool', 'int', 'float', 'str', 'bytes',
    'list', 'tuple', 'dict', 'Optional', 'Union', 'Result',
})


@dataclass(frozen=True)
class RecordDef:
    name: str
    fields: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class VariantDef:
    """Tagged union (cases carry an optional payload) or, with is_enum, a plain enum"""
    name: str
    cases: tuple[tuple[str, Optional[str]], ...] = ()
    is_enum: bool = False

    def case_class(self, tag: str) -> str:
        return f"{self.name}{to_upper_camel(tag)}"


@dataclass(frozen=True)
class AliasDef:
    name: str
    target: str


@dataclass(frozen=True)
class MethodDecl:
    """Method declaration of an interface, as seen in the base bindings"""
    name: str
    params: tuple[tuple[str, str], ...] = ()
    returns: Optional[str] = None


TypeDefinition = Union[RecordDef, VariantDef, AliasDef]


@dataclass
class TypeCatalog:
    """Name-keyed lookup tables: name -> (qualified path, definition)"""
    records: dict[str, tuple[str, RecordDef]] = field(default_factory=dict)
    variants: dict[str, tuple[str, VariantDef]] = field(default_factory=dict)
    aliases: dict[str, tuple[str, AliasDef]] = field(default_factory=dict)
    methods: dict[str, list[MethodDecl]] = field(default_factory=dict)

    def record(self, name: str) -> Optional[RecordDef]:
        entry = self.records.get(name)
        return entry[1] if entry else None

    def knows(self, name: str) -> bool:
        return name in self.records or name in self.variants or name in self.aliases

    def emitted_aliases(self) -> list[AliasDef]:
        """Aliases that need their own definition, ordered so targets come first"""
        pending = {
            name: alias for name, (_, alias) in sorted(self.aliases.items())
            if name not in self.records and name not in self.variants
        }
        ordered = []
        while pending:
            ready = [a for a in pending.values()
                     if not (annotation_names(a.target) & pending.keys() - {a.name})]
            if not ready:
                raise BaseBindingsError(f"circular type aliases: {sorted(pending)}")
            for alias in ready:
                ordered.append(alias)
                del pending[alias.name]
        return ordered

    @classmethod
    def from_wit(cls, wit: ParsedWIT, world: World) -> 'TypeCatalog':
        """Build the catalog directly from the resolved graph of one world"""
        catalog = cls()
        for iface in world_interfaces(wit, world):
            path = interface_path(iface)
            for typedef in iface.type_defs():
                if isinstance(typedef, Record):
                    definition = RecordDef(
                        name=TypeMapper.type_name(typedef.name),
                        fields=tuple((TypeMapper.field_name(f.name), TypeMapper.to_python(f.type))
                                     for f in typedef.fields),
                    )
                    catalog._add(catalog.records, path, definition)
                elif isinstance(typedef, Variant):
                    definition = VariantDef(
                        name=TypeMapper.type_name(typedef.name),
                        cases=tuple((c.name, TypeMapper.to_python(c.type) if c.type else None)
                                    for c in typedef.cases),
                    )
                    catalog._add(catalog.variants, path, definition)
                    # the union assignment in the bindings module is also an alias statement
                    catalog._add(catalog.aliases, path, AliasDef(definition.name, variant_union(definition)))
                elif isinstance(typedef, Enum):
                    definition = VariantDef(
                        name=TypeMapper.type_name(typedef.name),
                        cases=tuple((v, None) for v in typedef.values),
                        is_enum=True,
                    )
                    catalog._add(catalog.variants, path, definition)
                elif isinstance(typedef, TypeAlias):
                    definition = AliasDef(TypeMapper.type_name(typedef.name), TypeMapper.to_python(typedef.target))
                    catalog._add(catalog.aliases, path, definition)

        for qualified in [*world.imports, *world.exports]:
            iface = wit.interfaces[qualified]
            catalog.methods[interface_path(iface)] = [
                MethodDecl(
                    name=TypeMapper.field_name(fn.name),
                    params=tuple((TypeMapper.field_name(p.name), TypeMapper.to_python(p.type)) for p in fn.params),
                    returns=TypeMapper.to_python(fn.result) if fn.result else None,
                )
                for fn in iface.functions
            ]
        logger.debug("catalog for world [%s]: %d records, %d variants, %d aliases, %d interfaces",
                     world.name, len(catalog.records), len(catalog.variants),
                     len(catalog.aliases), len(catalog.methods))
        return catalog

    @staticmethod
    def _add(table: dict, path: str, definition: TypeDefinition):
        name = definition.name
        if name in table and table[name][1] != definition:
            raise BaseBindingsError(
                f"type [{name}] is declared differently in [{table[name][0]}] and [{path}.{name}]")
        table.setdefault(name, (f"{path}.{name}", definition))


def interface_path(iface: Interface) -> str:
    """Dotted snake-case path of an interface (wasmcloud.keyvalue.key_value)"""
    return '.'.join(to_snake(s) for s in (iface.namespace, iface.package, iface.name))


def world_interfaces(wit: ParsedWIT, world: World) -> list[Interface]:
    """Interfaces imported or exported by a world, plus everything they use, sorted"""
    seen = {}
    stack = [*world.imports, *world.exports]
    while stack:
        qualified = stack.pop()
        if qualified in seen:
            continue
        iface = wit.interfaces[qualified]
        seen[qualified] = iface
        stack.extend(u.interface for u in iface.uses)
    return [seen[k] for k in sorted(seen)]


def variant_union(variant: VariantDef) -> str:
    return f"Union[{', '.join(variant.case_class(tag) for tag, _ in variant.cases)}]"


def annotation_names(annotation: str) -> set[str]:
    """Every bare name referenced by a Python annotation expression"""
    try:
        tree = ast.parse(annotation, mode='eval')
    except SyntaxError as e:
        raise BaseBindingsError(f"malformed type annotation [{annotation}]: {e}") from e
    return {node.id for node in ast.walk(tree) if isinstance(node, ast.Name)}


def render_types(catalog: TypeCatalog) -> list[str]:
    """Render catalog types as Python source lines, in a stable order"""
    lines = []
    for name in sorted(catalog.records):
        record = catalog.records[name][1]
        # fields travel under their WIT names
        rename = {f: to_kebab(f) for f, _ in record.fields if to_kebab(f) != f}
        options = f", rename={rename!r}" if rename else ""
        lines.append(f"class {record.name}(msgspec.Struct{options}):")
        if not record.fields:
            lines.append("    pass")
        for field_name, ann in record.fields:
            lines.append(f"    {field_name}: {ann}")
        lines.extend(["", ""])

    variants = [catalog.variants[name][1] for name in sorted(catalog.variants)]
    for variant in (v for v in variants if v.is_enum):
        lines.append(f"class {variant.name}(enum.Enum):")
        for tag, _ in variant.cases:
            lines.append(f'    {safe_ident(to_constant(tag))} = "{tag}"')
        lines.extend(["", ""])

    for variant in (v for v in variants if not v.is_enum):
        for tag, payload in variant.cases:
            lines.append(f'class {variant.case_class(tag)}(msgspec.Struct, tag="{tag}"):')
            lines.append(f"    value: {payload}" if payload else "    pass")
            lines.extend(["", ""])
        lines.append(f"{variant.name} = {variant_union(variant)}")
        lines.append("")

    for alias in catalog.emitted_aliases():
        lines.append(f"{alias.name} = {alias.target}")
    if lines and lines[-1] != "":
        lines.append("")
    return lines


def scrape_bindings(source: str) -> TypeCatalog:
    """Extract type catalogs and interface methods from a base bindings module"""
    try:
        tree = ast.parse(source)
    except SyntaxError as e:
        raise BaseBindingsError(f"base bindings are not valid Python: {e}") from e

    provenance = _provenance(tree)
    catalog = TypeCatalog()
    cases: dict[str, tuple[str, Optional[str]]] = {}
    unions: list[tuple[str, list[str]]] = []

    def qualified(name: str) -> str:
        if name not in provenance:
            raise BaseBindingsError(f"type [{name}] has no entry in __wit_types__")
        return f"{provenance[name]}.{name}"

    def declare(table: dict, definition: TypeDefinition):
        if definition.name in table:
            raise BaseBindingsError(f"type [{definition.name}] is declared more than once")
        table[definition.name] = (qualified(definition.name), definition)

    for node in tree.body:
        if isinstance(node, ast.ClassDef):
            bases = {ast.unparse(b) for b in node.bases}
            tag = next((k.value for k in node.keywords if k.arg == 'tag'), None)
            if 'msgspec.Struct' in bases and tag is not None:
                if not isinstance(tag, ast.Constant):
                    raise BaseBindingsError(f"variant case [{node.name}] has a non-literal tag")
                payload = _fields(node)
                cases[node.name] = (tag.value, payload[0][1] if payload else None)
            elif 'msgspec.Struct' in bases:
                declare(catalog.records, RecordDef(node.name, tuple(_fields(node))))
            elif 'enum.Enum' in bases:
                values = tuple((stmt.value.value, None) for stmt in node.body
                               if isinstance(stmt, ast.Assign) and isinstance(stmt.value, ast.Constant))
                declare(catalog.variants, VariantDef(node.name, values, is_enum=True))
            elif 'Protocol' in bases:
                path, methods = _protocol(node)
                catalog.methods[path] = methods
        elif isinstance(node, ast.Assign) and len(node.targets) == 1 and isinstance(node.targets[0], ast.Name):
            name = node.targets[0].id
            if name.startswith('__'):
                continue
            declare(catalog.aliases, AliasDef(name, ast.unparse(node.value)))
            if members := _union_members(node.value):
                unions.append((name, members))

    for name, members in unions:
        if all(m in cases for m in members):
            declare(catalog.variants, VariantDef(name, tuple(cases[m] for m in members)))
    return catalog


def _provenance(tree: ast.Module) -> dict[str, str]:
    for node in tree.body:
        if (isinstance(node, ast.Assign) and len(node.targets) == 1
                and isinstance(node.targets[0], ast.Name) and node.targets[0].id == '__wit_types__'):
            try:
                return ast.literal_eval(node.value)
            except ValueError as e:
                raise BaseBindingsError(f"__wit_types__ is not a literal mapping: {e}") from e
    raise BaseBindingsError("base bindings have no __wit_types__ table")


def _fields(node: ast.ClassDef) -> list[tuple[str, str]]:
    fields = []
    for stmt in node.body:
        if isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
            fields.append((stmt.target.id, ast.unparse(stmt.annotation)))
        elif isinstance(stmt, ast.Assign):
            raise BaseBindingsError(f"field of [{node.name}] is missing a type annotation")
    return fields


def _protocol(node: ast.ClassDef) -> tuple[str, list[MethodDecl]]:
    path = None
    methods = []
    for stmt in node.body:
        if (isinstance(stmt, ast.Assign) and isinstance(stmt.targets[0], ast.Name)
                and stmt.targets[0].id == '__interface_path__' and isinstance(stmt.value, ast.Constant)):
            path = stmt.value.value
        elif isinstance(stmt, (ast.AsyncFunctionDef, ast.FunctionDef)):
            params = []
            for arg in stmt.args.args[1:]:
                if arg.annotation is None:
                    raise BaseBindingsError(f"parameter [{arg.arg}] of [{node.name}.{stmt.name}] has no annotation")
                params.append((arg.arg, ast.unparse(arg.annotation)))
            returns = ast.unparse(stmt.returns) if stmt.returns is not None else 'None'
            methods.append(MethodDecl(stmt.name, tuple(params), None if returns == 'None' else returns))
    if path is None:
        raise BaseBindingsError(f"interface [{node.name}] has no __interface_path__")
    return path, methods


def _union_members(value: ast.expr) -> Optional[list[str]]:
    if not (isinstance(value, ast.Subscript) and ast.unparse(value.value) == 'Union'):
        return None
    elts = value.slice.elts if isinstance(value.slice, ast.Tuple) else [value.slice]
    if not all(isinstance(e, ast.Name) for e in elts):
        return None
    return [e.id for e in elts]
