"""WIT parser for the subset used by capability contracts"""

import logging
import re

from .errors import UnresolvedInterfaceError, WitParseError
from .types import (
    Case, Enum, Field, Function, Interface, Param, ParsedWIT, Record, TypeAlias, Use,
    Variant, World,
)

logger = logging.getLogger(__name__)

_IDENT = r'%?[a-z][a-z0-9-]*'
_QUALIFIED = re.compile(rf'^({_IDENT}):({_IDENT})/({_IDENT})(?:@[\w.+-]+)?$')
_LOCAL = re.compile(rf'^{_IDENT}$')


class WITParser:
    """Parses one or more WIT documents into a single resolved graph"""

    def __init__(self, *sources: str):
        self.sources = [self._strip_comments(s) for s in sources]

    def _strip_comments(self, content: str) -> str:
        content = re.sub(r'//.*$', '', content, flags=re.MULTILINE)
        content = re.sub(r'/\*.*?\*/', '', content, flags=re.DOTALL)
        return content

    def parse(self) -> ParsedWIT:
        result = ParsedWIT()
        for content in self.sources:
            namespace, package = self._parse_package(content)
            for name, body in self._blocks(content, 'interface'):
                iface = Interface(namespace=namespace, package=package, name=name)
                self._parse_interface_body(body, iface)
                if iface.qualified_name in result.interfaces:
                    raise WitParseError(f"interface [{iface.qualified_name}] is defined more than once")
                logger.debug("parsed interface [%s] with %d functions",
                             iface.qualified_name, len(iface.functions))
                result.interfaces[iface.qualified_name] = iface
            for name, body in self._blocks(content, 'world'):
                world = World(namespace=namespace, package=package, name=name)
                self._parse_world_body(body, world)
                result.worlds.append(world)
        self._check_references(result)
        return result

    def _parse_package(self, content: str) -> tuple[str, str]:
        m = re.search(rf'^\s*package\s+({_IDENT}):({_IDENT})(?:@[\w.+-]+)?\s*;',
                      content, flags=re.MULTILINE)
        if not m:
            raise WitParseError("missing package declaration (package <namespace>:<name>;)")
        return self._ident(m.group(1)), self._ident(m.group(2))

    def _blocks(self, content: str, keyword: str) -> list[tuple[str, str]]:
        """Find top-level `keyword name { ... }` blocks, honouring nested braces"""
        blocks = []
        for m in re.finditer(rf'(?<![\w-]){keyword}\s+({_IDENT})\s*\{{', content):
            depth = 1
            pos = m.end()
            while depth and pos < len(content):
                if content[pos] == '{':
                    depth += 1
                elif content[pos] == '}':
                    depth -= 1
                pos += 1
            if depth:
                raise WitParseError(f"unterminated {keyword} [{m.group(1)}]")
            blocks.append((self._ident(m.group(1)), content[m.end():pos - 1]))
        return blocks

    def _parse_interface_body(self, body: str, iface: Interface):
        for m in re.finditer(rf'\brecord\s+({_IDENT})\s*\{{([^}}]*)\}}', body):
            fields = []
            for item in self._split_top_level(m.group(2)):
                name, _, ty = item.partition(':')
                if not ty:
                    raise WitParseError(f"malformed field [{item}] in record [{m.group(1)}]")
                fields.append(Field(name=self._ident(name), type=self._normalize_type(ty)))
            iface.records.append(Record(name=self._ident(m.group(1)), fields=fields))

        for m in re.finditer(rf'\bvariant\s+({_IDENT})\s*\{{([^}}]*)\}}', body):
            cases = []
            for item in self._split_top_level(m.group(2)):
                if cm := re.match(rf'({_IDENT})\s*\((.+)\)$', item, flags=re.DOTALL):
                    cases.append(Case(name=self._ident(cm.group(1)),
                                      type=self._normalize_type(cm.group(2))))
                else:
                    cases.append(Case(name=self._ident(item)))
            iface.variants.append(Variant(name=self._ident(m.group(1)), cases=cases))

        for m in re.finditer(rf'\benum\s+({_IDENT})\s*\{{([^}}]*)\}}', body):
            values = [self._ident(v) for v in self._split_top_level(m.group(2))]
            iface.enums.append(Enum(name=self._ident(m.group(1)), values=values))

        rest = re.sub(r'\b(record|variant|enum)\s+[\w%-]+\s*\{[^}]*\}', '', body)
        for stmt in rest.split(';'):
            stmt = stmt.strip()
            if not stmt:
                continue

            # use types.{a, b}
            if m := re.match(r'use\s+([\w%:/@.-]+?)\.\{([^}]*)\}$', stmt):
                target = self._qualify(m.group(1), iface.namespace, iface.package)
                names = [self._ident(n) for n in self._split_top_level(m.group(2))]
                if any(' as ' in n for n in names):
                    raise WitParseError(f"renaming in use statements is not supported: [{stmt}]")
                iface.uses.append(Use(interface=target, names=names))
            # type name = target
            elif m := re.match(rf'type\s+({_IDENT})\s*=\s*(.+)$', stmt, flags=re.DOTALL):
                iface.aliases.append(TypeAlias(name=self._ident(m.group(1)),
                                               target=self._normalize_type(m.group(2))))
            # name: func(params) [-> result]
            elif m := re.match(rf'({_IDENT})\s*:\s*func\s*\((.*)\)\s*(?:->\s*(.+))?$',
                               stmt, flags=re.DOTALL):
                iface.functions.append(Function(
                    name=self._ident(m.group(1)),
                    params=self._parse_params(m.group(2)),
                    result=self._normalize_type(m.group(3)) if m.group(3) else None,
                ))
            else:
                raise WitParseError(f"unsupported statement in interface [{iface.name}]: [{stmt}]")

    def _parse_world_body(self, body: str, world: World):
        for stmt in body.split(';'):
            stmt = stmt.strip()
            if not stmt:
                continue
            m = re.match(r'(import|export)\s+(.+)$', stmt, flags=re.DOTALL)
            if not m:
                raise WitParseError(f"unsupported statement in world [{world.name}]: [{stmt}]")
            target = self._qualify(m.group(2).strip(), world.namespace, world.package)
            if m.group(1) == 'import':
                world.imports.append(target)
            else:
                world.exports.append(target)

    def _parse_params(self, params_str: str) -> list[Param]:
        params = []
        for p in self._split_top_level(params_str):
            name, _, ty = p.partition(':')
            if not ty:
                raise WitParseError(f"malformed parameter [{p}]")
            params.append(Param(name=self._ident(name), type=self._normalize_type(ty)))
        return params

    def _qualify(self, ref: str, namespace: str, package: str) -> str:
        """Turn a local or foreign interface reference into ns:pkg/name"""
        if m := _QUALIFIED.match(ref):
            return f"{self._ident(m.group(1))}:{self._ident(m.group(2))}/{self._ident(m.group(3))}"
        if _LOCAL.match(ref):
            return f"{namespace}:{package}/{self._ident(ref)}"
        raise WitParseError(f"unsupported interface reference [{ref}]")

    def _check_references(self, result: ParsedWIT):
        for world in result.worlds:
            for ref in world.imports + world.exports:
                if ref not in result.interfaces:
                    raise UnresolvedInterfaceError(f"world [{world.name}] references unknown interface [{ref}]")
        for iface in result.interfaces.values():
            for use in iface.uses:
                if use.interface not in result.interfaces:
                    raise UnresolvedInterfaceError(
                        f"interface [{iface.qualified_name}] uses unknown interface [{use.interface}]")

    @staticmethod
    def _split_top_level(text: str) -> list[str]:
        """Split on commas that are not nested inside <> or ()"""
        items = []
        depth = 0
        current = []
        for ch in text:
            if ch in '<(':
                depth += 1
            elif ch in '>)':
                depth -= 1
            if ch == ',' and depth == 0:
                items.append(''.join(current).strip())
                current = []
            else:
                current.append(ch)
        items.append(''.join(current).strip())
        return [i for i in items if i]

    @staticmethod
    def _normalize_type(ty: str) -> str:
        ty = re.sub(r'\s+', '', ty)
        if not re.fullmatch(r'[a-z0-9%<>,_-]+', ty):
            raise WitParseError(f"unsupported type expression [{ty}]")
        return ty.replace('%', '').replace(',', ', ')

    @staticmethod
    def _ident(name: str) -> str:
        return name.strip().lstrip('%')
