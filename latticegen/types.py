"""Data types for resolved WIT documents"""

from dataclasses import dataclass, field
from typing import Optional, Union


@dataclass
class Param:
    """Function parameter"""
    name: str
    type: str


@dataclass
class Field:
    """Record field"""
    name: str
    type: str


@dataclass
class Function:
    """Interface function"""
    name: str
    params: list[Param] = field(default_factory=list)
    result: Optional[str] = None


@dataclass
class Record:
    """WIT record definition"""
    name: str
    fields: list[Field] = field(default_factory=list)


@dataclass
class Case:
    """Variant case, optionally carrying a payload"""
    name: str
    type: Optional[str] = None


@dataclass
class Variant:
    """WIT variant definition"""
    name: str
    cases: list[Case] = field(default_factory=list)


@dataclass
class Enum:
    """WIT enum definition"""
    name: str
    values: list[str] = field(default_factory=list)


@dataclass
class TypeAlias:
    """WIT type alias (type x = y)"""
    name: str
    target: str


TypeDef = Union[Record, Variant, Enum, TypeAlias]


@dataclass
class Use:
    """Type names pulled in from another interface"""
    interface: str
    names: list[str] = field(default_factory=list)


@dataclass
class Interface:
    """WIT interface definition"""
    namespace: str
    package: str
    name: str
    functions: list[Function] = field(default_factory=list)
    records: list[Record] = field(default_factory=list)
    variants: list[Variant] = field(default_factory=list)
    enums: list[Enum] = field(default_factory=list)
    aliases: list[TypeAlias] = field(default_factory=list)
    uses: list[Use] = field(default_factory=list)

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}:{self.package}/{self.name}"

    def type_defs(self) -> list[TypeDef]:
        return [*self.records, *self.variants, *self.enums, *self.aliases]


@dataclass
class World:
    """WIT world definition; imports and exports hold qualified interface names"""
    namespace: str
    package: str
    name: str
    imports: list[str] = field(default_factory=list)
    exports: list[str] = field(default_factory=list)


@dataclass
class ParsedWIT:
    """Complete resolved WIT graph"""
    interfaces: dict[str, Interface] = field(default_factory=dict)
    worlds: list[World] = field(default_factory=list)
