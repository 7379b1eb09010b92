"""Type mapping from WIT types to Python annotations and structural shapes"""

import re
from typing import Callable, Optional

from .errors import UnresolvedTypeError, WitParseError
from .naming import safe_ident, to_snake, to_upper_camel
from .runtime import TypeShape
from .types import Enum, Record, TypeAlias, TypeDef, Variant


class TypeMapper:
    """Maps WIT type expressions to Python type annotations"""

    # Direct Python type mappings
    PYTHON_TYPES = {
        'bool': 'bool',
        'u8': 'int',
        'u16': 'int',
        'u32': 'int',
        'u64': 'int',
        's8': 'int',
        's16': 'int',
        's32': 'int',
        's64': 'int',
        'f32': 'float',
        'f64': 'float',
        'float32': 'float',
        'float64': 'float',
        'char': 'str',
        'string': 'str',
    }

    GENERICS = ('list', 'option', 'result', 'tuple')

    @classmethod
    def to_python(cls, wit_type: str) -> str:
        """Convert WIT type to Python type annotation"""
        if parsed := cls.generic(wit_type):
            outer, args = parsed
            if outer == 'list':
                if args == ['u8']:
                    return 'bytes'
                return f'list[{cls.to_python(args[0])}]'
            if outer == 'option':
                return f'Optional[{cls.to_python(args[0])}]'
            if outer == 'tuple':
                return f"tuple[{', '.join(cls.to_python(a) for a in args)}]"
            ok, err = cls.result_args(args)
            return f"Result[{cls.to_python(ok) if ok else 'None'}, {cls.to_python(err) if err else 'None'}]"
        if wit_type == 'result':
            return 'Result[None, None]'
        if wit_type in cls.PYTHON_TYPES:
            return cls.PYTHON_TYPES[wit_type]
        return cls.type_name(wit_type)

    @classmethod
    def type_name(cls, wit_name: str) -> str:
        """Python class name for a named WIT type (put-args -> PutArgs)"""
        return to_upper_camel(wit_name)

    @classmethod
    def field_name(cls, wit_name: str) -> str:
        """Python identifier for a WIT field, parameter or function name"""
        return safe_ident(to_snake(wit_name))

    @classmethod
    def generic(cls, wit_type: str) -> Optional[tuple[str, list[str]]]:
        """Split `outer<a, b>` into ('outer', ['a', 'b'])"""
        m = re.fullmatch(r'([a-z]+)<(.*)>', wit_type)
        if not m:
            return None
        outer = m.group(1)
        if outer not in cls.GENERICS:
            raise WitParseError(f"unsupported generic type [{wit_type}]")
        args = cls.split_args(m.group(2))
        if outer in ('list', 'option') and len(args) != 1:
            raise WitParseError(f"[{outer}] takes exactly one type argument: [{wit_type}]")
        if outer == 'result' and len(args) > 2:
            raise WitParseError(f"[result] takes at most two type arguments: [{wit_type}]")
        return outer, args

    @classmethod
    def result_args(cls, args: list[str]) -> tuple[Optional[str], Optional[str]]:
        ok = args[0] if args and args[0] != '_' else None
        err = args[1] if len(args) > 1 else None
        return ok, err

    @classmethod
    def split_args(cls, text: str) -> list[str]:
        args = []
        depth = 0
        start = 0
        for i, ch in enumerate(text):
            if ch == '<':
                depth += 1
            elif ch == '>':
                depth -= 1
            elif ch == ',' and depth == 0:
                args.append(text[start:i].strip())
                start = i + 1
        args.append(text[start:].strip())
        return [a for a in args if a]

    @classmethod
    def to_shape(cls, wit_type: str, lookup: Callable[[str], TypeDef], _seen: tuple[str, ...] = ()) -> TypeShape:
        """Describe a WIT type structurally, resolving named types through lookup"""
        none = TypeShape(kind='none')
        if parsed := cls.generic(wit_type):
            outer, args = parsed
            if outer == 'result':
                ok, err = cls.result_args(args)
                return TypeShape(kind='result', args=(
                    cls.to_shape(ok, lookup, _seen) if ok else none,
                    cls.to_shape(err, lookup, _seen) if err else none,
                ))
            return TypeShape(kind=outer, args=tuple(cls.to_shape(a, lookup, _seen) for a in args))
        if wit_type == 'result':
            return TypeShape(kind='result', args=(none, none))
        if wit_type in cls.PYTHON_TYPES:
            return TypeShape(kind={'float32': 'f32', 'float64': 'f64'}.get(wit_type, wit_type))

        if wit_type in _seen:
            raise UnresolvedTypeError(f"type [{wit_type}] is defined in terms of itself")
        seen = (*_seen, wit_type)
        typedef = lookup(wit_type)
        if isinstance(typedef, Record):
            return TypeShape(kind='record', names=tuple(f.name for f in typedef.fields),
                             args=tuple(cls.to_shape(f.type, lookup, seen) for f in typedef.fields))
        if isinstance(typedef, Variant):
            return TypeShape(kind='variant', names=tuple(c.name for c in typedef.cases), args=tuple(
                cls.to_shape(c.type, lookup, seen) if c.type else none
                for c in typedef.cases
            ))
        if isinstance(typedef, Enum):
            return TypeShape(kind='enum', names=tuple(typedef.values))
        if isinstance(typedef, TypeAlias):
            return cls.to_shape(typedef.target, lookup, seen)
        raise UnresolvedTypeError(f"unknown type [{wit_type}]")
