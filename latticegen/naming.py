"""Naming convention translation between WIT (kebab), Python (snake) and type names (UpperCamel)"""

import keyword
import re

_SEPARATORS = re.compile(r"[^A-Za-z0-9]+")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def split_words(name: str) -> list[str]:
    """Split an identifier in any of the three conventions into lowercase words"""
    words = []
    for part in _SEPARATORS.split(name):
        if part:
            words.extend(w.lower() for w in _CAMEL_BOUNDARY.split(part) if w)
    return words


def to_kebab(name: str) -> str:
    return "-".join(split_words(name))


def to_snake(name: str) -> str:
    return "_".join(split_words(name))


def to_upper_camel(name: str) -> str:
    return "".join(w[0].upper() + w[1:] for w in split_words(name))


def to_constant(name: str) -> str:
    return to_snake(name).upper()


def safe_ident(name: str, reserved: frozenset[str] = frozenset()) -> str:
    """Make a snake_case name usable as a Python identifier"""
    if keyword.iskeyword(name) or name in reserved:
        return f"{name}_"
    return name
