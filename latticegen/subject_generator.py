"""Subject Generator - wRPC NATS subject to function mapping for exported functions"""

import logging
from dataclasses import dataclass

from .errors import DuplicateOperationError, UnresolvedTypeError
from .runtime import DynamicFunction, dump_dynamic_function
from .type_mapper import TypeMapper
from .types import Function, Record, TypeDef

logger = logging.getLogger(__name__)

TRANSPORT_TAG = "wrpc"


@dataclass(frozen=True)
class SubjectEntry:
    operation_name: str
    world_key_name: str
    function_name: str
    dynamic_function: DynamicFunction


class TypeLookup:
    """Resolves WIT type names across the interfaces of one world"""

    def __init__(self, types: dict[str, TypeDef]):
        self.types = types

    def __call__(self, name: str) -> TypeDef:
        if name not in self.types:
            raise UnresolvedTypeError(f"unknown type [{name}]")
        return self.types[name]


def build_dynamic_function(function: Function, lookup: TypeLookup) -> DynamicFunction:
    """Describe the wire shape of a function: one value per argument after record flattening"""
    param_types = [p.type for p in function.params]
    if len(param_types) == 1 and isinstance(lookup.types.get(param_types[0]), Record):
        param_types = [f.type for f in lookup.types[param_types[0]].fields]
    return DynamicFunction(
        params=tuple(TypeMapper.to_shape(t, lookup) for t in param_types),
        results=(TypeMapper.to_shape(function.result, lookup),) if function.result else (),
    )


class SubjectGenerator:
    """Generates the subject table accessor for the provider base class"""

    def __init__(self, entries: list[SubjectEntry]):
        self.entries = sorted(entries, key=lambda e: e.operation_name)
        seen = set()
        for entry in self.entries:
            if entry.operation_name in seen:
                raise DuplicateOperationError(f"subject for [{entry.operation_name}] is generated more than once")
            seen.add(entry.operation_name)
        logger.debug("generating %d subject entries", len(self.entries))

    def generate_constants(self) -> list[str]:
        """Module-level table of decoded function descriptors, keyed by operation name"""
        lines = ["_DYNAMIC_FUNCTIONS = MappingProxyType({"]
        for entry in self.entries:
            lines.append(f'    "{entry.operation_name}": '
                         f"_rt.load_dynamic_function({dump_dynamic_function(entry.dynamic_function)!r}),")
        lines.extend(["})", "", ""])
        return lines

    def generate(self) -> list[str]:
        lines = [
            "    @staticmethod",
            "    def incoming_wrpc_invocations_by_subject(",
            "        lattice_name: str, component_id: str, wrpc_version: str,",
            "    ) -> Mapping[str, SubjectTarget]:",
            '        """Subjects this provider answers on, mapped to the function each one invokes"""',
            f'        prefix = f"{{lattice_name}}.{{component_id}}.{TRANSPORT_TAG}.{{wrpc_version}}"',
            "        mapping = {}",
        ]
        for entry in self.entries:
            lines.extend([
                f'        mapping[f"{{prefix}}.{entry.operation_name}"] = SubjectTarget(',
                f'            "{entry.world_key_name}",',
                f'            "{entry.function_name}",',
                f'            _DYNAMIC_FUNCTIONS["{entry.operation_name}"],',
                "        )",
            ])
        lines.extend([
            "        return MappingProxyType(mapping)",
            "",
        ])
        return lines
