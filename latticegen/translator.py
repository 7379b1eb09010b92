"""Lattice Method Translator - turns interface method declarations into lattice methods"""

import ast
import logging
from dataclasses import dataclass
from typing import Optional, Union

from .catalog import BUILTIN_NAMES, MethodDecl, TypeCatalog, annotation_names
from .config import BindingConfig
from .errors import GenerationError, InterfacePathError, UnresolvedTypeError
from .naming import safe_ident, to_kebab, to_upper_camel

logger = logging.getLogger(__name__)

# Names the generated dispatch and stub code reads; arguments must not shadow them
RESERVED_ARGS = frozenset({
    'self', 'ctx', 'operation', 'params', 'result',
    'abc', 'collections', 'enum', 'msgspec', '_rt',
    'Any', 'Context', 'Err', 'Mapping', 'MappingProxyType', 'Ok', 'Optional', 'Result',
    'Sequence', 'SubjectTarget', 'Union', 'WrpcClient',
}) | BUILTIN_NAMES

# Methods of the generated provider base class
RESERVED_METHODS = frozenset({
    'contract_id', 'dispatch_wrpc_dynamic', 'incoming_wrpc_invocations_by_subject',
    'receive_link_config_as_source', 'receive_link_config_as_target', 'delete_link', 'shutdown',
})

# Map keys must be hashable once decoded
HASHABLE_NAMES = frozenset({'str', 'int', 'float', 'bool', 'bytes', 'None'})


@dataclass(frozen=True)
class ExportedFunction:
    """A function this component serves to the lattice"""
    interface_path: str
    method: MethodDecl


@dataclass(frozen=True)
class ImportedFunction:
    """A function this component calls on a remote interface"""
    interface_path: str
    method: MethodDecl
    stub_name: str


LatticeFunction = Union[ExportedFunction, ImportedFunction]


@dataclass(frozen=True)
class LatticeArg:
    name: str
    # annotation seen by handlers and callers
    type: str
    # annotation of the value on the wire; differs from type for translated maps
    wire_type: str

    @property
    def is_map(self) -> bool:
        return self.type != self.wire_type


@dataclass(frozen=True)
class LatticeMethod:
    """Normalized description of one lattice-callable function"""

    # Wire identifier, ex. `wasmcloud:keyvalue/key-value.get`
    operation_name: str

    # Python method invoked on the handler (exports) or exposed on the client handle (imports)
    func_name: str

    # Arguments in declaration order, after record flattening
    invocation_args: tuple[LatticeArg, ...]

    # Return annotation, None for functions without a result
    invocation_return: Optional[str]

    # Record whose fields became the arguments, if any
    flattened_from: Optional[str] = None


def split_interface_path(path: str) -> tuple[str, str, str]:
    segments = path.split('.')
    if len(segments) != 3 or not all(segments):
        raise InterfacePathError(f"unexpected interface path [{path}], expected 3 components")
    return segments[0], segments[1], segments[2]


def operation_name(interface_path: str, func_name: str) -> str:
    """Rebuild the fully-qualified WIT operation name (ns:pkg/iface.func)"""
    ns, pkg, iface = split_interface_path(interface_path)
    return f"{to_kebab(ns)}:{to_kebab(pkg)}/{to_kebab(iface)}.{to_kebab(func_name)}"


def interface_trait_name(interface_path: str) -> str:
    """Upper camel case name of the capability interface (ex. `WasmcloudKeyvalueKeyValue`)"""
    return ''.join(to_upper_camel(s) for s in split_interface_path(interface_path))


def witified_map(annotation: str) -> Optional[tuple[str, str]]:
    """Key and value annotations if the annotation is list[tuple[K, V]]"""
    try:
        node = ast.parse(annotation, mode='eval').body
    except SyntaxError:
        return None
    if not (isinstance(node, ast.Subscript) and isinstance(node.value, ast.Name) and node.value.id == 'list'):
        return None
    inner = node.slice
    if not (isinstance(inner, ast.Subscript) and isinstance(inner.value, ast.Name) and inner.value.id == 'tuple'):
        return None
    if not (isinstance(inner.slice, ast.Tuple) and len(inner.slice.elts) == 2):
        return None
    key, value = inner.slice.elts
    return ast.unparse(key), ast.unparse(value)


def translate(function: LatticeFunction, catalog: TypeCatalog, config: BindingConfig) -> LatticeMethod:
    """Convert one function into the lattice-facing description of it"""
    method = function.method
    operation = operation_name(function.interface_path, method.name)
    logger.debug("translating [%s] (%s)", operation, type(function).__name__)

    for _, ann in method.params:
        _check_resolved(ann, catalog, operation)
    if method.returns:
        _check_resolved(method.returns, catalog, operation)

    params = method.params
    flattened_from = None
    # a single record parameter is spread into its fields
    if len(params) == 1 and (record := catalog.record(params[0][1])):
        params = record.fields
        flattened_from = record.name
        for _, ann in params:
            _check_resolved(ann, catalog, operation)

    args = []
    for name, ann in params:
        arg_type = ann
        if config.replace_witified_maps and (kv := witified_map(ann)):
            if is_hashable(kv[0], catalog):
                arg_type = f"dict[{kv[0]}, {kv[1]}]"
            else:
                logger.debug("keeping [%s] of [%s] as pairs, key [%s] is not hashable", name, operation, kv[0])
        args.append(LatticeArg(name=safe_ident(name, RESERVED_ARGS), type=arg_type, wire_type=ann))

    names = [a.name for a in args]
    if len(set(names)) != len(names):
        raise GenerationError(f"duplicate argument names {names} for operation [{operation}]")

    if isinstance(function, ImportedFunction):
        func_name = function.stub_name
    else:
        func_name = safe_ident(method.name, RESERVED_METHODS)

    return LatticeMethod(
        operation_name=operation,
        func_name=func_name,
        invocation_args=tuple(args),
        invocation_return=method.returns,
        flattened_from=flattened_from,
    )


def is_hashable(annotation: str, catalog: TypeCatalog) -> bool:
    """Whether values of the annotation can be dict keys (scalars, enums, tuples and options of those)"""
    return _hashable(ast.parse(annotation, mode='eval').body, catalog, ())


def _hashable(node: ast.expr, catalog: TypeCatalog, seen: tuple[str, ...]) -> bool:
    if isinstance(node, ast.Constant):
        return node.value is None
    if isinstance(node, ast.Name):
        if node.id in HASHABLE_NAMES:
            return True
        if node.id in catalog.variants:
            return catalog.variants[node.id][1].is_enum
        if node.id in catalog.aliases and node.id not in seen:
            return _hashable(ast.parse(catalog.aliases[node.id][1].target, mode='eval').body,
                             catalog, (*seen, node.id))
        return False
    if isinstance(node, ast.Subscript) and isinstance(node.value, ast.Name) and node.value.id in ('tuple', 'Optional'):
        elts = node.slice.elts if isinstance(node.slice, ast.Tuple) else [node.slice]
        return all(_hashable(e, catalog, seen) for e in elts)
    return False


def _check_resolved(annotation: str, catalog: TypeCatalog, operation: str):
    for name in sorted(annotation_names(annotation) - BUILTIN_NAMES):
        if not catalog.knows(name):
            raise UnresolvedTypeError(f"unknown type [{name}] referenced by operation [{operation}]")
