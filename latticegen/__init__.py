"""
Lattice Binding Compiler Package

Reads WIT worlds and generates Python provider bindings for a wRPC lattice:
  1. Base bindings (types and per-interface declarations)
  2. Capability interfaces with operation-name dispatch for exported functions
  3. Invocation stubs for imported functions
  4. Subject to function mapping for the NATS transport
"""

from .types import (
    Param, Field, Function, Record, Case, Variant, Enum, TypeAlias, Use, Interface, World,
    ParsedWIT,
)
from .errors import GenerationError
from .parser import WITParser
from .type_mapper import TypeMapper
from .config import BindingConfig, load_config
from .policy import InterfacePolicy
from .catalog import TypeCatalog, scrape_bindings
from .translator import ExportedFunction, ImportedFunction, LatticeMethod, translate
from .base_generator import BaseGenerator
from .dispatch_generator import DispatchGenerator
from .invocation_generator import InvocationGenerator
from .subject_generator import SubjectGenerator
from .compiler import BindingCompiler

__all__ = [
    'Param', 'Field', 'Function', 'Record', 'Case', 'Variant', 'Enum', 'TypeAlias', 'Use',
    'Interface', 'World', 'ParsedWIT',
    'GenerationError', 'WITParser', 'TypeMapper', 'BindingConfig', 'load_config',
    'InterfacePolicy', 'TypeCatalog', 'scrape_bindings',
    'ExportedFunction', 'ImportedFunction', 'LatticeMethod', 'translate',
    'BaseGenerator', 'DispatchGenerator', 'InvocationGenerator', 'SubjectGenerator',
    'BindingCompiler',
]
