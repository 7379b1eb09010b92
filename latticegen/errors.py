"""Generation-time errors

Every error raised while compiling bindings derives from GenerationError and
aborts the whole run; no partial output is written.
"""


class GenerationError(Exception):
    """Base class for all fatal binding generation failures"""


class WitParseError(GenerationError):
    """The WIT input is outside the supported subset or malformed"""


class UnresolvedInterfaceError(GenerationError):
    """A world or use statement references an unknown interface"""


class UnresolvedTypeError(GenerationError):
    """A referenced type name is not present in any catalog"""


class InterfacePathError(GenerationError):
    """An interface path does not have exactly three segments"""


class ConfigError(GenerationError):
    """The binding configuration could not be parsed or validated"""


class BaseBindingsError(GenerationError):
    """The base bindings module could not be scraped"""


class DuplicateOperationError(GenerationError):
    """Two functions produce the same operation name, subject or method"""
