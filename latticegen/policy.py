"""Which interfaces are routed over the lattice"""

from dataclasses import dataclass
from typing import Callable

from .config import BindingConfig
from .types import Interface

# Host-intrinsic packages that never travel over the lattice transport
IGNORED_PACKAGES = frozenset({
    ("wasmcloud", "bus"),
    ("wasi", "io"),
})


def is_ignored_invocation_handler_pkg(namespace: str, package: str) -> bool:
    """Check whether a package should *not* get dispatch arms, stubs or subjects"""
    return (namespace, package) in IGNORED_PACKAGES


@dataclass(frozen=True)
class InterfacePolicy:
    allow: frozenset[str] = frozenset()
    deny: frozenset[str] = frozenset()
    ignored: Callable[[str, str], bool] = is_ignored_invocation_handler_pkg

    @classmethod
    def from_config(cls, config: BindingConfig,
                    ignored: Callable[[str, str], bool] = is_ignored_invocation_handler_pkg) -> 'InterfacePolicy':
        return cls(allow=config.exposed_interface_allow_list,
                   deny=config.exposed_interface_deny_list,
                   ignored=ignored)

    def exposes(self, iface: Interface) -> bool:
        """Exported interfaces: exclusion predicate first, then allow/deny lists"""
        if self.ignored(iface.namespace, iface.package):
            return False
        if self.allow and iface.qualified_name not in self.allow:
            return False
        return iface.qualified_name not in self.deny

    def invokes(self, iface: Interface) -> bool:
        """Imported interfaces only honour the exclusion predicate"""
        return not self.ignored(iface.namespace, iface.package)
