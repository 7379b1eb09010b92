"""Dispatch Generator - capability interfaces and operation-name dispatch for exported functions"""

from .errors import DuplicateOperationError
from .translator import LatticeArg, LatticeMethod


class DispatchGenerator:
    """Generates one capability interface per exported interface and the dispatch coroutine"""

    def __init__(self, methods_by_iface: dict[str, list[LatticeMethod]], contract: str):
        self.methods_by_iface = {name: methods_by_iface[name] for name in sorted(methods_by_iface)}
        self.contract = contract
        self._check_unique()

    def _check_unique(self):
        operations = set()
        owners = {}
        for iface, methods in self.methods_by_iface.items():
            for method in methods:
                if method.operation_name in operations:
                    raise DuplicateOperationError(f"operation [{method.operation_name}] is declared more than once")
                operations.add(method.operation_name)
                # every interface is a base of the same provider class
                if method.func_name in owners:
                    raise DuplicateOperationError(
                        f"method [{method.func_name}] is exported by both [{owners[method.func_name]}] and [{iface}]")
                owners[method.func_name] = iface

    @property
    def interface_names(self) -> list[str]:
        return list(self.methods_by_iface)

    def generate_interfaces(self) -> list[str]:
        lines = []
        for iface, methods in self.methods_by_iface.items():
            lines.extend([
                f"class {iface}(abc.ABC):",
                f'    """Lattice capability interface {iface}"""',
                "",
                "    @staticmethod",
                "    def contract_id() -> str:",
                f'        return "{self.contract}"',
                "",
            ])
            for method in methods:
                params = "".join(f", {a.name}: {a.type}" for a in method.invocation_args)
                lines.extend([
                    "    @abc.abstractmethod",
                    f"    async def {method.func_name}(self, ctx: Context{params}) -> {method.invocation_return or 'None'}:",
                    f'        """Handle [{method.operation_name}]"""',
                    "",
                ])
            lines.append("")
        return lines

    def generate_dispatch(self) -> list[str]:
        """Generate the dispatch coroutine for the provider base class"""
        lines = [
            "    async def dispatch_wrpc_dynamic(self, ctx: Context, operation: str, params: Sequence[bytes]) -> bytes:",
            '        """Route an incoming invocation to its handler and return the encoded result"""',
            "        params = collections.deque(params)",
            "        match operation:",
        ]
        for methods in self.methods_by_iface.values():
            for method in methods:
                lines.extend(self._generate_arm(method))
        lines.extend([
            "            case _:",
            '                raise _rt.MalformedError(f"Invalid operation name [{operation}]")',
            "",
        ])
        return lines

    def _generate_arm(self, method: LatticeMethod) -> list[str]:
        lines = [f'            case "{method.operation_name}":']
        # values arrive in declaration order and are consumed front-first
        for arg in method.invocation_args:
            lines.append(f"                {arg.name} = {self._decode(arg)}")
        args = "".join(f", {a.name}" for a in method.invocation_args)
        lines.extend([
            f"                result = await self.{method.func_name}(ctx{args})",
            "                return _rt.encode_result(result, operation)",
        ])
        return lines

    @staticmethod
    def _decode(arg: LatticeArg) -> str:
        take = f'_rt.take_param(params, "{arg.name}", {arg.wire_type})'
        if arg.is_map:
            return f'_rt.pairs_to_dict({take}, "{arg.name}")'
        return take
