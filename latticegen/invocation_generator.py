"""Invocation Generator - client stubs for functions imported over the lattice"""

from .errors import DuplicateOperationError
from .translator import LatticeArg, LatticeMethod


class InvocationGenerator:
    """Generates the InvocationHandler class, one coroutine per imported function"""

    def __init__(self, methods: list[LatticeMethod]):
        self.methods = methods
        names = [m.func_name for m in methods]
        if len(set(names)) != len(names):
            raise DuplicateOperationError(f"duplicate invocation stub names: {sorted(names)}")

    def generate(self) -> list[str]:
        lines = [
            "class InvocationHandler:",
            '    """Client handle for interfaces imported over the lattice"""',
            "",
            "    def __init__(self, client: WrpcClient, target: str):",
            "        self._client = client",
            "        self._target = target",
            "",
        ]
        for method in self.methods:
            lines.extend(self._generate_stub(method))
        lines.append("")
        return lines

    def _generate_stub(self, method: LatticeMethod) -> list[str]:
        params = "".join(f", {a.name}: {a.type}" for a in method.invocation_args)
        returns = method.invocation_return or "None"
        encoded = ", ".join(self._encode(a) for a in method.invocation_args)
        return [
            f"    async def {method.func_name}(self{params}) -> {returns}:",
            f'        """Invoke [{method.operation_name}] on the target"""',
            "        return await _rt.invoke(",
            f'            self._client, self._target, "{method.operation_name}",',
            f"            [{encoded}],",
            f"            {returns},",
            "        )",
            "",
        ]

    @staticmethod
    def _encode(arg: LatticeArg) -> str:
        if arg.is_map:
            return f"_rt.dict_to_pairs({arg.name})"
        return arg.name
