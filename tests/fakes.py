"""In-memory stand-ins for the parts of web3.py the package touches."""

from typing import Any


class Reverted(Exception):
    """Mimics a reverted eth_call."""


class FakeCall:
    def __init__(self, handler: Any, args: tuple):
        self._handler = handler
        self._args = args

    def call(self, block_identifier: int | str = "latest") -> Any:
        handler = self._handler
        if isinstance(handler, Exception):
            raise handler
        if callable(handler):
            value = handler(*self._args, block=block_identifier)
            if isinstance(value, Exception):
                raise value
            return value
        return handler


class FakeFunctions:
    def __init__(self, methods: dict[str, Any]):
        self._methods = methods

    def __getattr__(self, name: str):
        handler = self._methods.get(name, Reverted(f"execution reverted: {name}"))
        return lambda *args: FakeCall(handler, args)


class FakeContract:
    def __init__(self, address: str, methods: dict[str, Any]):
        self.address = address
        self.functions = FakeFunctions(methods)


class FakeEth:
    def __init__(
        self, contracts: dict[str, dict[str, Any]], block_number: Any, balances: dict[str, int], chain_id: int = 1
    ):
        self._contracts = contracts
        self._block_number = block_number
        self.chain_id = chain_id
        self._balances = balances
        self.contract_requests: list[str] = []

    @property
    def block_number(self) -> int:
        if isinstance(self._block_number, Exception):
            raise self._block_number
        return self._block_number

    def contract(self, address: str, abi: list[dict]) -> FakeContract:  # pylint: disable=unused-argument
        self.contract_requests.append(address.lower())
        return FakeContract(address, self._contracts.get(address.lower(), {}))

    def get_balance(self, address: str) -> int:
        return self._balances.get(address.lower(), 0)


class FakeProvider:
    def __init__(self, responses: dict[str, dict]):
        self._responses = responses
        self.requests: list[tuple[str, list]] = []

    def make_request(self, method: str, params: list) -> dict:
        self.requests.append((method, params))
        return self._responses.get(method, {"error": {"code": -32601, "message": "method not found"}})


class FakeWeb3:
    """`contracts` maps lowercase address -> {function name: value | exception | callable(*args, block)}."""

    def __init__(
        self,
        contracts: dict[str, dict[str, Any]] | None = None,
        *,
        block_number: Any = 1_000_000,
        balances: dict[str, int] | None = None,
        rpc_responses: dict[str, dict] | None = None,
        chain_id: int = 1,
    ):
        self.eth = FakeEth(
            {k.lower(): v for k, v in (contracts or {}).items()}, block_number, balances or {}, chain_id=chain_id
        )
        self.provider = FakeProvider(rpc_responses or {})

    @staticmethod
    def to_checksum_address(address: str) -> str:
        return address
