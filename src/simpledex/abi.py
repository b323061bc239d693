"""ABI fragments for the AMM pool and ERC-20 token contracts.

Each contract function knows its selector and how to encode a call and decode
its result, so gateways only ever move raw calldata bytes.
"""

from dataclasses import dataclass
from typing import Any

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector, to_checksum_address


@dataclass(frozen=True)
class ContractFunction:
    """A single contract function signature."""

    name: str
    inputs: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()
    mutates: bool = False

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> bytes:
        return function_signature_to_4byte_selector(self.signature)

    def encode_call(self, *args: Any) -> bytes:
        """Build calldata: 4-byte selector followed by ABI-encoded arguments."""
        if len(args) != len(self.inputs):
            raise ValueError(f"{self.signature} takes {len(self.inputs)} arguments, got {len(args)}")
        return self.selector + encode(list(self.inputs), [_normalize(t, a) for t, a in zip(self.inputs, args)])

    def decode_call(self, calldata: bytes) -> tuple:
        """Decode the arguments of calldata produced by :meth:`encode_call`."""
        if calldata[:4] != self.selector:
            raise ValueError(f"Calldata is not a {self.signature} call")
        values = decode(list(self.inputs), calldata[4:])
        return tuple(_normalize(t, v) for t, v in zip(self.inputs, values))

    def encode_result(self, *values: Any) -> bytes:
        return encode(list(self.outputs), [_normalize(t, v) for t, v in zip(self.outputs, values)])

    def decode_result(self, data: bytes) -> Any:
        """Decode return data. Single-value results are unwrapped."""
        values = tuple(_normalize(t, v) for t, v in zip(self.outputs, decode(list(self.outputs), data)))
        return values[0] if len(values) == 1 else values


def _normalize(abi_type: str, value: Any) -> Any:
    if abi_type == "address":
        return to_checksum_address(value)
    return value


# ======================
# AMM pool
# ======================
AMM_TOKEN0 = ContractFunction("token0", outputs=("address",))
AMM_TOKEN1 = ContractFunction("token1", outputs=("address",))
AMM_RESERVE0 = ContractFunction("reserve0", outputs=("uint256",))
AMM_RESERVE1 = ContractFunction("reserve1", outputs=("uint256",))
AMM_GET_AMOUNT_OUT = ContractFunction(
    "getAmountOut", inputs=("address", "uint256"), outputs=("uint256",)
)
AMM_SWAP_EXACT_INPUT = ContractFunction(
    "swapExactInput",
    inputs=("address", "uint256", "uint256", "address"),
    outputs=("uint256",),
    mutates=True,
)

# ======================
# ERC-20 token
# ======================
ERC20_SYMBOL = ContractFunction("symbol", outputs=("string",))
ERC20_DECIMALS = ContractFunction("decimals", outputs=("uint8",))
ERC20_BALANCE_OF = ContractFunction("balanceOf", inputs=("address",), outputs=("uint256",))
ERC20_ALLOWANCE = ContractFunction("allowance", inputs=("address", "address"), outputs=("uint256",))
ERC20_APPROVE = ContractFunction("approve", inputs=("address", "uint256"), outputs=("bool",), mutates=True)

AMM_FUNCTIONS = (
    AMM_TOKEN0,
    AMM_TOKEN1,
    AMM_RESERVE0,
    AMM_RESERVE1,
    AMM_GET_AMOUNT_OUT,
    AMM_SWAP_EXACT_INPUT,
)
ERC20_FUNCTIONS = (ERC20_SYMBOL, ERC20_DECIMALS, ERC20_BALANCE_OF, ERC20_ALLOWANCE, ERC20_APPROVE)


def function_for(calldata: bytes, functions: tuple[ContractFunction, ...]) -> ContractFunction:
    """Find which of ``functions`` a piece of calldata calls."""
    selector = bytes(calldata[:4])
    for function in functions:
        if function.selector == selector:
            return function
    raise ValueError(f"Unknown function selector 0x{selector.hex()}")
