"""
RPC method catalog

Static, ordered registry of the JSON-RPC methods exercised during a run.
Parameters are generated fresh for every call.
"""

import random
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

HEX_CHARS = "0123456789abcdef"

JsonValue = Any


@dataclass(frozen=True)
class MethodSpec:
    name: str
    rpc_method: str
    params_fn: Callable[[], JsonValue]

    def params(self) -> JsonValue:
        return self.params_fn()


def generate_random_address(rng: Optional[random.Random] = None) -> str:
    """Generate a random 32-byte Sui object address as 0x-prefixed hex"""
    rng = rng or random
    return "0x" + "".join(rng.choice(HEX_CHARS) for _ in range(64))


def build_envelope(method: MethodSpec, request_id: int = 1) -> Dict[str, Any]:
    """Wrap a method call in a JSON-RPC 2.0 request envelope"""
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": method.rpc_method,
        "params": method.params(),
    }


def sui_catalog(address_fn: Optional[Callable[[], str]] = None,
                objects_per_call: int = 5) -> List[MethodSpec]:
    """
    Default Sui mainnet method catalog.

    Args:
        address_fn: Address generator used by multiGetObjects. Tests pass a
            deterministic generator here.
        objects_per_call: Number of object ids requested per multiGetObjects call

    Returns:
        Methods in the order they are cycled through
    """
    address_fn = address_fn or generate_random_address

    def multi_get_objects_params() -> JsonValue:
        return [
            [address_fn() for _ in range(objects_per_call)],
            {"showContent": True, "showType": True, "showDisplay": True},
        ]

    return [
        MethodSpec("multiGetObjects", "sui_multiGetObjects", multi_get_objects_params),
        MethodSpec("getLatestCheckpoint", "sui_getLatestCheckpointSequenceNumber", list),
        MethodSpec("getReferenceGasPrice", "suix_getReferenceGasPrice", list),
    ]


def method_names(catalog: Sequence[MethodSpec]) -> List[str]:
    return [m.name for m in catalog]
