"""Chain client protocol: contract read abstraction."""
from typing import Protocol, Sequence


class ChainClient(Protocol):
    """Read-only contract calls; results are normalized to Python ints."""

    async def call(
        self, contract_address: str, entrypoint: str, calldata: Sequence[int] = ()
    ) -> tuple[int, ...]: ...
