from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from eth_utils import is_address, to_normalized_address

from evparse.decoding.descriptor import EventDescriptor


class NetworkId(int):
    """Chain id (unsigned, at most 256 bits). Context only; parsing never depends on it."""

    MAINNET: ClassVar[NetworkId]
    ROPSTEN: ClassVar[NetworkId]
    RINKEBY: ClassVar[NetworkId]
    KOVAN: ClassVar[NetworkId]

    def __new__(cls, value: int) -> NetworkId:
        value = int(value)
        if not 0 <= value < 1 << 256:
            raise ValueError(f"Chain id out of range: {value}")
        return super().__new__(cls, value)

    @property
    def label(self) -> str:
        """Well-known network name, or "" for other chains."""
        return _LABELS.get(int(self), "")

    def __repr__(self) -> str:
        return f"NetworkId({int(self)})"


_LABELS = {1: "mainnet", 3: "ropsten", 4: "rinkeby", 42: "kovan"}

NetworkId.MAINNET = NetworkId(1)
NetworkId.ROPSTEN = NetworkId(3)
NetworkId.RINKEBY = NetworkId(4)
NetworkId.KOVAN = NetworkId(42)


@dataclass(frozen=True)
class ParserConfig:
    """Immutable configuration of an `EventParser`.

    `address=None` accepts logs from any emitter.
    """

    descriptor: EventDescriptor
    address: str | None = None  # lowercased 0x...
    network: NetworkId | None = None
    use_bloom_filter: bool = True

    def __post_init__(self) -> None:
        if self.address is not None:
            if not is_address(self.address):
                raise ValueError(f"Invalid contract address: {self.address!r}")
            object.__setattr__(self, "address", to_normalized_address(self.address))

    @classmethod
    def for_signature(
        cls,
        signature: str,
        *,
        address: str | None = None,
        anonymous: bool = False,
        network: NetworkId | int | None = None,
        use_bloom_filter: bool = True,
    ) -> ParserConfig:
        return cls(
            descriptor=EventDescriptor.from_signature(signature, anonymous=anonymous),
            address=address,
            network=NetworkId(network) if network is not None else None,
            use_bloom_filter=use_bloom_filter,
        )
