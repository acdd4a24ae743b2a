"""Event descriptors built from Solidity signatures or ABI JSON.

This module provides:
- `EventParam` / `EventDescriptor`: immutable ABI shape of one event
- `EventDescriptor.from_signature(...)`: parse
  "Transfer(address indexed from, address indexed to, uint256 value)"
- `EventDescriptor.from_abi(...)` / `events_from_abi(...)`: build descriptors
  from ABI JSON entries (validated with pydantic)

The canonical signature drops parameter names, `indexed` and whitespace, and
its keccak-256 hash (topic0) is computed once when the descriptor is built.
"""

from __future__ import annotations

import json
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

from eth_utils import keccak
from pydantic import BaseModel

from evparse.core.errors import MalformedValue
from evparse.decoding.abi_types import AbiType, parse_abi_type, split_top_level


@dataclass(frozen=True)
class EventParam:
    name: str
    type: AbiType
    indexed: bool = False


@dataclass(frozen=True)
class EventDescriptor:
    """ABI shape of one contract event."""

    name: str
    params: tuple[EventParam, ...]
    anonymous: bool = False
    signature: str = field(init=False)
    signature_hash: str = field(init=False)  # lowercased 0x-hex topic0

    def __post_init__(self) -> None:
        signature = f"{self.name}({','.join(p.type.canonical for p in self.params)})"
        object.__setattr__(self, "signature", signature)
        object.__setattr__(self, "signature_hash", "0x" + keccak(text=signature).hex())

    @property
    def indexed_params(self) -> tuple[EventParam, ...]:
        return tuple(p for p in self.params if p.indexed)

    @property
    def data_params(self) -> tuple[EventParam, ...]:
        return tuple(p for p in self.params if not p.indexed)

    @property
    def indexed_count(self) -> int:
        return sum(1 for p in self.params if p.indexed)

    @property
    def expected_topic_count(self) -> int:
        return self.indexed_count + (0 if self.anonymous else 1)

    # ---- constructors ----

    @classmethod
    def from_signature(cls, signature: str, *, anonymous: bool = False) -> EventDescriptor:
        """Build a descriptor from a Solidity event signature string.

        Accepts an optional leading `event` keyword and a trailing
        `anonymous` keyword:
          "event Ping(address indexed sender, uint256 nonce) anonymous"
        """
        sig = " ".join(signature.strip().rstrip(";").split())
        if sig.startswith("event "):
            sig = sig[len("event ") :]
        if sig.endswith(" anonymous"):
            sig = sig[: -len(" anonymous")]
            anonymous = True

        open_paren = sig.find("(")
        close_paren = sig.rfind(")")
        if open_paren <= 0 or close_paren == -1 or close_paren < open_paren or close_paren != len(sig) - 1:
            raise ValueError(f"Invalid event signature: {signature}")
        name = sig[:open_paren].strip()
        if not name.isidentifier():
            raise ValueError(f"Invalid event name in signature: {signature}")

        params: list[EventParam] = []
        for i, part in enumerate(split_top_level(sig[open_paren + 1 : close_paren])):
            tokens = split_top_level(part, " ")
            indexed = "indexed" in tokens[1:]
            names = [t for t in tokens[1:] if t != "indexed"]
            try:
                abi_type = parse_abi_type(tokens[0])
            except MalformedValue as e:
                raise ValueError(f"Invalid event signature {signature!r}: {e}") from e
            params.append(EventParam(names[-1] if names else f"arg{i}", abi_type, indexed))

        return cls(name=name, params=tuple(params), anonymous=anonymous)

    @classmethod
    def from_abi(cls, entry: Mapping[str, Any] | AbiEvent) -> EventDescriptor:
        """Build a descriptor from one ABI JSON event entry."""
        event = entry if isinstance(entry, AbiEvent) else AbiEvent.model_validate(entry)
        params = []
        for i, abi_input in enumerate(event.inputs):
            components = [c.model_dump() for c in abi_input.components] if abi_input.components else None
            try:
                abi_type = parse_abi_type(abi_input.type, components)
            except MalformedValue as e:
                raise ValueError(f"Invalid ABI input {abi_input.name!r} of event {event.name}: {e}") from e
            params.append(EventParam(abi_input.name or f"arg{i}", abi_type, abi_input.indexed))
        return cls(name=event.name, params=tuple(params), anonymous=event.anonymous)


# ---------- ABI JSON ----------


class AbiInput(BaseModel):
    name: str = ""
    type: str
    indexed: bool = False
    internalType: str | None = None
    components: list[AbiInput] | None = None


class AbiEvent(BaseModel):
    name: str
    inputs: Sequence[AbiInput] = ()
    anonymous: bool = False
    type: Literal["event"] = "event"


AbiJson = Iterable[Mapping[str, Any]]
AbiSource = AbiJson | Path


def _load_abi(abi: AbiSource) -> AbiJson:
    if isinstance(abi, Path):
        return json.loads(abi.read_text())
    return abi


def events_from_abi(abi: AbiSource) -> dict[str, EventDescriptor]:
    """Return `{event name: descriptor}` for every event entry of an ABI.

    Overloaded events (one name, several signatures) are keyed by their
    canonical signature instead, e.g. `"Deposit(address,uint256)"`.
    """
    descriptors = [EventDescriptor.from_abi(entry) for entry in _load_abi(abi) if entry.get("type") == "event"]
    names = Counter(d.name for d in descriptors)
    return {d.name if names[d.name] == 1 else d.signature: d for d in descriptors}
