"""ABI type grammar: parse type strings into immutable `AbiType` trees.

Supported:
- elementary: `uintN`/`intN` (N in 8..256, step 8; `uint`/`int` alias 256),
  `bool`, `address`, `bytesN` (N in 1..32; `byte` alias `bytes1`),
  `bytes`, `string`
- arrays: `T[]` (dynamic) and `T[k]` (fixed), nested freely
- tuples: `(T1,T2,...)` or `tuple` with ABI JSON `components`
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from evparse.core.errors import MalformedValue

WORD_SIZE = 32

_INT_RE = re.compile(r"^(u?int)(\d*)$")
_FIXED_BYTES_RE = re.compile(r"^bytes(\d+)$")


@dataclass(frozen=True)
class AbiType:
    """One node of a parsed ABI type.

    base is one of: uint, int, bool, address, bytes, string, tuple, array.
    For `bytes`, `size` is the byte width of a `bytesN` (None for dynamic
    `bytes`); for integers it is the bit width.
    """

    base: str
    size: int | None = None
    item: AbiType | None = None
    length: int | None = None  # fixed array length; None = T[]
    components: tuple[AbiType, ...] = ()
    component_names: tuple[str, ...] = ()

    @property
    def canonical(self) -> str:
        if self.base in ("uint", "int"):
            return f"{self.base}{self.size}"
        if self.base == "bytes":
            return "bytes" if self.size is None else f"bytes{self.size}"
        if self.base == "tuple":
            return "(" + ",".join(c.canonical for c in self.components) + ")"
        if self.base == "array":
            assert self.item is not None
            suffix = "[]" if self.length is None else f"[{self.length}]"
            return self.item.canonical + suffix
        return self.base

    @property
    def is_dynamic(self) -> bool:
        if self.base == "string":
            return True
        if self.base == "bytes":
            return self.size is None
        if self.base == "array":
            assert self.item is not None
            return self.length is None or self.item.is_dynamic
        if self.base == "tuple":
            return any(c.is_dynamic for c in self.components)
        return False

    @property
    def is_word(self) -> bool:
        """True for static types encoded in exactly one 32-byte word."""
        return self.base in ("uint", "int", "bool", "address") or (
            self.base == "bytes" and self.size is not None
        )

    @property
    def head_size(self) -> int:
        """Bytes this type occupies in the head of an enclosing tuple."""
        if self.is_dynamic:
            return WORD_SIZE
        if self.base == "tuple":
            return sum(c.head_size for c in self.components)
        if self.base == "array":
            assert self.item is not None and self.length is not None
            return self.length * self.item.head_size
        return WORD_SIZE

    def __str__(self) -> str:
        return self.canonical


# ---------- helpers ----------


def split_top_level(s: str, sep: str = ",") -> list[str]:
    """Split on `sep` while respecting nested parentheses and brackets."""
    items: list[str] = []
    depth = 0
    buf: list[str] = []
    for ch in s:
        if ch in "([":
            depth += 1
        elif ch in ")]":
            depth -= 1
        if depth == 0 and (ch == sep or (sep == " " and ch.isspace())):
            items.append("".join(buf).strip())
            buf = []
            continue
        buf.append(ch)
    if buf:
        items.append("".join(buf).strip())
    return [i for i in items if i]


def _parse_elementary(s: str) -> AbiType:
    if s in ("bool", "address", "string", "bytes"):
        return AbiType(base=s)
    if s == "byte":
        return AbiType(base="bytes", size=1)

    m = _INT_RE.match(s)
    if m:
        bits = int(m.group(2)) if m.group(2) else 256
        if not (8 <= bits <= 256 and bits % 8 == 0):
            raise MalformedValue(f"Invalid integer width in ABI type {s!r}")
        return AbiType(base=m.group(1), size=bits)

    m = _FIXED_BYTES_RE.match(s)
    if m:
        width = int(m.group(1))
        if not 1 <= width <= 32:
            raise MalformedValue(f"Invalid byte width in ABI type {s!r}")
        return AbiType(base="bytes", size=width)

    raise MalformedValue(f"Unrecognized ABI type: {s!r}")


def _array_of(item: AbiType, dim: str, s: str) -> AbiType:
    if dim and not dim.isdigit():
        raise MalformedValue(f"Invalid array length in ABI type {s!r}")
    if dim and int(dim) == 0:
        raise MalformedValue(f"Zero-length array in ABI type {s!r}")
    return AbiType(base="array", item=item, length=int(dim) if dim else None)


def _tuple_from_components(components: Sequence[Mapping[str, Any]]) -> AbiType:
    if not components:
        raise MalformedValue("Empty tuple in ABI type")
    types = tuple(parse_abi_type(c["type"], c.get("components")) for c in components)
    names = tuple(c.get("name") or f"arg{i}" for i, c in enumerate(components))
    return AbiType(base="tuple", components=types, component_names=names)


@lru_cache(maxsize=1024)
def _parse(s: str) -> AbiType:
    if s.endswith("]"):
        open_idx = s.rfind("[")
        if open_idx <= 0:
            raise MalformedValue(f"Unrecognized ABI type: {s!r}")
        item = _parse(s[:open_idx].strip())
        return _array_of(item, s[open_idx + 1 : -1].strip(), s)

    if s.startswith("(") and s.endswith(")"):
        fragments = split_top_level(s[1:-1])
        if not fragments:
            raise MalformedValue(f"Empty tuple in ABI type {s!r}")
        types: list[AbiType] = []
        names: list[str] = []
        for i, fragment in enumerate(fragments):
            tokens = split_top_level(fragment, " ")
            types.append(_parse(tokens[0]))
            names.append(tokens[-1] if len(tokens) > 1 else f"arg{i}")
        return AbiType(base="tuple", components=tuple(types), component_names=tuple(names))

    return _parse_elementary(s)


def parse_abi_type(
    type_str: str | AbiType,
    components: Sequence[Mapping[str, Any]] | None = None,
) -> AbiType:
    """Parse an ABI type string (optionally with ABI JSON tuple components).

    Raises `MalformedValue` for anything outside the supported grammar.
    """
    if isinstance(type_str, AbiType):
        return type_str
    s = type_str.strip()
    if s.startswith("tuple"):
        if components is None:
            raise MalformedValue(f"ABI type {s!r} requires components")
        node = _tuple_from_components(components)
        # Re-apply any array suffixes ("tuple[2][]") on top of the tuple node.
        for dim in re.findall(r"\[(\d*)\]", s[len("tuple") :]):
            node = _array_of(node, dim, s)
        return node
    return _parse(s)
