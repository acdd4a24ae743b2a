"""ABI decoding primitives.

This package provides:
- ABI type grammar (AbiType, parse_abi_type)
- Head-tail value codec (decode_static, decode_dynamic, decode_tuple, encoders)
- Event descriptors from signatures or ABI JSON

The matcher, decoder and bloom helpers depend on `ParserConfig` and are
imported from their modules directly.
"""

from evparse.decoding.abi_types import AbiType, parse_abi_type
from evparse.decoding.codec import (
    decode_dynamic,
    decode_static,
    decode_tuple,
    encode_dynamic,
    encode_static,
    encode_topic,
    encode_tuple,
)
from evparse.decoding.descriptor import EventDescriptor, EventParam, events_from_abi

__all__ = [
    "AbiType",
    "parse_abi_type",
    "decode_dynamic",
    "decode_static",
    "decode_tuple",
    "encode_dynamic",
    "encode_static",
    "encode_topic",
    "encode_tuple",
    "EventDescriptor",
    "EventParam",
    "events_from_abi",
]
