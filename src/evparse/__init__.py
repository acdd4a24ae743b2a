from __future__ import annotations

from .core.config import NetworkId, ParserConfig
from .core.errors import (
    DecodeError,
    EvparseError,
    MalformedValue,
    NotFound,
    OffsetOutOfRange,
    PreconditionFailed,
    ResolutionError,
    ResolutionFailed,
    TransportError,
    TruncatedData,
)
from .core.models import Block, DecodedValue, EventParserResult, LogEntry, Receipt, Transaction, ValueKind
from .decoding.decoder import decode_log
from .decoding.descriptor import EventDescriptor, EventParam, events_from_abi
from .decoding.matcher import matches
from .orchestration.parser import EventParser

__all__ = [
    "EventParser",
    "ParserConfig",
    "NetworkId",
    "EventDescriptor",
    "EventParam",
    "events_from_abi",
    "matches",
    "decode_log",
    "Block",
    "DecodedValue",
    "EventParserResult",
    "LogEntry",
    "Receipt",
    "Transaction",
    "ValueKind",
    "EvparseError",
    "ResolutionError",
    "NotFound",
    "TransportError",
    "ResolutionFailed",
    "DecodeError",
    "MalformedValue",
    "TruncatedData",
    "OffsetOutOfRange",
    "PreconditionFailed",
]
