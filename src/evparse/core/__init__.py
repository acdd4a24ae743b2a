"""Core data models, configuration, errors and collaborator interfaces.

This package provides:
- Node records and decoded results (LogEntry, Transaction, Block, Receipt,
  DecodedValue, EventParserResult)
- Configuration classes (ParserConfig, NetworkId)
- The IChainProvider protocol consumed by the parser
"""

from evparse.core.config import NetworkId, ParserConfig
from evparse.core.interfaces import IChainProvider
from evparse.core.models import Block, DecodedValue, EventParserResult, LogEntry, Receipt, Transaction, ValueKind

__all__ = [
    "NetworkId",
    "ParserConfig",
    "IChainProvider",
    "Block",
    "DecodedValue",
    "EventParserResult",
    "LogEntry",
    "Receipt",
    "Transaction",
    "ValueKind",
]
