"""Error taxonomy for resolution and decoding failures.

- `ResolutionError`: the node could not supply a transaction, block or
  receipt. Fatal to the whole parse call.
- `DecodeError`: a single matched log could not be decoded. The scan drops
  that log and keeps going.
- `PreconditionFailed`: decoding was attempted on a log that does not match
  the parser configuration. This is a caller defect.
"""

from __future__ import annotations


class EvparseError(Exception):
    """Base class for every error raised by evparse."""


# ---------- resolution ----------


class ResolutionError(EvparseError):
    """A transaction, block or receipt could not be obtained."""


class NotFound(ResolutionError):
    """The node has no record of the requested object."""


class TransportError(ResolutionError):
    """The node could not be reached or answered with an error."""


ResolutionFailed = TransportError


# ---------- decoding ----------


class DecodeError(EvparseError):
    """A matched log could not be decoded."""


class MalformedValue(DecodeError):
    """Unrecognized ABI type or a value that cannot be represented."""


class TruncatedData(DecodeError):
    """The data blob ends before the value it should contain."""


class OffsetOutOfRange(DecodeError):
    """A head-slot offset points outside the data blob."""


class PreconditionFailed(EvparseError):
    """Decode was called on a log that does not match the configuration."""
