"""Structural pre-filter deciding whether a log is worth decoding.

`matches` only looks at the emitter address and the topic list; it never
touches the data blob, so it is cheap enough to run over every log of a block.
"""

from __future__ import annotations

from evparse.core.config import ParserConfig
from evparse.core.models import LogEntry


def matches(log: LogEntry, config: ParserConfig) -> bool:
    """Return True if `log` is a candidate for `config.descriptor`.

    - A configured address must equal the emitter (case-insensitive).
    - Non-anonymous events need topic0 == signature hash.
    - The topic count must equal the number of topics the event emits.
    """
    if config.address is not None and log.address.lower() != config.address:
        return False

    descriptor = config.descriptor
    if len(log.topics) != descriptor.expected_topic_count:
        return False
    if descriptor.anonymous:
        return True
    return log.topics[0].lower() == descriptor.signature_hash
