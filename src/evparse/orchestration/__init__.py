"""Scanning transactions and blocks for one configured event."""

from evparse.orchestration.parser import EventParser

__all__ = ["EventParser"]
