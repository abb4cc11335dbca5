"""Group message entities."""

from enum import Enum


class MessageType(str, Enum):
    """TEXT messages are written by people, SYSTEM ones by lifecycle transitions."""

    TEXT = "TEXT"
    SYSTEM = "SYSTEM"
