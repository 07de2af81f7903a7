"""Shadow Drive program instructions and derived addresses"""
from shadow_drive.core.instructions import addresses
from shadow_drive.core.instructions.builder import (
    InstructionBuilder,
    by_version,
    delete_file_message,
    sighash,
)

__all__ = [
    "addresses",
    "InstructionBuilder",
    "by_version",
    "delete_file_message",
    "sighash",
]
