"""
Versioned backup protocol implementations.

Importing this package registers every bundled implementation.
"""

from opnsense_backup.protocols.base import BackupProtocol
from opnsense_backup.protocols.registry import (
    register_protocol,
    select_protocol,
    supported_versions,
)
from opnsense_backup.protocols.v17_1 import OpnSenseVersion171

__all__ = [
    "BackupProtocol",
    "OpnSenseVersion171",
    "register_protocol",
    "select_protocol",
    "supported_versions",
]
