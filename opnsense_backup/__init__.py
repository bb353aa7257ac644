"""
opnsense_backup
===============
Retrieve the configuration backup of an OPNsense firewall by driving its
web interface the way a browser would: fetch the login form, log in,
open the backup page and submit the download form.

Package structure
-----------------
opnsense_backup/
├── __init__.py       – package init and public API
├── config.py         – configuration constants
├── errors.py         – exception hierarchy
├── models.py         – ServerConnection, BackupResult and friends
├── logging_setup.py  – package logger and colorlog handler
├── cli.py            – argparse CLI (``python -m opnsense_backup``)
├── network/          – requests session, form posts, multipart download
├── parser/           – anti-CSRF token extraction, page titles
├── protocols/        – versioned login/backup sequences and their registry
└── utils/            – output path resolution and file saving

Quick start
-----------
    from opnsense_backup import Credentials, ServerConnection, select_protocol

    connection = ServerConnection(
        address="192.168.1.1",
        credentials=Credentials("root", "opnsense"),
        use_tls=True,
    )
    result = select_protocol(connection.protocol_version).execute(connection)
    print(result.file_name, len(result.file_contents))
"""

from .errors import BackupError
from .models import AntiForgeryToken, BackupResult, Credentials, ServerConnection
from .parser import extract_token
from .protocols import BackupProtocol, register_protocol, select_protocol, supported_versions

__all__ = [
    "AntiForgeryToken",
    "BackupError",
    "BackupProtocol",
    "BackupResult",
    "Credentials",
    "ServerConnection",
    "extract_token",
    "register_protocol",
    "select_protocol",
    "supported_versions",
]
