"""
Utility functions for writing backups to disk.
"""

from opnsense_backup.utils.files import (
    fallback_file_name,
    resolve_output_path,
    safe_file_name,
    save_file,
)

__all__ = ["fallback_file_name", "resolve_output_path", "safe_file_name", "save_file"]
