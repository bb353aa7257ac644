"""Output path resolution and saving of downloaded backups."""

import re
from datetime import datetime
from pathlib import Path, PurePosixPath, PureWindowsPath

from ..config import FALLBACK_FILENAME_TEMPLATE
from ..errors import LocalWriteError
from ..logging_setup import log

_UNSAFE_CHARS_RE = re.compile(r"[^\w.\-]+")


def fallback_file_name(host: str, now: "datetime | None" = None) -> str:
    """Filename used when the server did not suggest one."""
    now = now or datetime.now()
    safe_host = _UNSAFE_CHARS_RE.sub("_", host).strip("_") or "opnsense"
    return FALLBACK_FILENAME_TEMPLATE.format(
        host=safe_host, timestamp=now.strftime("%Y%m%d%H%M%S")
    )


def safe_file_name(suggested: "str | None", host: str) -> str:
    """
    Reduce a server-suggested filename to a bare name.

    Directory parts are dropped so the name cannot point outside the output
    directory; an unusable name falls back to ``fallback_file_name``.
    """
    name = PureWindowsPath(PurePosixPath(suggested or "").name).name.strip()
    if name in ("", ".", ".."):
        return fallback_file_name(host)
    if name != suggested:
        log.warning("Server suggested filename %r, using %r", suggested, name)
    return name


def resolve_output_path(output: "str | Path | None", file_name: str) -> Path:
    """
    Decide where the backup goes.

    * no *output*: *file_name* in the current directory
    * *output* is an existing directory: *file_name* inside it
    * anything else: *output* itself is the target file
    """
    if not output:
        return Path.cwd() / file_name
    target = Path(output)
    if target.is_dir():
        return target / file_name
    return target


def save_file(local_path: Path, content: bytes) -> None:
    """Write *content* to *local_path*, creating missing parent directories."""
    try:
        local_path.parent.mkdir(parents=True, exist_ok=True)
        local_path.write_bytes(content)
    except PermissionError as exc:
        raise LocalWriteError(
            str(local_path),
            "permission denied; make sure this account has write rights to the location",
        ) from exc
    except OSError as exc:
        raise LocalWriteError(str(local_path), exc.strerror or str(exc)) from exc
    log.debug("Saved → %s (%d bytes)", local_path, len(content))
