"""
Console logging for backup runs.

Backups are usually taken from cron or a scheduled task, so every line
carries a full timestamp and goes to stderr; stdout stays free for
scripts wrapping the tool.  With ``--debug`` the urllib3 connection log
is routed through the same handler so the HTTP exchange with the
firewall shows up next to the protocol steps.
"""

import logging
import sys

try:
    import colorlog
    _COLORLOG_AVAILABLE = True
except ImportError:
    _COLORLOG_AVAILABLE = False

log = logging.getLogger("opnsense-backup")

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

_WIRE_LOGGERS = ("urllib3",)


def _make_handler() -> logging.Handler:
    if _COLORLOG_AVAILABLE and sys.stderr.isatty():
        handler = colorlog.StreamHandler(sys.stderr)
        handler.setFormatter(colorlog.ColoredFormatter(
            "%(log_color)s" + LOG_FORMAT,
            datefmt=LOG_DATEFMT,
            log_colors={
                "DEBUG":    "white",
                "INFO":     "reset",
                "WARNING":  "yellow",
                "ERROR":    "red",
                "CRITICAL": "bold_red",
            },
        ))
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    return handler


def setup_logging(debug: bool = False, silent: bool = False) -> None:
    """Route the tool's log (and urllib3's when debugging) to stderr.

    *silent* keeps only errors so a failed run still says why; otherwise
    *debug* lowers the level from INFO to DEBUG.  Safe to call again: the
    previous handler is replaced, not duplicated.
    """
    if silent:
        level = logging.ERROR
    else:
        level = logging.DEBUG if debug else logging.INFO

    handler = _make_handler()
    log.handlers.clear()
    log.setLevel(level)
    log.propagate = False
    log.addHandler(handler)

    for name in _WIRE_LOGGERS:
        wire = logging.getLogger(name)
        wire.handlers.clear()
        if debug and not silent:
            wire.setLevel(logging.DEBUG)
            wire.addHandler(handler)
            wire.propagate = False
        else:
            wire.setLevel(logging.WARNING)
            wire.propagate = True
