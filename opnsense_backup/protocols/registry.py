"""
Version string → protocol implementation lookup.

Implementations add themselves with the ``register_protocol`` decorator;
``select_protocol`` only ever does an exact lookup, so an unknown version
is reported instead of silently falling back to another implementation.
"""

from ..errors import UnsupportedVersion
from ..logging_setup import log
from .base import BackupProtocol

_REGISTRY: "dict[str, type[BackupProtocol]]" = {}


def register_protocol(version: str):
    """Class decorator registering a BackupProtocol under *version*."""
    def decorator(cls: "type[BackupProtocol]") -> "type[BackupProtocol]":
        if version in _REGISTRY:
            raise ValueError(
                f"Protocol version {version!r} already registered by "
                f"{_REGISTRY[version].__name__}"
            )
        cls.version = version
        _REGISTRY[version] = cls
        return cls
    return decorator


def supported_versions() -> "list[str]":
    return sorted(_REGISTRY)


def select_protocol(version: str) -> BackupProtocol:
    """
    Return a new instance of the implementation registered for *version*.

    Raises:
        UnsupportedVersion: if no implementation matches exactly
    """
    try:
        cls = _REGISTRY[version]
    except KeyError:
        raise UnsupportedVersion(version, supported_versions()) from None
    log.debug("Selected %s for version %s", cls.__name__, version)
    return cls()
