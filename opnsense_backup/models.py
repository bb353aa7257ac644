"""Data structures shared by the protocol, transport and CLI layers."""

from dataclasses import dataclass, field

import requests
from requests.auth import HTTPBasicAuth

from .config import DEFAULT_VERSION, REQUEST_TIMEOUT
from .errors import InvalidConnectionDetails


@dataclass(frozen=True)
class Credentials:
    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class ServerConnection:
    """Everything needed to reach one OPNsense server for one backup run."""

    address: str
    credentials: Credentials
    use_tls: bool = False
    protocol_version: str = DEFAULT_VERSION
    timeout: float = REQUEST_TIMEOUT
    include_statistics_data: bool = True
    encrypt_backup: bool = False
    encryption_password: "str | None" = field(default=None, repr=False)
    # Appliances usually present self-signed certificates, so TLS
    # validation is off unless asked for.
    verify_tls: bool = False

    @property
    def base_url(self) -> str:
        """Root URL of the web interface, always ending in a slash."""
        scheme = "https" if self.use_tls else "http"
        return f"{scheme}://{self.address.strip('/')}/"

    def url(self, path: str) -> str:
        return self.base_url + path.lstrip("/")

    @property
    def basic_auth(self) -> HTTPBasicAuth:
        return HTTPBasicAuth(self.credentials.username, self.credentials.password)

    def validate(self) -> None:
        """Raise InvalidConnectionDetails unless the details are usable."""
        missing = [
            name
            for name, value in (
                ("server address", self.address),
                ("username", self.credentials.username),
                ("password", self.credentials.password),
            )
            if not value
        ]
        if missing:
            raise InvalidConnectionDetails(
                "Not all required options have been provided: missing "
                + ", ".join(missing)
            )
        if "://" in self.address:
            raise InvalidConnectionDetails(
                f"Server address {self.address!r} must not include a scheme; "
                "give the host (and port) only and use --usessl for https"
            )
        if self.encrypt_backup and not self.encryption_password:
            raise InvalidConnectionDetails(
                "An encryption password is required when encrypting the backup"
            )
        if self.timeout <= 0:
            raise InvalidConnectionDetails(
                f"Timeout must be a positive number of seconds, got {self.timeout!r}"
            )


@dataclass(frozen=True)
class AntiForgeryToken:
    """Name/value pair of the hidden anti-CSRF input on a page."""

    name: str
    value: str

    def as_field(self) -> "dict[str, str]":
        return {self.name: self.value}


@dataclass
class ProtocolContext:
    """State threaded through the steps of one protocol run.

    The session is created for a single run and closed when it ends.
    """

    connection: ServerConnection
    session: requests.Session

    @property
    def timeout(self) -> float:
        return self.connection.timeout


@dataclass(frozen=True)
class BackupResult:
    """A downloaded configuration backup."""

    file_name: "str | None"
    file_contents: bytes = field(repr=False)

    @property
    def text(self) -> str:
        return self.file_contents.decode("utf-8", errors="replace")
