"""
Exception hierarchy for the OPNsense backup tool.

Every failure the protocol can detect has its own class so the CLI can
report a specific message instead of a generic one.  Nothing in the
package retries; a raised error means the current session is finished.

BackupError
├── InvalidConnectionDetails
├── ConnectivityError
│   └── RequestTimeout
├── AuthenticationFailed
├── ProtocolMismatch
│   ├── LoginPageUnavailable
│   ├── BackupPageUnavailable
│   ├── TokenNotFound
│   │   └── CsrfTokenMissing
│   ├── UnexpectedResponse
│   └── EmptyBackup
├── UnsupportedVersion
└── LocalWriteError
"""


class BackupError(Exception):
    """Base class for every error raised by this package."""


class InvalidConnectionDetails(BackupError):
    """The server connection details are incomplete or inconsistent."""


class ConnectivityError(BackupError):
    """The server could not be reached."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Unable to connect to {url}: {reason}")


class RequestTimeout(ConnectivityError):
    """A single request exceeded the configured timeout."""

    def __init__(self, url: str, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(url, f"no response within {timeout:g} seconds")


class AuthenticationFailed(BackupError):
    """The server rejected the supplied credentials."""

    def __init__(self, message: str = "Credentials incorrect") -> None:
        super().__init__(message)


class ProtocolMismatch(BackupError):
    """A page or token the protocol relies on is not where it should be.

    Usually means the server runs a different version than the selected
    protocol implementation, or answered with an error page.
    """


class LoginPageUnavailable(ProtocolMismatch):
    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"Unable to retrieve login page contents from {url}")


class BackupPageUnavailable(ProtocolMismatch):
    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"Unable to retrieve backup page contents from {url}")


class TokenNotFound(ProtocolMismatch):
    """No hidden input carrying the anti-CSRF marker was found."""

    def __init__(self, marker: str, message: "str | None" = None) -> None:
        self.marker = marker
        super().__init__(message or f"No hidden input with id matching {marker!r} found")


class CsrfTokenMissing(TokenNotFound):
    """The anti-CSRF token is missing from a page the protocol needs."""

    def __init__(self, marker: str, page: str, title: "str | None" = None) -> None:
        self.page = page
        self.title = title
        message = f"Unable to retrieve Cross Site Request Forgery token from {page}"
        if title:
            message += f" (server returned {title!r})"
        super().__init__(marker, message)


class UnexpectedResponse(ProtocolMismatch):
    """The server answered with an HTTP error status."""

    def __init__(self, url: str, status_code: int) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(f"Unexpected HTTP {status_code} response from {url}")


class EmptyBackup(ProtocolMismatch):
    def __init__(self) -> None:
        super().__init__("No valid backup contents returned")


class UnsupportedVersion(BackupError):
    """No protocol implementation is registered for the requested version."""

    def __init__(self, version: str, supported: "list[str]") -> None:
        self.version = version
        self.supported = supported
        super().__init__(
            f"Unsupported OPNsense version provided ({version}); "
            f"supported: {', '.join(supported) or 'none'}"
        )


class LocalWriteError(BackupError):
    """The backup could not be written to local storage."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Unable to write the backup file to {path}: {reason}")
