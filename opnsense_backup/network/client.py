"""
HTTP transport for talking to the OPNsense web interface.

Provides the session factory plus the three request shapes the backup
protocol needs: a plain GET, a URL-encoded form POST and a multipart
form POST whose response is a file download.  All requests go through
the caller's ``requests.Session`` so cookies set by the server carry
over from one step to the next.
"""

import re
import time

import requests
from requests.adapters import HTTPAdapter
from urllib3.fields import RequestField
from urllib3.filepost import encode_multipart_formdata
from urllib3.util.retry import Retry

from ..config import MULTIPART_BOUNDARY
from ..errors import (
    AuthenticationFailed,
    ConnectivityError,
    RequestTimeout,
    UnexpectedResponse,
)
from ..logging_setup import log

_FILENAME_RE = re.compile(r"""(?:^|;)\s*filename\s*=\s*["']?(?P<filename>[^\s"';]+)""", re.I)
_CHUNK_SIZE = 64 * 1024


def build_session(verify_ssl: bool = False) -> requests.Session:
    """
    Return a requests.Session for a single backup run.

    Retries are disabled at the adapter level: a failed step invalidates
    the anti-CSRF token it was sent with, so replaying it cannot succeed.

    Args:
        verify_ssl: Whether to verify TLS certificates

    Returns:
        Configured requests.Session instance
    """
    session = requests.Session()
    adapter = HTTPAdapter(max_retries=Retry(total=0, read=False))
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.verify = verify_ssl
    session.headers.update({
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/120.0.0.0 Safari/537.36"
        ),
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    })
    return session


def _send(session: requests.Session, method: str, url: str, timeout: float, **kwargs) -> requests.Response:
    """Issue one request and translate transport failures into BackupErrors."""
    log.debug("%s %s", method, url)
    try:
        resp = session.request(method, url, timeout=timeout, **kwargs)
    except requests.Timeout as exc:
        raise RequestTimeout(url, timeout) from exc
    except requests.RequestException as exc:
        raise ConnectivityError(url, str(exc)) from exc

    log.debug("→ HTTP %s, cookies: %s", resp.status_code, list(session.cookies.keys()))

    if resp.status_code == 401:
        resp.close()
        raise AuthenticationFailed()
    if resp.status_code >= 400:
        resp.close()
        raise UnexpectedResponse(url, resp.status_code)
    return resp


def _read_body(resp: requests.Response, url: str, timeout: float, deadline: float) -> bytes:
    """Read a streamed body, giving up once *deadline* (monotonic) has passed."""
    chunks = []
    try:
        for chunk in resp.iter_content(chunk_size=_CHUNK_SIZE):
            chunks.append(chunk)
            if time.monotonic() > deadline:
                raise RequestTimeout(url, timeout)
    except requests.Timeout as exc:
        raise RequestTimeout(url, timeout) from exc
    except requests.RequestException as exc:
        raise ConnectivityError(url, str(exc)) from exc
    finally:
        resp.close()
    return b"".join(chunks)


def http_get(session: requests.Session, url: str, timeout: float, auth=None) -> str:
    """GET *url* and return the decoded body."""
    return _send(session, "GET", url, timeout, auth=auth).text


def http_post(
    session: requests.Session,
    url: str,
    fields: "dict[str, str]",
    timeout: float,
    auth=None,
) -> "tuple[str, requests.structures.CaseInsensitiveDict]":
    """POST *fields* as application/x-www-form-urlencoded.

    Returns the decoded body and the response headers.
    """
    resp = _send(session, "POST", url, timeout, data=fields, auth=auth)
    return resp.text, resp.headers


def encode_multipart(fields: "dict[str, str]", boundary: str = MULTIPART_BOUNDARY) -> "tuple[bytes, str]":
    """
    Encode *fields* as multipart/form-data, one part per key.

    Parts carry only a ``Content-Disposition: form-data; name="…"`` header,
    which is what a browser sends for plain text inputs.  Empty values are
    kept as empty parts.

    Returns:
        (body, content_type) tuple
    """
    parts = []
    for name, value in fields.items():
        part = RequestField(name=name, data=value or "")
        part.make_multipart()
        part.headers.pop("Content-Type", None)
        parts.append(part)
    return encode_multipart_formdata(parts, boundary=boundary)


def parse_content_disposition(value: "str | None") -> "str | None":
    """Return the ``filename=`` parameter of a Content-Disposition value, if any."""
    if not value:
        return None
    m = _FILENAME_RE.search(value)
    return m.group("filename") if m else None


def post_multipart(
    session: requests.Session,
    url: str,
    fields: "dict[str, str]",
    timeout: float,
    auth=None,
    referer: "str | None" = None,
) -> "tuple[bytes, str | None]":
    """
    Submit *fields* as a multipart form and return the downloaded file.

    ``requests`` applies *timeout* to the connect and to each socket read,
    so a server trickling bytes would never trip it.  The body is therefore
    streamed and the whole exchange is also held to *timeout* seconds of
    wall-clock time, checked between chunks.

    Args:
        session: Session holding the authenticated cookies
        url: Form action URL
        fields: Form fields, submitted in insertion order
        timeout: Deadline in seconds for the whole exchange
        auth: Optional requests auth object
        referer: Optional Referer header value

    Returns:
        (file_contents, suggested_filename) where the filename is None
        when the server sent no Content-Disposition header.

    Raises:
        RequestTimeout: when the download runs past the deadline
    """
    deadline = time.monotonic() + timeout
    body, content_type = encode_multipart(fields)
    headers = {"Content-Type": content_type, "Accept": "*/*"}
    if referer:
        headers["Referer"] = referer

    resp = _send(session, "POST", url, timeout, data=body, headers=headers,
                 auth=auth, stream=True)

    disposition = resp.headers.get("Content-Disposition")
    filename = parse_content_disposition(disposition)
    if filename is None:
        log.debug("No filename in Content-Disposition (%r)", disposition)
    return _read_body(resp, url, timeout, deadline), filename
