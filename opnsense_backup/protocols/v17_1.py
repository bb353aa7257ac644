"""
OPNsense 17.1 backup protocol.

Sequence (one fresh session, no retries):

1. GET  /                    login page, hidden anti-CSRF input
2. POST /index.php           url-encoded login form with that token
3. GET  /diag_backup.php     backup page, second anti-CSRF input
4. POST /diag_backup.php     multipart download form with the second token

Each token is only valid together with the session cookies set by the
response it came from, so the steps cannot be reordered or replayed.
"""

from ..config import (
    BACKUP_PAGE,
    DOWNLOAD_TRIGGER_FIELD,
    DOWNLOAD_TRIGGER_VALUE,
    ENCRYPT_CONFIRM_FIELD,
    ENCRYPT_FIELD,
    ENCRYPT_PASSWORD_FIELD,
    LOGIN_ENTRY,
    LOGIN_FAILED_MARKER,
    LOGIN_TRIGGER_FIELD,
    PASSWORD_FIELD,
    SKIP_STATISTICS_FIELD,
    USERNAME_FIELD,
)
from ..errors import (
    AuthenticationFailed,
    BackupPageUnavailable,
    CsrfTokenMissing,
    LoginPageUnavailable,
    TokenNotFound,
)
from ..logging_setup import log
from ..models import AntiForgeryToken, BackupResult, ProtocolContext, ServerConnection
from ..network.client import build_session, http_get, http_post, post_multipart
from ..parser.page import page_title
from ..parser.token import extract_token
from .base import BackupProtocol
from .registry import register_protocol


@register_protocol("17.1")
class OpnSenseVersion171(BackupProtocol):
    """Backup download through the 17.1 web GUI forms."""

    def execute(self, connection: ServerConnection) -> BackupResult:
        connection.validate()
        log.info("Connecting to %s using protocol version %s",
                 connection.base_url, self.version)

        session = build_session(verify_ssl=connection.verify_tls)
        ctx = ProtocolContext(connection=connection, session=session)
        try:
            login_page = self.fetch_login_page(ctx)
            token = self.extract_page_token(login_page, "login page")

            log.info("Authenticating as %s", connection.credentials.username)
            self.authenticate(ctx, token)

            log.info("Requesting backup file")
            backup_page = self.fetch_backup_page(ctx)
            token = self.extract_page_token(backup_page, "backup page")

            log.info("Retrieving backup file")
            return self.request_download(ctx, token)
        finally:
            session.close()

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def fetch_login_page(self, ctx: ProtocolContext) -> str:
        url = ctx.connection.base_url
        body = http_get(ctx.session, url, ctx.timeout, auth=ctx.connection.basic_auth)
        if not body:
            raise LoginPageUnavailable(url)
        return body

    @staticmethod
    def extract_page_token(page_body: str, page: str) -> AntiForgeryToken:
        try:
            return extract_token(page_body)
        except TokenNotFound as exc:
            raise CsrfTokenMissing(exc.marker, page, page_title(page_body)) from exc

    def authenticate(self, ctx: ProtocolContext, token: AntiForgeryToken) -> None:
        """Submit the login form.

        The server answers 200 either way; a failed login is only visible
        in the returned page text.
        """
        creds = ctx.connection.credentials
        fields = {
            **token.as_field(),
            USERNAME_FIELD: creds.username,
            PASSWORD_FIELD: creds.password,
            LOGIN_TRIGGER_FIELD: "1",
        }
        body, _ = http_post(ctx.session, ctx.connection.url(LOGIN_ENTRY), fields, ctx.timeout)
        if LOGIN_FAILED_MARKER in body:
            raise AuthenticationFailed()
        log.debug("Login accepted, cookies: %s", list(ctx.session.cookies.keys()))

    def fetch_backup_page(self, ctx: ProtocolContext) -> str:
        url = ctx.connection.url(BACKUP_PAGE)
        body = http_get(ctx.session, url, ctx.timeout)
        if not body:
            raise BackupPageUnavailable(url)
        return body

    @staticmethod
    def download_fields(connection: ServerConnection, token: AntiForgeryToken) -> "dict[str, str]":
        """Fields of the backup form as a browser submits them for a download."""
        password = connection.encryption_password if connection.encrypt_backup else ""
        return {
            **token.as_field(),
            SKIP_STATISTICS_FIELD: "" if connection.include_statistics_data else "on",
            ENCRYPT_FIELD: "on" if connection.encrypt_backup else "",
            ENCRYPT_PASSWORD_FIELD: password or "",
            ENCRYPT_CONFIRM_FIELD: password or "",
            DOWNLOAD_TRIGGER_FIELD: DOWNLOAD_TRIGGER_VALUE,
            # Restore section of the same form; ignored for a download.
            "restorearea": "",
            "rebootafterrestore": "on",
            "decrypt_password": "",
            "decrypt_passconf": "",
        }

    def request_download(self, ctx: ProtocolContext, token: AntiForgeryToken) -> BackupResult:
        url = ctx.connection.url(BACKUP_PAGE)
        contents, filename = post_multipart(
            ctx.session,
            url,
            self.download_fields(ctx.connection, token),
            ctx.timeout,
            auth=ctx.connection.basic_auth,
            referer=url,
        )
        log.debug("Downloaded %d bytes, server filename: %r", len(contents), filename)
        return BackupResult(file_name=filename, file_contents=contents)
