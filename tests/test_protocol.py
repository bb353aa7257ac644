"""
Tests for the 17.1 login → backup page → download sequence.
"""

import unittest
from unittest.mock import MagicMock, patch

import requests
from requests.structures import CaseInsensitiveDict

from opnsense_backup.errors import (
    AuthenticationFailed,
    BackupPageUnavailable,
    ConnectivityError,
    CsrfTokenMissing,
    InvalidConnectionDetails,
    LoginPageUnavailable,
    RequestTimeout,
)
from opnsense_backup.models import AntiForgeryToken, BackupResult, Credentials, ServerConnection
from opnsense_backup.protocols.v17_1 import OpnSenseVersion171

BASE = "http://192.168.1.1/"
LOGIN_URL = BASE + "index.php"
BACKUP_URL = BASE + "diag_backup.php"


def _page(token_name, token_value, title="OPNsense"):
    return (
        f"<html><head><title>{title}</title></head><body><form method='post'>"
        f'<input type="hidden" name="{token_name}" value="{token_value}" id="__opnsense_csrf" />'
        "</form></body></html>"
    )


def _make_response(text="", content=None, status_code=200, headers=None):
    resp = MagicMock(spec=requests.Response)
    resp.text = text
    resp.content = content if content is not None else text.encode("utf-8")
    resp.status_code = status_code
    resp.headers = CaseInsensitiveDict(headers or {})
    resp.iter_content.return_value = [resp.content]
    return resp


class FakeServer:
    """Answers session.request() calls in order and records them."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []
        self.session = MagicMock(spec=requests.Session)
        self.session.cookies = requests.cookies.RequestsCookieJar()
        self.session.request.side_effect = self._request

    def _request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        resp = self.responses.pop(0)
        if isinstance(resp, Exception):
            raise resp
        return resp

    def call(self, index):
        return self.calls[index]


def _connection(**overrides):
    params = dict(
        address="192.168.1.1",
        credentials=Credentials("root", "opnsense"),
    )
    params.update(overrides)
    return ServerConnection(**params)


def _happy_path():
    return FakeServer(
        _make_response(_page("T1name", "T1value", "Login | OPNsense")),
        _make_response("<html><title>Lobby: Dashboard</title></html>"),
        _make_response(_page("T2name", "T2value", "System: Configuration: Backups")),
        _make_response(
            content=b"<xml>...</xml>",
            headers={"Content-Disposition": "attachment; filename=backup.xml"},
        ),
    )


class TestExecute(unittest.TestCase):
    def _execute(self, server, connection=None):
        with patch("opnsense_backup.protocols.v17_1.build_session",
                   return_value=server.session) as build:
            result = OpnSenseVersion171().execute(connection or _connection())
        build.assert_called_once_with(verify_ssl=False)
        return result

    def test_end_to_end(self):
        server = _happy_path()

        result = self._execute(server)

        self.assertEqual(result, BackupResult("backup.xml", b"<xml>...</xml>"))
        self.assertEqual(result.text, "<xml>...</xml>")
        self.assertEqual(
            [(m, u) for m, u, _ in server.calls],
            [("GET", BASE), ("POST", LOGIN_URL), ("GET", BACKUP_URL), ("POST", BACKUP_URL)],
        )
        server.session.close.assert_called_once()

    def test_login_form_fields(self):
        server = _happy_path()
        self._execute(server)

        _, _, kwargs = server.call(1)
        self.assertEqual(kwargs["data"], {
            "T1name": "T1value",
            "usernamefld": "root",
            "passwordfld": "opnsense",
            "login": "1",
        })
        self.assertEqual(kwargs["timeout"], 60)

    def test_basic_auth_on_initial_request(self):
        server = _happy_path()
        self._execute(server)

        auth = server.call(0)[2]["auth"]
        self.assertEqual((auth.username, auth.password), ("root", "opnsense"))

    def test_download_uses_second_token(self):
        server = _happy_path()
        self._execute(server)

        body = server.call(3)[2]["data"]
        self.assertIn(b'name="T2name"\r\n\r\nT2value\r\n', body)
        self.assertNotIn(b"T1value", body)
        self.assertEqual(server.call(3)[2]["headers"]["Referer"], BACKUP_URL)

    def test_timeout_is_applied_to_every_request(self):
        server = _happy_path()
        self._execute(server, _connection(timeout=9))
        self.assertEqual([kw["timeout"] for _, _, kw in server.calls], [9, 9, 9, 9])

    def test_https_base_url(self):
        server = _happy_path()
        self._execute(server, _connection(use_tls=True, address="fw.example.com:8443"))
        self.assertEqual(server.call(0)[1], "https://fw.example.com:8443/")

    def test_verify_tls_passed_to_session(self):
        server = _happy_path()
        with patch("opnsense_backup.protocols.v17_1.build_session",
                   return_value=server.session) as build:
            OpnSenseVersion171().execute(_connection(verify_tls=True))
        build.assert_called_once_with(verify_ssl=True)

    def test_missing_filename(self):
        server = _happy_path()
        server.responses[-1] = _make_response(content=b"<opnsense/>")
        result = self._execute(server)
        self.assertIsNone(result.file_name)
        self.assertEqual(result.file_contents, b"<opnsense/>")

    def test_empty_login_page(self):
        server = FakeServer(_make_response(""))
        with self.assertRaises(LoginPageUnavailable):
            self._execute(server)
        self.assertEqual(len(server.calls), 1)
        server.session.close.assert_called_once()

    def test_login_token_missing(self):
        server = FakeServer(_make_response("<html><title>Maintenance</title><p>later</p></html>"))
        with self.assertRaises(CsrfTokenMissing) as ctx:
            self._execute(server)
        self.assertEqual(ctx.exception.page, "login page")
        self.assertEqual(ctx.exception.title, "Maintenance")
        self.assertIn("Maintenance", str(ctx.exception))
        self.assertEqual(len(server.calls), 1)

    def test_wrong_credentials(self):
        server = FakeServer(
            _make_response(_page("T1name", "T1value")),
            _make_response("<div class='alert'>Username or Password incorrect</div>"),
        )
        with self.assertRaises(AuthenticationFailed):
            self._execute(server)
        self.assertEqual(len(server.calls), 2)

    def test_empty_backup_page(self):
        server = FakeServer(
            _make_response(_page("T1name", "T1value")),
            _make_response("<html>dashboard</html>"),
            _make_response(""),
        )
        with self.assertRaises(BackupPageUnavailable):
            self._execute(server)
        self.assertEqual(len(server.calls), 3)

    def test_backup_token_missing(self):
        server = FakeServer(
            _make_response(_page("T1name", "T1value")),
            _make_response("<html>dashboard</html>"),
            _make_response("<html><title>Login | OPNsense</title></html>"),
        )
        with self.assertRaises(CsrfTokenMissing) as ctx:
            self._execute(server)
        self.assertEqual(ctx.exception.page, "backup page")
        self.assertEqual(len(server.calls), 3)

    def test_timeout_aborts_without_retry(self):
        server = FakeServer(
            _make_response(_page("T1name", "T1value")),
            requests.ReadTimeout("slow"),
        )
        with self.assertRaises(RequestTimeout):
            self._execute(server)
        self.assertEqual(len(server.calls), 2)
        server.session.close.assert_called_once()

    def test_unreachable(self):
        server = FakeServer(requests.ConnectionError("no route to host"))
        with self.assertRaises(ConnectivityError):
            self._execute(server)

    def test_invalid_connection_makes_no_requests(self):
        with patch("opnsense_backup.protocols.v17_1.build_session") as build:
            with self.assertRaises(InvalidConnectionDetails):
                OpnSenseVersion171().execute(_connection(address=""))
        build.assert_not_called()


class TestDownloadFields(unittest.TestCase):
    TOKEN = AntiForgeryToken("T2name", "T2value")

    def test_statistics_declined(self):
        fields = OpnSenseVersion171.download_fields(
            _connection(include_statistics_data=False), self.TOKEN)
        self.assertEqual(fields["donotbackuprrd"], "on")

    def test_statistics_included(self):
        fields = OpnSenseVersion171.download_fields(
            _connection(include_statistics_data=True), self.TOKEN)
        self.assertEqual(fields["donotbackuprrd"], "")

    def test_encryption_requested(self):
        fields = OpnSenseVersion171.download_fields(
            _connection(encrypt_backup=True, encryption_password="s3cret"), self.TOKEN)
        self.assertEqual(fields["encrypt"], "on")
        self.assertEqual(fields["encrypt_password"], "s3cret")
        self.assertEqual(fields["encrypt_passconf"], "s3cret")

    def test_no_encryption(self):
        fields = OpnSenseVersion171.download_fields(
            _connection(encryption_password="ignored"), self.TOKEN)
        self.assertEqual(fields["encrypt"], "")
        self.assertEqual(fields["encrypt_password"], "")
        self.assertEqual(fields["encrypt_passconf"], "")

    def test_token_and_trigger(self):
        fields = OpnSenseVersion171.download_fields(_connection(), self.TOKEN)
        self.assertEqual(fields["T2name"], "T2value")
        self.assertEqual(fields["download"], "Download configuration")
        self.assertEqual(next(iter(fields)), "T2name")

    def test_statistics_flag_in_multipart_body(self):
        server = _happy_path()
        with patch("opnsense_backup.protocols.v17_1.build_session",
                   return_value=server.session):
            OpnSenseVersion171().execute(_connection(include_statistics_data=False))
        body = server.call(3)[2]["data"]
        self.assertIn(b'name="donotbackuprrd"\r\n\r\non\r\n', body)


if __name__ == "__main__":
    unittest.main()
