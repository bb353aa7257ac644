"""Configuration constants for the OPNsense backup tool."""

import os

DEFAULT_VERSION = "17.1"
# Credentials can also be supplied via OPNSENSE_USER / OPNSENSE_PASSWORD env vars
DEFAULT_USER = os.environ.get("OPNSENSE_USER", "")
DEFAULT_PASSWORD = os.environ.get("OPNSENSE_PASSWORD", "")

REQUEST_TIMEOUT = 60    # seconds per HTTP request

LOGIN_ENTRY = "index.php"
BACKUP_PAGE = "diag_backup.php"

# Substring of the id attribute carried by the hidden anti-CSRF input
CSRF_MARKER = "opnsense_csrf"

# Returned in a 200 response when the login form rejects the credentials.
# English-only; other UI languages will not be recognised.
LOGIN_FAILED_MARKER = "Username or Password incorrect"

MULTIPART_BOUNDARY = "---------------------------7dc1873b1609fa"

# Form field names posted by the login and backup pages
USERNAME_FIELD = "usernamefld"
PASSWORD_FIELD = "passwordfld"
LOGIN_TRIGGER_FIELD = "login"
SKIP_STATISTICS_FIELD = "donotbackuprrd"
ENCRYPT_FIELD = "encrypt"
ENCRYPT_PASSWORD_FIELD = "encrypt_password"
ENCRYPT_CONFIRM_FIELD = "encrypt_passconf"
DOWNLOAD_TRIGGER_FIELD = "download"
DOWNLOAD_TRIGGER_VALUE = "Download configuration"

# Used when the server does not suggest a filename
FALLBACK_FILENAME_TEMPLATE = "config-{host}-{timestamp}.xml"
