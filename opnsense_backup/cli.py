"""
Command-line interface for the OPNsense backup tool.

Provides argument parsing and main execution flow.
"""

import argparse
import getpass
import sys
from pathlib import Path

import urllib3

from opnsense_backup.config import DEFAULT_PASSWORD, DEFAULT_USER, DEFAULT_VERSION, REQUEST_TIMEOUT
from opnsense_backup.errors import BackupError, EmptyBackup
from opnsense_backup.logging_setup import log, setup_logging
from opnsense_backup.models import Credentials, ServerConnection
from opnsense_backup.protocols import select_protocol, supported_versions
from opnsense_backup.utils.files import resolve_output_path, safe_file_name, save_file

EXAMPLES = """\
examples:
  opnsense-backup -u admin -p mypassword -s 192.168.0.1
  opnsense-backup -u admin -p mypassword -s 192.168.0.1:8000
  opnsense-backup -u admin -p mypassword -s 192.168.0.1 --usessl
  opnsense-backup -u admin -p mypassword -s 192.168.0.1 -o /backups --norrd
  opnsense-backup -u admin -p mypassword -s 192.168.0.1 -o /backups/opnsense.xml
  opnsense-backup -u admin -p mypassword -s 192.168.0.1 -e "encryptionpass"
  opnsense-backup -u admin -p mypassword -s 192.168.0.1 -t 120

Credentials can also be provided via the OPNSENSE_USER / OPNSENSE_PASSWORD
env vars.  If no password is available you will be prompted for it.
"""


def parse_args(argv: "list[str] | None" = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        argv: Argument list (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="opnsense-backup",
        description="Download the configuration backup of an OPNsense firewall "
                    "through its web interface.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EXAMPLES,
    )
    parser.add_argument(
        "-s", "--server", required=True,
        help="IP address or DNS name of the OPNsense server, optionally with :port",
    )
    parser.add_argument(
        "-u", "--user", default=DEFAULT_USER,
        help="Username of the account used to log on to OPNsense",
    )
    parser.add_argument(
        "-p", "--password", default=DEFAULT_PASSWORD,
        help="Password of the account (overrides OPNSENSE_PASSWORD env var)",
    )
    parser.add_argument(
        "-v", "--opnsense-version", dest="version", default=DEFAULT_VERSION,
        help=f"OPNsense version; supported: {', '.join(supported_versions())} "
             f"(default: {DEFAULT_VERSION})",
    )
    parser.add_argument(
        "-o", "--output", default=None,
        help="Folder or complete path where to store the backup file "
             "(default: current directory, server-provided filename)",
    )
    parser.add_argument(
        "-e", "--encrypt-password", default=None,
        help="Have OPNsense encrypt the backup using this password",
    )
    parser.add_argument(
        "-t", "--timeout", type=float, default=REQUEST_TIMEOUT,
        help=f"Timeout in seconds for each request (default: {REQUEST_TIMEOUT})",
    )
    parser.add_argument(
        "--usessl", action="store_true",
        help="Connect over https instead of http",
    )
    parser.add_argument(
        "--verify-ssl", action="store_true", default=False,
        help="Verify the server's TLS certificate (off by default because "
             "appliances usually use self-signed certificates)",
    )
    parser.add_argument(
        "--norrd", action="store_true",
        help="Do not include RRD statistics data in the backup",
    )
    parser.add_argument(
        "--silent", action="store_true",
        help="Only print errors",
    )
    parser.add_argument(
        "--debug", action="store_true",
        help="Enable verbose debug logging",
    )
    return parser.parse_args(argv)


def build_connection(args: argparse.Namespace) -> ServerConnection:
    """Turn parsed arguments into validated ServerConnection details."""
    connection = ServerConnection(
        address=args.server,
        credentials=Credentials(args.user, args.password),
        use_tls=args.usessl,
        protocol_version=args.version,
        timeout=args.timeout,
        include_statistics_data=not args.norrd,
        encrypt_backup=bool(args.encrypt_password),
        encryption_password=args.encrypt_password,
        verify_tls=args.verify_ssl,
    )
    connection.validate()
    return connection


def run_backup(connection: ServerConnection, output: "str | Path | None" = None) -> Path:
    """
    Download the backup described by *connection* and store it.

    Returns:
        Path the backup was written to

    Raises:
        BackupError: on any failure; nothing is retried
    """
    protocol = select_protocol(connection.protocol_version)
    result = protocol.execute(connection)
    if not result.file_contents:
        raise EmptyBackup()

    file_name = safe_file_name(result.file_name, connection.address)
    target = resolve_output_path(output, file_name)
    log.info("Saving backup file to %s", target)
    save_file(target, result.file_contents)
    return target


def main(argv: "list[str] | None" = None) -> None:
    """
    Main entry point for the backup CLI.
    """
    args = parse_args(argv)

    setup_logging(debug=args.debug, silent=args.silent)

    if args.usessl and not args.verify_ssl:
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
        log.warning("TLS certificate verification is DISABLED (use --verify-ssl to enable)")

    if not args.password and args.user and sys.stdin.isatty():
        args.password = getpass.getpass("OPNsense password: ")

    try:
        connection = build_connection(args)
        target = run_backup(connection, args.output)
    except BackupError as exc:
        log.error("%s", exc)
        sys.exit(1)

    log.info("DONE (%s)", target)


if __name__ == "__main__":
    main()
