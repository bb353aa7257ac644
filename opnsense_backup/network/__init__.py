"""
HTTP transport: session setup, form posts and the multipart download.
"""

from opnsense_backup.network.client import (
    build_session,
    encode_multipart,
    http_get,
    http_post,
    parse_content_disposition,
    post_multipart,
)

__all__ = [
    "build_session",
    "encode_multipart",
    "http_get",
    "http_post",
    "parse_content_disposition",
    "post_multipart",
]
