"""
HTML parsing for the two forms the backup protocol reads.

Token extraction uses targeted regular expressions; the page title lookup
used in error messages goes through BeautifulSoup.
"""

from opnsense_backup.parser.page import page_title
from opnsense_backup.parser.token import extract_token, parse_attributes

__all__ = ["extract_token", "page_title", "parse_attributes"]
