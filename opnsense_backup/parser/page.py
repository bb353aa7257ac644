"""Describe an unexpected HTML page for error messages."""

import sys

try:
    from bs4 import BeautifulSoup
except ImportError:
    sys.exit("Missing dependency. Run:  pip install beautifulsoup4")

try:
    import lxml  # noqa: F401 – used as BeautifulSoup parser backend
    _BS4_PARSER = "lxml"
except ImportError:
    _BS4_PARSER = "html.parser"


def page_title(page_body: "str | None") -> "str | None":
    """
    Return the whitespace-normalised ``<title>`` of *page_body*.

    Used when a page lacks the form the protocol expects, so the error can
    say what the server sent instead (a login page after a lost session,
    a proxy interstitial, a newer UI).  Returns None for empty bodies and
    pages without a title.
    """
    if not page_body:
        return None
    soup = BeautifulSoup(page_body, _BS4_PARSER)
    if soup.title is None:
        return None
    title = " ".join(soup.title.get_text().split())
    return title or None
