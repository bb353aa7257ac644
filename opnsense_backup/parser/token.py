"""
Anti-CSRF token extraction from OPNsense HTML pages.

The login and backup forms both carry a hidden input such as::

    <input type="hidden" name="Z3VhcmQ..." value="a1b2c3..." id="__opnsense_csrf" />

The ``name`` is randomised per session, so both the name and the value
have to be read back from the page.  Matching is done with targeted
regular expressions over ``<input>`` tags only; attribute order and
quoting style do not matter.
"""

import html
import re

from ..config import CSRF_MARKER
from ..errors import TokenNotFound
from ..logging_setup import log
from ..models import AntiForgeryToken

_INPUT_TAG_RE = re.compile(r"<input\b[^>]*>", re.I | re.S)
_ATTR_RE = re.compile(
    r"""([^\s"'<>/=]+)            # attribute name
        (?:\s*=\s*
            (?:"([^"]*)"          # double-quoted value
              |'([^']*)'          # single-quoted value
              |([^\s"'=<>`]+)     # unquoted value
            )
        )?""",
    re.X,
)


def parse_attributes(tag: str) -> "dict[str, str]":
    """Return the attributes of a single start tag, names lower-cased.

    The first occurrence wins when an attribute is repeated, as in browsers.
    """
    inner = re.sub(r"^<\s*\w+|/?>$", "", tag)
    attrs: dict[str, str] = {}
    for m in _ATTR_RE.finditer(inner):
        name = m.group(1).lower()
        value = next((g for g in m.group(2, 3, 4) if g is not None), "")
        attrs.setdefault(name, html.unescape(value))
    return attrs


def extract_token(page_body: str, marker: str = CSRF_MARKER) -> AntiForgeryToken:
    """
    Find the hidden input whose ``id`` contains *marker* (case-insensitive).

    Args:
        page_body: HTML of the page
        marker: Substring expected in the input's id attribute

    Returns:
        AntiForgeryToken with the input's name and value

    Raises:
        TokenNotFound: if no matching hidden input with a name is present
    """
    needle = marker.lower()
    for tag in _INPUT_TAG_RE.findall(page_body or ""):
        attrs = parse_attributes(tag)
        if attrs.get("type", "").lower() != "hidden":
            continue
        if needle not in attrs.get("id", "").lower():
            continue
        name = attrs.get("name")
        if not name:
            continue
        token = AntiForgeryToken(name=name, value=attrs.get("value", ""))
        log.debug("CSRF token: %s=%s…", token.name, token.value[:12])
        return token
    raise TokenNotFound(marker)
