"""
Input sanitizers matching the WordPress functions the endpoints declare.

sanitize_text_field / sanitize_textarea_field follow _sanitize_text_fields()
from wp-includes/formatting.php; kses_post is the allow-list used for post
content (wp_kses_post), implemented with nh3.
"""
import re

import nh3

_SCRIPT_STYLE = re.compile(r"<(script|style)[^>]*?>.*?</\1>", re.IGNORECASE | re.DOTALL)
_TAG = re.compile(r"<[^>]*>", re.DOTALL)
_LONE_LESS_THAN = re.compile(r"<[^>]*?((?=<)|>|$)")
_WHITESPACE = re.compile(r"[\r\n\t ]+")
_OCTET = re.compile(r"%[a-f0-9]{2}", re.IGNORECASE)
_SPACES = re.compile(r" +")

_POST_TAGS = {
    "a", "abbr", "address", "article", "aside", "b", "blockquote", "br",
    "caption", "cite", "code", "dd", "del", "details", "div", "dl", "dt",
    "em", "figcaption", "figure", "footer", "h1", "h2", "h3", "h4", "h5",
    "h6", "header", "hr", "i", "img", "ins", "kbd", "li", "mark", "ol", "p",
    "pre", "q", "s", "section", "small", "span", "strike", "strong", "sub",
    "summary", "sup", "table", "tbody", "td", "tfoot", "th", "thead", "tr",
    "u", "ul",
}

_POST_ATTRIBUTES = {
    "*": {"class", "id", "style", "title", "lang", "dir", "role", "aria-label", "aria-hidden"},
    "a": {"href", "target", "rel", "name", "download"},
    "img": {"src", "alt", "width", "height", "srcset", "sizes", "loading", "decoding"},
    "blockquote": {"cite"},
    "q": {"cite"},
    "del": {"datetime"},
    "ins": {"datetime"},
    "ol": {"start", "reversed", "type"},
    "li": {"value"},
    "td": {"colspan", "rowspan", "headers", "align"},
    "th": {"colspan", "rowspan", "headers", "scope", "align"},
    "details": {"open"},
}


def _escape_lone_less_than(text: str) -> str:
    """wp_pre_kses_less_than(): escape '<' that does not open a tag."""
    def repl(match: re.Match) -> str:
        chunk = match.group(0)
        if ">" in chunk:
            return chunk
        return chunk.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
    return _LONE_LESS_THAN.sub(repl, text)


def strip_all_tags(text: str) -> str:
    """wp_strip_all_tags() without line-break removal."""
    text = _SCRIPT_STYLE.sub("", text)
    text = _TAG.sub("", text)
    return text.strip()


def _sanitize_text(value, keep_newlines: bool) -> str:
    if value is None or isinstance(value, (list, dict, tuple)):
        return ""
    filtered = str(value)

    if "<" in filtered:
        filtered = _escape_lone_less_than(filtered)
        filtered = strip_all_tags(filtered)
        filtered = filtered.replace("<\n", "&lt;\n")

    if not keep_newlines:
        filtered = _WHITESPACE.sub(" ", filtered)
    filtered = filtered.strip()

    found = False
    while _OCTET.search(filtered):
        filtered = _OCTET.sub("", filtered)
        found = True
    if found:
        filtered = _SPACES.sub(" ", filtered).strip()

    return filtered


def sanitize_text_field(value) -> str:
    """Single-line plain text: tags stripped, whitespace collapsed."""
    return _sanitize_text(value, keep_newlines=False)


def sanitize_textarea_field(value) -> str:
    """Multi-line plain text: tags stripped, line breaks preserved."""
    return _sanitize_text(value, keep_newlines=True)


def kses_post(value) -> str:
    """Restrict HTML to the tags and attributes allowed in post content."""
    if value is None:
        return ""
    return nh3.clean(
        str(value),
        tags=_POST_TAGS,
        attributes=_POST_ATTRIBUTES,
        link_rel=None,
        url_schemes={"http", "https", "mailto", "tel", "ftp"},
    )
