"""
Rewrites VuePress container directives and custom component tags into
plain text.

Only lines outside fenced code blocks are touched. Container lines
(``:::`` / ``!!!``) are dropped wholesale; the content between an opening and
closing container line is kept as-is. Tags are handled token by token with
regex scanning rather than an HTML parser: standard HTML passes through,
Vue components collapse to readable text or vanish.
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Optional, Tuple

from craft_llms.markdown_transform.fences import iter_fenced_lines

DIRECTIVE_MARKERS = (":::", "!!!")

HTML_COMMENT_PATTERN = re.compile(r"<!--.*?-->")
TAG_PATTERN = re.compile(
    r"<(?P<closing>/)?(?P<name>[A-Za-z][\w:.-]*)(?P<attrs>(?:\s[^<>]*?)?)\s*(?P<self_closing>/)?>"
)
ATTR_PATTERN = re.compile(r"""([^\s="'<>/]+)\s*=\s*"([^"]*)\"""")

STANDARD_HTML_TAGS = frozenset(
    """
    a abbr address article aside audio b bdi bdo blockquote br button caption
    cite code col colgroup dd del details dfn div dl dt em figcaption figure
    footer h1 h2 h3 h4 h5 h6 header hr i iframe img input ins kbd label li
    main mark nav ol p picture pre q s samp section small source span strong
    sub summary sup table tbody td tfoot th thead time tr u ul var video wbr
    """.split()
)
INLINE_COMPONENT_TAGS = frozenset(
    ["since", "badge", "todo", "journey", "see", "cloud", "poi"]
)
DROP_COMPONENT_TAGS = frozenset(
    ["cloud", "client-only", "clientonly", "toc", "carbonads", "browsershot"]
)


@dataclass(frozen=True)
class TagTables:
    standard: FrozenSet[str] = STANDARD_HTML_TAGS
    inline: FrozenSet[str] = INLINE_COMPONENT_TAGS
    drop: FrozenSet[str] = DROP_COMPONENT_TAGS


DEFAULT_TAG_TABLES = TagTables()


def parse_attributes(attr_text: str) -> Dict[str, str]:
    """Collect ``name="value"`` pairs; names are lower-cased, later pairs win."""
    return {name.lower(): value for name, value in ATTR_PATTERN.findall(attr_text)}


def _first(attrs: Dict[str, str], *keys: str) -> str:
    for key in keys:
        value = attrs.get(key, "").strip()
        if value:
            return value
    return ""


def _since_text(attrs: Dict[str, str]) -> str:
    ver = _first(attrs, "ver", "version")
    feature = _first(attrs, "feature", "text", "label")
    if ver and feature:
        return f"Since {ver}: {feature}"
    if ver:
        return f"Since {ver}"
    if feature:
        return f"Since: {feature}"
    return "Since"


def _label_text(attrs: Dict[str, str]) -> str:
    return _first(attrs, "text", "label", "title")


def _todo_text(attrs: Dict[str, str]) -> str:
    notes = _first(attrs, "notes", "text", "label")
    return f"TODO: {notes}" if notes else "TODO"


def _journey_text(attrs: Dict[str, str]) -> str:
    value = _first(attrs, "path", "label", "text")
    return f"Journey: {value}" if value else "Journey"


def _see_text(attrs: Dict[str, str]) -> str:
    parts = [
        _first(attrs, "label", "text", "title"),
        _first(attrs, "description", "desc"),
        _first(attrs, "path", "url"),
    ]
    parts = [part for part in parts if part]
    return " - ".join(parts) if parts else "See"


def _cloud_text(attrs: Dict[str, str]) -> str:
    return ""


TAG_TEXT_RENDERERS: Dict[str, Callable[[Dict[str, str]], str]] = {
    "since": _since_text,
    "badge": _label_text,
    "todo": _todo_text,
    "journey": _journey_text,
    "see": _see_text,
    "cloud": _cloud_text,
}


def component_text(tag: str, attrs: Dict[str, str]) -> str:
    """Plain-text rendering of a component from its attributes (may be empty)."""
    renderer = TAG_TEXT_RENDERERS.get(tag.lower(), _label_text)
    return renderer(attrs)


class ComponentRewriter:
    def __init__(self, tables: Optional[TagTables] = None):
        self.tables = tables or DEFAULT_TAG_TABLES

    def rewrite_tag(self, match: re.Match) -> str:
        name = match.group("name")
        lower = name.lower()
        attr_text = match.group("attrs") or ""
        closing = bool(match.group("closing"))
        self_closing = bool(match.group("self_closing"))

        if lower in self.tables.standard:
            return match.group(0)
        if lower in self.tables.drop:
            return ""
        if closing:
            return ""
        if ":" in name:
            return name.rsplit(":", 1)[1]
        if lower in self.tables.inline or self_closing:
            return component_text(name, parse_attributes(attr_text)) or name
        if attr_text.strip():
            return ""
        if name[0].isupper():
            return ""
        return name

    def rewrite_line(self, line: str) -> Tuple[str, bool]:
        """Return ``(rewritten_line, keep)``; directive lines are not kept."""
        if line.strip().startswith(DIRECTIVE_MARKERS):
            return line, False
        line = HTML_COMMENT_PATTERN.sub("", line)
        return TAG_PATTERN.sub(self.rewrite_tag, line), True

    def rewrite(self, content: str) -> str:
        output = []
        for line, fenced in iter_fenced_lines(content.split("\n")):
            if fenced:
                output.append(line)
                continue
            rewritten, keep = self.rewrite_line(line)
            if keep:
                output.append(rewritten)
        return "\n".join(output)


def strip_vuepress_directives(
    content: str, tables: Optional[TagTables] = None
) -> str:
    """Drop container directive lines and rewrite component tags outside fences."""
    return ComponentRewriter(tables).rewrite(content)
