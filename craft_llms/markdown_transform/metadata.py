import re

from craft_llms.markdown_transform.fences import iter_fenced_lines

TITLE_RE = re.compile(r"^#\s+(.+?)\s*#*\s*$")
HEADING_RE = re.compile(r"^#{1,6}\s+")
LIST_RE = re.compile(r"^\s*([-*+]|\d+\.)\s+")
HTML_ONLY_RE = re.compile(r"^(?:<[^>]+>\s*)+$")

IMAGE_RE = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]*\)")
HTML_TAG_RE = re.compile(r"<[^>]+>")
INLINE_CODE_RE = re.compile(r"`([^`]*)`")
BLOCKQUOTE_RE = re.compile(r"^>+\s*")


def extract_title(content: str, fallback: str) -> str:
    """Return the first level-1 heading outside fences, else ``fallback``."""
    for line, fenced in iter_fenced_lines(content.split("\n")):
        if fenced:
            continue
        m = TITLE_RE.match(line)
        if m:
            return m.group(1).strip()
    return fallback


def clean_summary_text(text: str) -> str:
    """Reduce Markdown/HTML inline markup to plain text."""
    text = IMAGE_RE.sub(r"\1", text)
    text = LINK_RE.sub(r"\1", text)
    text = HTML_TAG_RE.sub("", text)
    text = INLINE_CODE_RE.sub(r"\1", text)
    text = BLOCKQUOTE_RE.sub("", text)
    return " ".join(text.split())


def extract_summary(content: str) -> str:
    """
    Plain text of the first prose paragraph outside fences.
    Headings, list items and tag-only lines are skipped; a blank line ends a
    paragraph once it has started.
    """
    paragraph = []
    for line, fenced in iter_fenced_lines(content.split("\n")):
        if fenced:
            continue
        trimmed = line.strip()
        if not trimmed:
            if paragraph:
                break
            continue
        if HEADING_RE.match(trimmed) or LIST_RE.match(trimmed) or HTML_ONLY_RE.match(trimmed):
            continue
        paragraph.append(trimmed)

    return clean_summary_text(" ".join(paragraph))
