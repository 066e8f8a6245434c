import posixpath
import re

from craft_llms.markdown_transform.fences import iter_fenced_lines

INLINE_LINK_PATTERN = re.compile(r"(?<!!)\[([^\]]+)\]\(([^)]+)\)")
REFERENCE_DEF_PATTERN = re.compile(r"^(\s*\[[^\]]+\]:\s*)(\S+)(.*)$", re.DOTALL)
DESTINATION_PATTERN = re.compile(r"^(\S+)(.*)$", re.DOTALL)
SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")
DOCS_ROOT_PREFIX = re.compile(r"^/docs/5\.x/")


def ensure_trailing_slash(base_url: str) -> str:
    return base_url if base_url.endswith("/") else f"{base_url}/"


def map_doc_path(doc_path: str) -> str:
    """
    Map a Markdown source path to its published HTML path.
    ``readme.md`` and ``index.md`` fold into the directory's ``index.html``.
    """
    lower = doc_path.lower()
    if lower in ("readme.md", "index.md") or lower.endswith(("/readme.md", "/index.md")):
        return posixpath.join(posixpath.dirname(doc_path), "index.html")
    if lower.endswith(".md"):
        return doc_path[: -len(".md")] + ".html"
    return doc_path


def doc_path_to_url(relative_path: str, base_url: str) -> str:
    """Absolute site URL of a docs-root-relative Markdown file."""
    posix_path = relative_path.replace("\\", "/")
    if posix_path.startswith("/"):
        posix_path = posix_path[1:]
    mapped = map_doc_path(posix_path)
    return ensure_trailing_slash(base_url) + mapped.lstrip("/")


def normalize_doc_link(url: str, current_file_path: str, base_url: str) -> str:
    """
    Rewrite a single link target to an absolute site URL.
    Fragments, protocol-relative and schemed URLs are left alone.
    """
    if not url or url.startswith("#"):
        return url
    if url.startswith("//") or SCHEME_PATTERN.match(url):
        return url

    path_part, hash_sep, fragment = url.partition("#")
    path_part, query_sep, query = path_part.partition("?")
    fragment = hash_sep + fragment
    query = query_sep + query

    is_root = path_part.startswith("/")
    if is_root:
        path_part = DOCS_ROOT_PREFIX.sub("", path_part).lstrip("/")

    if not path_part:
        return url

    resolved = path_part
    if not is_root:
        resolved = posixpath.normpath(
            posixpath.join(posixpath.dirname(current_file_path), path_part)
        )
        if path_part.endswith("/") and not resolved.endswith("/"):
            resolved += "/"

    mapped = map_doc_path(resolved)
    return f"{ensure_trailing_slash(base_url)}{mapped.lstrip('/')}{query}{fragment}"


def normalize_link_destination(
    raw_destination: str, current_file_path: str, base_url: str
) -> str:
    """Normalize the URL inside a link destination, keeping whitespace and any title."""
    inner = raw_destination.strip()
    if not inner:
        return raw_destination
    leading = raw_destination[: len(raw_destination) - len(raw_destination.lstrip())]
    trailing = raw_destination[len(raw_destination.rstrip()) :]

    if inner.startswith("<"):
        end = inner.find(">")
        if end != -1:
            normalized = normalize_doc_link(inner[1:end], current_file_path, base_url)
            return f"{leading}<{normalized}>{inner[end + 1 :]}{trailing}"

    url, rest = DESTINATION_PATTERN.match(inner).groups()
    normalized = normalize_doc_link(url, current_file_path, base_url)
    return f"{leading}{normalized}{rest}{trailing}"


def normalize_reference_definition(
    line: str, current_file_path: str, base_url: str
) -> str:
    match = REFERENCE_DEF_PATTERN.match(line)
    if not match:
        return line
    prefix, destination, rest = match.groups()
    normalized = normalize_link_destination(destination, current_file_path, base_url)
    return f"{prefix}{normalized}{rest}"


def normalize_links(content: str, base_url: str, current_file_path: str) -> str:
    """Rewrite inline and reference-style doc links outside fences to absolute URLs."""

    def replace_inline(match: re.Match) -> str:
        text, destination = match.group(1), match.group(2)
        normalized = normalize_link_destination(destination, current_file_path, base_url)
        return f"[{text}]({normalized})"

    output = []
    for line, fenced in iter_fenced_lines(content.split("\n")):
        if fenced:
            output.append(line)
            continue
        line = INLINE_LINK_PATTERN.sub(replace_inline, line)
        output.append(normalize_reference_definition(line, current_file_path, base_url))
    return "\n".join(output)
