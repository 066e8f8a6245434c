import logging
import os
import re
from typing import Dict, List

from craft_llms.errors import (
    IncludeCycleError,
    IncludeDepthError,
    IncludePathEscapeError,
)

logger = logging.getLogger(f"mkdocs.plugins.{__name__}")

INCLUDE_PATTERN = re.compile(r"!!!include\((.+?)\)!!!")
DEFAULT_MAX_DEPTH = 5


def _normalize(path: str) -> str:
    return os.path.normpath(os.path.abspath(path))


class IncludeExpander:
    """
    Expands ``!!!include(path)!!!`` directives for one top-level call.
    The read cache and the expansion stack belong to this instance only.
    """

    def __init__(self, repo_root: str, max_depth: int = DEFAULT_MAX_DEPTH):
        self.repo_root = _normalize(repo_root)
        self.max_depth = max_depth
        self._cache: Dict[str, str] = {}
        self._stack: List[str] = []

    def resolve(self, ref: str, including_file: str) -> str:
        """Map an include reference to a normalized absolute path inside the repo."""
        ref = ref.strip()
        if ref.startswith("/"):
            candidate = os.path.join(self.repo_root, ref.lstrip("/"))
        elif ref.startswith("./") or ref.startswith("../"):
            candidate = os.path.join(os.path.dirname(including_file), ref)
        else:
            candidate = os.path.join(self.repo_root, ref)
        resolved = _normalize(candidate)

        if resolved != self.repo_root and not resolved.startswith(
            self.repo_root + os.sep
        ):
            raise IncludePathEscapeError(ref, self.repo_root)
        return resolved

    def read(self, path: str) -> str:
        if path not in self._cache:
            with open(path, "r", encoding="utf-8") as fh:
                self._cache[path] = fh.read()
            logger.debug(f"[craft_llms] read include {path}")
        return self._cache[path]

    def expand(self, content: str, file_path: str) -> str:
        file_path = _normalize(file_path)
        self._stack.append(file_path)
        try:
            return self._expand_level(content, file_path)
        finally:
            self._stack.pop()

    def _expand_level(self, content: str, file_path: str) -> str:
        def replace(match: re.Match) -> str:
            resolved = self.resolve(match.group(1), file_path)
            if resolved in self._stack:
                raise IncludeCycleError(resolved, self._stack)
            # Stack holds the top-level file plus one entry per include level.
            if len(self._stack) > self.max_depth:
                raise IncludeDepthError(resolved, self.max_depth)
            return self.expand(self.read(resolved), resolved)

        return INCLUDE_PATTERN.sub(replace, content)


def expand_includes(
    content: str, repo_root: str, file_path: str, max_depth: int = DEFAULT_MAX_DEPTH
) -> str:
    """Replace every include directive in ``content`` with the expanded target file."""
    return IncludeExpander(repo_root, max_depth).expand(content, file_path)
