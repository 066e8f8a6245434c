"""
Exceptions raised while building the llms artifacts.

Every failure aborts the whole build; nothing is written unless all
discovered pages were rendered.
"""

from typing import Iterable


class BuildError(Exception):
    """Base class for all build failures."""


class SyncError(BuildError):
    """The documentation working copy could not be cloned, updated or inspected."""


class DocsRootNotFoundError(BuildError, FileNotFoundError):
    def __init__(self, candidates: Iterable[str]):
        self.candidates = [str(c) for c in candidates]
        super().__init__(f"Docs path not found. Checked: {', '.join(self.candidates)}")


class IncludeError(BuildError):
    """Base class for ``!!!include()!!!`` resolution failures."""

    def __init__(self, message: str, path: str):
        self.path = path
        super().__init__(message)


class IncludeCycleError(IncludeError):
    def __init__(self, path: str, stack: Iterable[str]):
        self.stack = list(stack)
        chain = " -> ".join(self.stack + [path])
        super().__init__(f"Include cycle detected: {chain}", path)


class IncludeDepthError(IncludeError):
    def __init__(self, path: str, max_depth: int):
        self.max_depth = max_depth
        super().__init__(
            f"Include depth exceeded (max {max_depth}) while including {path}", path
        )


class IncludePathEscapeError(IncludeError):
    def __init__(self, path: str, repo_root: str):
        self.repo_root = repo_root
        super().__init__(
            f"Include path {path} resolves outside repository root {repo_root}", path
        )


class ConfigError(BuildError, ValueError):
    """A config file or value could not be turned into a ``BuildConfig``."""

    def __init__(self, message: str, key: str):
        self.key = key
        super().__init__(message)
