import os
import subprocess
from dataclasses import dataclass
from typing import List, Optional

from mkdocs.utils import log

from craft_llms.errors import SyncError


@dataclass(frozen=True)
class RepoMeta:
    commit: str
    timestamp: str


def run_git(args: List[str], cwd: Optional[str] = None) -> str:
    """Run git and return stdout; any failure becomes a SyncError."""
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as exc:
        detail = (exc.stderr or exc.stdout or "").strip() or f"exit code {exc.returncode}"
        raise SyncError(f"git {' '.join(args)} failed: {detail}") from exc
    except OSError as exc:
        raise SyncError(f"git {' '.join(args)} failed: {exc}") from exc
    return result.stdout


def ensure_docs_repo(repo_dir: str, repo_url: str) -> None:
    """Shallow-clone ``repo_url`` into ``repo_dir`` or fast-forward an existing clone."""
    if not os.path.exists(repo_dir):
        log.info(f"[craft_llms] cloning {repo_url} into {repo_dir}")
        run_git(["clone", "--depth", "1", repo_url, repo_dir])
        return

    if not os.path.exists(os.path.join(repo_dir, ".git")):
        raise SyncError(f"Docs repo path exists but is not a git repo: {repo_dir}")

    log.info(f"[craft_llms] updating docs clone at {repo_dir}")
    run_git(["-C", repo_dir, "pull", "--ff-only"])


def get_repo_meta(repo_dir: str) -> RepoMeta:
    commit = run_git(["-C", repo_dir, "rev-parse", "--short", "HEAD"]).strip()
    timestamp = run_git(["-C", repo_dir, "log", "-1", "--format=%cI"]).strip()
    return RepoMeta(commit=commit, timestamp=timestamp)
