import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from mkdocs.utils import log

from craft_llms.errors import DocsRootNotFoundError
from craft_llms.llms_build.config import BuildConfig
from craft_llms.llms_build.git_sync import RepoMeta, ensure_docs_repo, get_repo_meta
from craft_llms.markdown_transform.components import ComponentRewriter, TagTables
from craft_llms.markdown_transform.frontmatter import strip_frontmatter
from craft_llms.markdown_transform.includes import expand_includes
from craft_llms.markdown_transform.links import doc_path_to_url, normalize_links
from craft_llms.markdown_transform.metadata import extract_summary, extract_title

ROOT_GROUP = "root"


@dataclass(frozen=True)
class IndexEntry:
    title: str
    url: str
    summary: str
    rel_path: str


@dataclass(frozen=True)
class BuildOutput:
    full_text: str
    index_text: str
    total_files: int


@dataclass(frozen=True)
class BuildResult:
    full_path: Path
    index_path: Path
    total_files: int


def sort_key(name: str) -> Tuple[str, str]:
    """Case-insensitive name ordering with a case-sensitive tie-break."""
    return name.lower(), name


def collect_markdown_files(root_dir: Path) -> List[Path]:
    """
    Collect ``*.md`` files depth-first: a directory's files (sorted by name)
    come before its subdirectories (also sorted by name).
    """
    entries = list(Path(root_dir).iterdir())
    # Symlinks are skipped so a link back up the tree cannot loop.
    entries = [e for e in entries if not e.is_symlink()]
    md_files = sorted(
        (e for e in entries if e.is_file() and e.name.lower().endswith(".md")),
        key=lambda e: sort_key(e.name),
    )
    dirs = sorted((e for e in entries if e.is_dir()), key=lambda e: sort_key(e.name))

    files = list(md_files)
    for child in dirs:
        files.extend(collect_markdown_files(child))
    return files


def resolve_docs_root(candidates: Sequence[Path]) -> Path:
    """Return the first existing candidate directory."""
    for candidate in candidates:
        if Path(candidate).exists():
            return Path(candidate)
    raise DocsRootNotFoundError(candidates)


def group_for(rel_path: str) -> str:
    return rel_path.split("/", 1)[0] if "/" in rel_path else ROOT_GROUP


def provenance_line(meta: RepoMeta) -> str:
    return f"Last updated: {meta.timestamp} (commit {meta.commit})"


class LlmsBuilder:
    """Turns a VuePress docs tree into ``llms-full.txt`` and ``llms.txt`` text."""

    def __init__(self, config: BuildConfig, tag_tables: Optional[TagTables] = None):
        self.config = config
        self.base_url = config.normalized_base_url
        self.rewriter = ComponentRewriter(tag_tables)

    def process_page(
        self, file_path: Path, docs_root: Path, repo_root: Path
    ) -> Tuple[str, IndexEntry]:
        """Return the page's normalized body and its index entry."""
        raw = file_path.read_text(encoding="utf-8")
        expanded = expand_includes(
            raw, str(repo_root), str(file_path), self.config.include_max_depth
        )
        without_frontmatter = strip_frontmatter(expanded)
        cleaned = self.rewriter.rewrite(without_frontmatter)

        rel_path = file_path.relative_to(docs_root).as_posix()
        title = extract_title(cleaned, file_path.stem)
        body = normalize_links(cleaned, self.base_url, rel_path).rstrip()
        summary = extract_summary(cleaned)
        url = doc_path_to_url(rel_path, self.base_url)

        log.debug(f"[craft_llms] processed {rel_path} -> {url}")
        return body, IndexEntry(title=title, url=url, summary=summary, rel_path=rel_path)

    def render(
        self,
        files: Sequence[Path],
        docs_root: Path,
        repo_root: Path,
        meta: RepoMeta,
    ) -> BuildOutput:
        header_lines = [
            f"# {self.config.project_name}",
            self.config.description,
            provenance_line(meta),
            "",
        ]

        page_chunks: List[str] = []
        index_groups: Dict[str, List[IndexEntry]] = {}

        for file_path in files:
            body, entry = self.process_page(Path(file_path), docs_root, repo_root)
            page_chunks.extend(["---", f"# {entry.title}", body, ""])
            index_groups.setdefault(group_for(entry.rel_path), []).append(entry)

        full_text = (
            "\n".join(header_lines) + "\n" + "\n".join(page_chunks)
        ).rstrip() + "\n"
        index_text = self.render_index(index_groups, meta)
        return BuildOutput(full_text=full_text, index_text=index_text, total_files=len(files))

    def render_index(self, index_groups: Dict[str, List[IndexEntry]], meta: RepoMeta) -> str:
        lines = [f"# {self.config.index_title}", provenance_line(meta), ""]
        for group in sorted(index_groups, key=sort_key):
            lines.append(f"## {group}")
            entries = sorted(index_groups[group], key=lambda e: sort_key(e.rel_path))
            for entry in entries:
                summary = f" — {entry.summary}" if entry.summary else ""
                lines.append(f"- [{entry.title}]({entry.url}){summary}")
            lines.append("")
        return "\n".join(lines).rstrip() + "\n"


def remove_stale_temp_files(output_dir: Path, names: Sequence[str]) -> None:
    """Delete ``.<name>.*`` files left behind by an interrupted earlier write."""
    for name in names:
        for stale in output_dir.glob(f".{name}.*"):
            log.debug(f"[craft_llms] removing stale temporary file {stale}")
            stale.unlink()


def rollback_outputs(
    staged: Sequence[Tuple[str, Path]], backups: Dict[Path, Path]
) -> None:
    """Undo a partial swap: drop staged files and put the previous outputs back."""
    for tmp_name, target in staged:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        elif target not in backups and target.exists():
            # Moved into place but there was no previous file to restore.
            target.unlink()
    for target, backup in backups.items():
        os.replace(backup, target)


def write_outputs(output: BuildOutput, output_dir: Path, config: BuildConfig) -> BuildResult:
    """
    Write both artifacts. Each is staged in a temporary file first and only
    moved into place once both have been written. If moving the second one
    fails, the first is rolled back so the pair is never mixed.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    targets = [
        (output_dir / config.full_filename, output.full_text),
        (output_dir / config.index_filename, output.index_text),
    ]
    remove_stale_temp_files(output_dir, [target.name for target, _ in targets])

    staged: List[Tuple[str, Path]] = []
    try:
        for target, text in targets:
            fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", dir=output_dir)
            staged.append((tmp_name, target))
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as fh:
                fh.write(text)
    except OSError:
        for tmp_name, _ in staged:
            os.unlink(tmp_name)
        raise

    # Hard links keep the current outputs readable during the swap.
    backups: Dict[Path, Path] = {}
    try:
        for _, target in staged:
            if target.exists():
                backup = target.with_name(f".{target.name}.bak")
                os.link(target, backup)
                backups[target] = backup
        for tmp_name, target in staged:
            os.replace(tmp_name, target)
    except OSError:
        log.warning(f"[craft_llms] could not move outputs into {output_dir}, rolling back")
        rollback_outputs(staged, backups)
        raise

    for backup in backups.values():
        backup.unlink()
    for _, target in staged:
        log.info(f"[craft_llms] wrote {target}")

    return BuildResult(
        full_path=targets[0][0], index_path=targets[1][0], total_files=output.total_files
    )


def build(
    config: BuildConfig,
    repo_meta: Optional[RepoMeta] = None,
    tag_tables: Optional[TagTables] = None,
) -> BuildResult:
    """
    Sync the docs clone, render every page and write both artifacts.
    Any error aborts the build before anything is written.
    """
    repo_dir = Path(config.docs_dir).resolve()
    output_dir = Path(config.output_dir).resolve()

    if config.sync:
        ensure_docs_repo(str(repo_dir), config.docs_repo)

    docs_root = resolve_docs_root([repo_dir / sub for sub in config.docs_subpaths])
    files = collect_markdown_files(docs_root)
    log.info(f"[craft_llms] found {len(files)} markdown files under {docs_root}")

    meta = repo_meta or get_repo_meta(str(repo_dir))
    output = LlmsBuilder(config, tag_tables).render(files, docs_root, repo_dir, meta)
    return write_outputs(output, output_dir, config)
