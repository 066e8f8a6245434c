import pytest

from craft_llms.errors import (
    IncludeCycleError,
    IncludeDepthError,
    IncludeError,
    IncludePathEscapeError,
)
from craft_llms.markdown_transform.includes import IncludeExpander, expand_includes


def write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestIncludeExpansion:
    def test_root_relative_include(self, tmp_path):
        write(tmp_path / "shared" / "note.md", "Shared note.")
        page = write(tmp_path / "docs" / "page.md", "")
        result = expand_includes(
            "Before\n!!!include(shared/note.md)!!!\nAfter", str(tmp_path), str(page)
        )
        assert result == "Before\nShared note.\nAfter"

    def test_absolute_style_include_resolves_under_root(self, tmp_path):
        write(tmp_path / "shared" / "note.md", "Shared")
        page = write(tmp_path / "docs" / "page.md", "")
        result = expand_includes("!!!include(/shared/note.md)!!!", str(tmp_path), str(page))
        assert result == "Shared"

    def test_dot_relative_include_uses_including_directory(self, tmp_path):
        write(tmp_path / "docs" / "partials" / "a.md", "Partial A")
        page = write(tmp_path / "docs" / "page.md", "")
        result = expand_includes("!!!include(./partials/a.md)!!!", str(tmp_path), str(page))
        assert result == "Partial A"

    def test_nested_includes_expand_left_to_right(self, tmp_path):
        write(tmp_path / "a.md", "A[!!!include(./b.md)!!!]")
        write(tmp_path / "b.md", "B")
        write(tmp_path / "c.md", "C")
        page = write(tmp_path / "page.md", "")
        result = expand_includes(
            "!!!include(a.md)!!! and !!!include(c.md)!!!", str(tmp_path), str(page)
        )
        assert result == "A[B] and C"

    def test_repeated_include_is_read_once(self, tmp_path, monkeypatch):
        write(tmp_path / "note.md", "N")
        page = write(tmp_path / "page.md", "")
        expander = IncludeExpander(str(tmp_path))
        reads = []
        original = IncludeExpander.read

        def counting_read(self, path):
            if path not in self._cache:
                reads.append(path)
            return original(self, path)

        monkeypatch.setattr(IncludeExpander, "read", counting_read)
        result = expander.expand("!!!include(note.md)!!! !!!include(/note.md)!!!", str(page))
        assert result == "N N"
        assert len(reads) == 1

    def test_cycle_is_detected(self, tmp_path):
        """A -> B -> A must fail instead of recursing forever."""
        a = write(tmp_path / "a.md", "!!!include(b.md)!!!")
        write(tmp_path / "b.md", "!!!include(a.md)!!!")
        with pytest.raises(IncludeCycleError) as exc_info:
            expand_includes(a.read_text(), str(tmp_path), str(a))
        assert isinstance(exc_info.value, IncludeError)
        assert exc_info.value.path.endswith("a.md")

    def test_self_include_is_a_cycle(self, tmp_path):
        a = write(tmp_path / "a.md", "!!!include(a.md)!!!")
        with pytest.raises(IncludeCycleError):
            expand_includes(a.read_text(), str(tmp_path), str(a))

    def test_depth_limit_boundary(self, tmp_path):
        """Include chains may be exactly max_depth deep, not deeper."""
        write(tmp_path / "l1.md", "1!!!include(l2.md)!!!")
        write(tmp_path / "l2.md", "2!!!include(l3.md)!!!")
        write(tmp_path / "l3.md", "3")
        page = write(tmp_path / "page.md", "")

        assert expand_includes("!!!include(l1.md)!!!", str(tmp_path), str(page), max_depth=3) == "123"
        with pytest.raises(IncludeDepthError) as exc_info:
            expand_includes("!!!include(l1.md)!!!", str(tmp_path), str(page), max_depth=2)
        assert exc_info.value.max_depth == 2

    def test_path_escape_fails_without_reading(self, tmp_path):
        root = tmp_path / "repo"
        write(tmp_path / "secret.md", "secret")
        page = write(root / "docs" / "page.md", "")
        with pytest.raises(IncludePathEscapeError):
            expand_includes("!!!include(../../secret.md)!!!", str(root), str(page))
        with pytest.raises(IncludePathEscapeError):
            expand_includes("!!!include(./../../../secret.md)!!!", str(root), str(page))

    def test_sibling_prefix_directory_is_outside_root(self, tmp_path):
        """repo-other must not pass a plain string prefix check against repo."""
        root = tmp_path / "repo"
        write(tmp_path / "repo-other" / "x.md", "x")
        page = write(root / "page.md", "")
        with pytest.raises(IncludePathEscapeError):
            expand_includes("!!!include(../repo-other/x.md)!!!", str(root), str(page))

    def test_missing_include_propagates(self, tmp_path):
        page = write(tmp_path / "page.md", "")
        with pytest.raises(FileNotFoundError):
            expand_includes("!!!include(missing.md)!!!", str(tmp_path), str(page))

    def test_content_without_directives_is_unchanged(self, tmp_path):
        page = write(tmp_path / "page.md", "")
        text = "::: tip\nNothing to include\n:::"
        assert expand_includes(text, str(tmp_path), str(page)) == text
