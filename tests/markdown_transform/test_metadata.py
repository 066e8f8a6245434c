from craft_llms.markdown_transform.frontmatter import strip_frontmatter
from craft_llms.markdown_transform.metadata import (
    clean_summary_text,
    extract_summary,
    extract_title,
)


class TestExtractTitle:
    def test_first_h1_after_frontmatter(self):
        text = "\n".join(["---", "title: Ignored", "---", "", "# Real Title", "", "Content"])
        assert extract_title(strip_frontmatter(text), "fallback") == "Real Title"

    def test_trailing_hashes_stripped(self):
        assert extract_title("## Sub\n#  Closed Title ##  \n", "x") == "Closed Title"

    def test_fallback_when_no_heading(self):
        assert extract_title("Just text\n## Level two", "updates") == "updates"

    def test_fenced_heading_ignored(self):
        text = "```bash\n# not a heading\n```\n# Actual"
        assert extract_title(text, "fallback") == "Actual"
        assert extract_title("~~~\n# not a heading\n~~~", "fallback") == "fallback"


class TestExtractSummary:
    def test_first_paragraph_cleaned(self):
        text = "\n".join(
            [
                "# Title",
                "",
                "<div class=\"intro\">",
                "Craft is a **flexible** CMS. Read the [guide](https://x/guide.html)",
                "and `craft up` ![logo](logo.png) <span>docs</span>.",
                "",
                "Second paragraph.",
            ]
        )
        assert extract_summary(text) == (
            "Craft is a **flexible** CMS. Read the guide and craft up logo docs."
        )

    def test_skips_lists_and_headings(self):
        text = "- item one\n1. item two\n## Sub\nParagraph  text\nwrapped"
        assert extract_summary(text) == "Paragraph text wrapped"

    def test_fenced_lines_are_skipped(self):
        text = "```\n# not a heading\ncode line\n```\n\n> Quoted   summary"
        assert extract_summary(text) == "Quoted summary"

    def test_empty_content(self):
        assert extract_summary("") == ""
        assert extract_summary("# Only a title\n\n- and a list") == ""


class TestCleanSummaryText:
    def test_markup_removed(self):
        assert clean_summary_text(">> ![a](b.png) [c](d) <em>e</em> `f`  ") == "a c e f"
