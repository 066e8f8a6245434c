FM_DELIMITER = "---"


def strip_frontmatter(content: str) -> str:
    """
    Remove a leading ``---`` delimited block.
    Content without an opening delimiter on the first line, or without a
    closing one, is returned unchanged.
    """
    lines = content.split("\n")
    if lines[0].strip() != FM_DELIMITER:
        return content

    for idx in range(1, len(lines)):
        if lines[idx].strip() == FM_DELIMITER:
            return "\n".join(lines[idx + 1 :])

    return content
