"""Plain-text helpers for harvested content."""

ELLIPSIS = "..."


def strip_tags(text: str) -> str:
    """Drop everything between ``<`` and ``>`` in a single pass."""
    chars = []
    in_tag = False
    for char in text:
        if char == "<":
            in_tag = True
        elif char == ">":
            in_tag = False
        elif not in_tag:
            chars.append(char)
    return "".join(chars).strip()


def truncate(text: str, max_chars: int) -> str:
    """Cap text to ``max_chars`` characters, marking the cut with an ellipsis."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + ELLIPSIS
