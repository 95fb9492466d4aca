"""Splitting of long messages for size-limited channels."""


def split_message(text: str, max_len: int) -> list[str]:
    """Break text into chunks of at most ``max_len`` characters.

    Splits on paragraph boundaries ("\\n\\n") when possible, then on single
    newlines, and hard-cuts only when a chunk has no newline at all.
    """
    if len(text) <= max_len:
        return [text]

    chunks = []
    while text:
        if len(text) <= max_len:
            chunks.append(text)
            break

        window = text[:max_len]
        cut = window.rfind("\n\n")
        if cut <= 0:
            cut = window.rfind("\n")
        if cut <= 0:
            cut = max_len

        chunks.append(text[:cut])
        text = text[cut:].lstrip("\n")
    return chunks
