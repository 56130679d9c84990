import re


def slugify(text: str | None, max_length: int = 80) -> str:
    """Convert a source tag or URL fragment to a filename safe slug."""
    if not text:
        return "unknown"

    encoded = re.sub(r"[\s_/?=&.:]", "-", text.lower())
    encoded = re.sub(r"[^a-z0-9-]", "", encoded)
    encoded = re.sub(r"-+", "-", encoded).strip("-")

    return encoded[:max_length] or "unknown"
