import re

COUNT_PATTERN = re.compile(r"(\d{1,3}(?:,\d{3})+(?!\d)|\d+(?:[.,]\d+)?)\s*([KkMmBb])?(?![A-Za-z])")

MULTIPLIERS = {"k": 1_000, "m": 1_000_000, "b": 1_000_000_000}


def parse_count(text: str | None) -> int:
    """Parse a rendered engagement count like "1.2K", "3,405" or "12 likes".

    Returns 0 when no number is present.
    """
    if not text:
        return 0
    match = COUNT_PATTERN.search(text)
    if not match:
        return 0
    number, suffix = match.groups()
    if suffix:
        value = float(number.replace(",", "."))
        return round(value * MULTIPLIERS[suffix.lower()])
    return int(number.replace(",", "").replace(".", ""))
