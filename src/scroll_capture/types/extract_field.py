from collections.abc import Callable
from typing import Any

from pydantic import BaseModel


class ExtractField(BaseModel):
    """A field in a feed item schema, pairing an output key with how to read it from the DOM.

    Field extraction follows this order:
    1. If extract() is provided, use it to get the value directly (may be async)
    2. If children is provided, extract nested fields from the matched element
    3. If multiple is True, read every matching element with steps 4-6
    4. Find element(s) using selector (an empty selector means the item itself)
    5. If attribute is provided, get that attribute's value
    6. Otherwise get the element's inner_text()
    7. If transform is provided, apply it to the final value
    """

    # CSS selector relative to the item element (e.g. 'div[data-testid="tweetText"]')
    selector: str = ""

    # Attribute to read instead of text (e.g. 'href', 'datetime')
    attribute: str | None = None

    # Applied to the raw string value
    transform: Callable[[Any], Any] | None = None

    # Nested fields read from the matched element
    children: dict[str, "ExtractField"] | None = None

    # Custom extraction, called as extract(element, field). Takes precedence over all other options.
    extract: Callable[[Any, "ExtractField"], Any] | None = None

    # Return a list of every match instead of the first one
    multiple: bool = False

    # Marks the item container; skipped when reading fields
    is_container: bool = False

    # Marks the field holding the item's stable platform id
    is_source_id: bool = False
