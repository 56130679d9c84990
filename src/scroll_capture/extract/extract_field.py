import inspect
from typing import Any

from scroll_capture.types.extract_field import ExtractField
from scroll_capture.utils.logger import logger


async def _read(element: Any, field: ExtractField) -> Any:
    value = (
        await element.get_attribute(field.attribute)
        if field.attribute
        else await element.inner_text()
    )
    return field.transform(value) if field.transform else value


async def extract_field(element: Any, field: ExtractField, parent_key: str = "") -> Any:
    """Extract data from an element based on a schema field."""
    if field.extract:
        value = field.extract(element, field)
        return await value if inspect.isawaitable(value) else value

    if field.children:
        container = await element.query_selector(field.selector) if field.selector else element
        if not container:
            logger.debug(f"No container found for {parent_key} with selector {field.selector}")
            return {}
        return {
            key: await extract_field(container, child, f"{parent_key}.{key}")
            for key, child in field.children.items()
        }

    if field.multiple:
        results = []
        for el in await element.query_selector_all(field.selector):
            value = await _read(el, field)
            if value is not None:
                results.append(value)
        return results

    target = await element.query_selector(field.selector) if field.selector else element
    if not target:
        logger.debug(f"No element found for {parent_key} with selector {field.selector}")
        return None
    return await _read(target, field)
