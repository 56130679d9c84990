from typing import Any, Optional


class FakeElement:
    """Async stand-in for a Playwright ElementHandle."""

    def __init__(
        self,
        text: str = "",
        attributes: Optional[dict[str, str]] = None,
        children: Optional[dict[str, list["FakeElement"]]] = None,
        visible: bool = True,
        click_error: Optional[Exception] = None,
    ):
        self.text = text
        self.attributes = attributes or {}
        self.children = children or {}
        self.visible = visible
        self.click_error = click_error
        self.clicks = 0

    async def query_selector(self, selector: str) -> Optional["FakeElement"]:
        matches = self.children.get(selector, [])
        return matches[0] if matches else None

    async def query_selector_all(self, selector: str) -> list["FakeElement"]:
        return list(self.children.get(selector, []))

    async def get_attribute(self, name: str) -> Optional[str]:
        return self.attributes.get(name)

    async def inner_text(self) -> str:
        return self.text

    async def is_visible(self) -> bool:
        return self.visible

    async def click(self) -> None:
        if self.click_error:
            raise self.click_error
        self.clicks += 1


class FakePage:
    """Async stand-in for a Playwright Page, answering evaluate() from a script table."""

    def __init__(self, elements: Optional[dict[str, list[Any]]] = None, scroll_y: float = 0):
        self.elements = elements or {}
        self.scroll_y = scroll_y
        self.sticky = False
        self.scripts: list[str] = []
        self.waits: list[int] = []

    async def query_selector_all(self, selector: str) -> list[Any]:
        return list(self.elements.get(selector, []))

    async def wait_for_timeout(self, ms: int) -> None:
        self.waits.append(ms)

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        self.scripts.append(script)
        if "scrollBy" in script:
            self.scroll_y += arg[0]
            return None
        if "scrollTo(" in script:
            if not self.sticky:
                self.scroll_y = 0
            return None
        if "scrollTop = 0" in script:
            self.scroll_y = 0
            return None
        if "scrollableSize" in script:
            return {"offset": self.scroll_y, "scrollableSize": 5000, "viewportSize": 800}
        if "pageYOffset" in script:
            return self.scroll_y
        if "createTreeWalker" in script:
            return {"top": 120, "left": 0, "width": 300, "height": 20} if arg == "The end" else None
        raise AssertionError(f"unexpected script: {script}")


class RectElement(FakeElement):
    """FakeElement that answers the bounding-rect script."""

    def __init__(self, top: float, dom_id: Optional[str] = None, **kwargs: Any):
        super().__init__(**kwargs)
        self.top = top
        self.dom_id = dom_id

    async def evaluate(self, script: str) -> dict[str, Any]:
        return {"top": self.top, "left": 16, "width": 600, "height": 90, "id": self.dom_id}
