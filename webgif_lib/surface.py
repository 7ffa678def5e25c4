from __future__ import annotations

from typing import Any, Dict

CONTENT_HEIGHT_SCRIPT = "() => document.body.scrollHeight"
VIEWPORT_WIDTH_SCRIPT = "() => window.innerWidth"
SCROLL_TO_SCRIPT = "(y) => window.scrollTo(0, y)"


class RenderSurface:
    """
    Live page the recorder drives.

    Only one operation is ever in flight: callers issue a movement, wait for
    it to settle, then capture. Implementations do not need to be thread-safe.
    """

    def evaluate(self, expression: str, arg: Any = None) -> Any:  # pragma: no cover - interface only
        raise NotImplementedError

    def screenshot(self) -> bytes:  # pragma: no cover - interface only
        raise NotImplementedError

    def scroll_to(self, y: int) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    def wheel(self, delta_y: float) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    def move_cursor(self, x: float, y: float) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    def wait(self, ms: float) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    def reload(self) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    # Page actions --------------------------------------------------------

    def goto(self, url: str) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    def click(self, selector: str) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    def hover(self, selector: str) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    def type_text(self, selector: str, text: str) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    def wait_for_selector(self, selector: str, timeout_ms: float) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    # Convenience ---------------------------------------------------------

    def content_height(self) -> int:
        return int(self.evaluate(CONTENT_HEIGHT_SCRIPT) or 0)


class PlaywrightSurface(RenderSurface):
    """RenderSurface over a Playwright sync ``Page``."""

    def __init__(self, page, navigation_timeout_ms: float = 30_000):
        self.page = page
        self.navigation_timeout_ms = navigation_timeout_ms

    @property
    def viewport(self) -> Dict[str, int]:
        return self.page.viewport_size or {"width": 0, "height": 0}

    def evaluate(self, expression: str, arg: Any = None) -> Any:
        if arg is None:
            return self.page.evaluate(expression)
        return self.page.evaluate(expression, arg)

    def screenshot(self) -> bytes:
        return self.page.screenshot(type="png", full_page=False)

    def scroll_to(self, y: int) -> None:
        self.page.evaluate(SCROLL_TO_SCRIPT, y)

    def wheel(self, delta_y: float) -> None:
        self.page.mouse.wheel(0, delta_y)

    def move_cursor(self, x: float, y: float) -> None:
        self.page.mouse.move(x, y)

    def wait(self, ms: float) -> None:
        self.page.wait_for_timeout(ms)

    def reload(self) -> None:
        self.page.reload(wait_until="networkidle", timeout=self.navigation_timeout_ms)

    def goto(self, url: str) -> None:
        self.page.goto(url, wait_until="networkidle", timeout=self.navigation_timeout_ms)

    def click(self, selector: str) -> None:
        self.page.click(selector)

    def hover(self, selector: str) -> None:
        self.page.hover(selector)

    def type_text(self, selector: str, text: str) -> None:
        self.page.type(selector, text)

    def wait_for_selector(self, selector: str, timeout_ms: float) -> None:
        self.page.wait_for_selector(selector, timeout=timeout_ms)
