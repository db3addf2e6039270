"""
Browser driver capability set used by the resolver, executor and waits.

Everything above this module talks to ``Driver`` / ``ElementHandle``; the
Playwright adapter is the only place that knows about Playwright objects.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Optional, Protocol, Union, runtime_checkable

from playwright.sync_api import ElementHandle as PlaywrightElementHandle
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page

logger = logging.getLogger(__name__)


class By:
    """Selector kinds understood by every driver."""
    TEST_ID = "test_id"
    CSS = "css"
    XPATH = "xpath"
    TEXT = "text"
    SCRIPT = "script"

    ALL = (TEST_ID, CSS, XPATH, TEXT, SCRIPT)


@runtime_checkable
class ElementHandle(Protocol):
    def click(self) -> None: ...

    def send_keys(self, text: str) -> None: ...

    def clear(self) -> None: ...

    def text(self) -> str: ...

    def get_attribute(self, name: str) -> Optional[str]: ...

    def is_displayed(self) -> bool: ...

    def is_enabled(self) -> bool: ...

    def select_option(self, label: str) -> None: ...

    def find_elements(self, kind: str, value: str) -> List["ElementHandle"]: ...


@runtime_checkable
class Driver(Protocol):
    def find_elements(self, kind: str, value: str) -> List[ElementHandle]: ...

    def find_element(self, kind: str, value: str) -> Optional[ElementHandle]: ...

    def execute_script(self, script: str, *args: Any) -> Any: ...

    def click_at(self, element: ElementHandle) -> None: ...

    def current_url(self) -> str: ...

    def title(self) -> str: ...

    def page_source(self) -> str: ...

    def screenshot(self, path: Union[str, Path]) -> None: ...

    def goto(self, url: str, timeout_ms: Optional[int] = None) -> None: ...


def to_selector(kind: str, value: str) -> str:
    """Translate a (kind, value) pair into a Playwright selector string."""
    if kind == By.CSS:
        return value
    if kind == By.XPATH:
        return f"xpath={value}"
    if kind == By.TEST_ID:
        return f"[data-testid='{value}']"
    if kind == By.TEXT:
        return f"text={value}"
    raise ValueError(f"Unsupported selector kind for a query selector: {kind}")


def _unwrap(arg: Any) -> Any:
    return arg.handle if isinstance(arg, PlaywrightElement) else arg


class PlaywrightElement:
    """ElementHandle backed by a Playwright element handle."""

    def __init__(self, handle: PlaywrightElementHandle, action_timeout_ms: int = 5000):
        self.handle = handle
        self.action_timeout_ms = action_timeout_ms

    def __repr__(self) -> str:
        return f"PlaywrightElement({self.handle!r})"

    # ---- probing: detached or missing nodes answer "no" ----
    def is_displayed(self) -> bool:
        try:
            return self.handle.is_visible()
        except PlaywrightError:
            return False

    def is_enabled(self) -> bool:
        try:
            return self.handle.is_enabled()
        except PlaywrightError:
            return False

    def get_attribute(self, name: str) -> Optional[str]:
        try:
            return self.handle.get_attribute(name)
        except PlaywrightError:
            return None

    def text(self) -> str:
        try:
            return self.handle.inner_text()
        except PlaywrightError:
            return ""

    def find_elements(self, kind: str, value: str) -> List[PlaywrightElement]:
        try:
            handles = self.handle.query_selector_all(to_selector(kind, value))
        except PlaywrightError:
            logger.debug("Nested query failed: %s=%s", kind, value, exc_info=True)
            return []
        return [PlaywrightElement(h, self.action_timeout_ms) for h in handles]

    # ---- acting: errors propagate to the executor ----
    def click(self) -> None:
        self.handle.click(timeout=self.action_timeout_ms)

    def send_keys(self, text: str) -> None:
        self.handle.type(text, timeout=self.action_timeout_ms)

    def clear(self) -> None:
        self.handle.fill("", timeout=self.action_timeout_ms)

    def select_option(self, label: str) -> None:
        self.handle.select_option(label=label, timeout=self.action_timeout_ms)

    def scroll_into_view(self) -> None:
        self.handle.scroll_into_view_if_needed(timeout=self.action_timeout_ms)


class PlaywrightDriver:
    """Driver implementation over a Playwright ``Page``."""

    def __init__(self, page: Page, action_timeout_ms: int = 5000):
        self.page = page
        self.action_timeout_ms = action_timeout_ms

    def _wrap(self, handles) -> List[PlaywrightElement]:
        return [PlaywrightElement(h, self.action_timeout_ms) for h in handles]

    def find_elements(self, kind: str, value: str) -> List[PlaywrightElement]:
        if kind == By.SCRIPT:
            return self._find_by_script(value)
        try:
            return self._wrap(self.page.query_selector_all(to_selector(kind, value)))
        except PlaywrightError:
            # invalid selector or navigation in progress: nothing found this tick
            logger.debug("Query failed: %s=%s", kind, value, exc_info=True)
            return []

    def find_element(self, kind: str, value: str) -> Optional[PlaywrightElement]:
        found = self.find_elements(kind, value)
        return found[0] if found else None

    def _find_by_script(self, script: str) -> List[PlaywrightElement]:
        """
        Run a JS function returning an element, a list of elements or null.
        """
        try:
            result = self.page.evaluate_handle(script)
        except PlaywrightError:
            logger.debug("Script query failed", exc_info=True)
            return []
        element = result.as_element()
        if element is not None:
            return self._wrap([element])
        handles = []
        for prop in result.get_properties().values():
            item = prop.as_element()
            if item is not None:
                handles.append(item)
        result.dispose()
        return self._wrap(handles)

    def execute_script(self, script: str, *args: Any) -> Any:
        """
        Evaluate ``script`` (a JS function) with ``args`` passed as one array,
        e.g. ``"([el, value]) => { el.value = value; }"``.
        """
        return self.page.evaluate(script, [_unwrap(a) for a in args])

    def click_at(self, element: ElementHandle) -> None:
        box = _unwrap(element).bounding_box()
        if box is None:
            raise PlaywrightError("Element has no bounding box (not rendered)")
        self.page.mouse.click(box["x"] + box["width"] / 2, box["y"] + box["height"] / 2)

    def current_url(self) -> str:
        return self.page.url

    def title(self) -> str:
        return self.page.title()

    def page_source(self) -> str:
        return self.page.content()

    def screenshot(self, path: Union[str, Path]) -> None:
        self.page.screenshot(path=str(path), full_page=False)

    def goto(self, url: str, timeout_ms: Optional[int] = None) -> None:
        self.page.goto(url, timeout=timeout_ms, wait_until="domcontentloaded")
