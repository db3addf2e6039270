"""
Perform UI actions on resolved elements with a pre-check and failure
diagnostics (screenshot + report entry) before re-raising as ActionError.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from utils.driver import Driver, ElementHandle
from utils.report_helper import ReportSink
from utils.screenshot_helper import ScreenshotHelper
from utils.selector_helper import ResolvedElement

logger = logging.getLogger(__name__)


class ActionError(Exception):
    """An action failed on an already-resolved element; ``__cause__`` holds the driver error."""

    def __init__(self, action: str, target_name: str, strategy_index: int, screenshot: Optional[str] = None,
                 cause: Optional[BaseException] = None):
        super().__init__(
            f"{action} on '{target_name}' (strategy #{strategy_index}) failed: {cause}"
        )
        self.action = action
        self.target_name = target_name
        self.strategy_index = strategy_index
        self.screenshot = screenshot


class StaleElementError(Exception):
    """The element is no longer visible/enabled when the action is about to run."""
    pass


# ---- Actions ----
@dataclass(frozen=True)
class Click:
    name: str = "click"

    def apply(self, driver: Driver, element: ElementHandle) -> None:
        element.click()


@dataclass(frozen=True)
class ScriptClick:
    """Dispatches a DOM click through JS; bypasses overlays intercepting pointer events."""
    name: str = "script_click"

    def apply(self, driver: Driver, element: ElementHandle) -> None:
        driver.execute_script("([el]) => el.click()", element)


@dataclass(frozen=True)
class CoordinateClick:
    """Mouse click at the centre of the element's bounding box."""
    name: str = "coordinate_click"

    def apply(self, driver: Driver, element: ElementHandle) -> None:
        driver.click_at(element)


@dataclass(frozen=True)
class Type:
    text: str
    clear: bool = True
    name: str = "type"

    def apply(self, driver: Driver, element: ElementHandle) -> None:
        if self.clear:
            element.clear()
        element.send_keys(self.text)


@dataclass(frozen=True)
class Select:
    option: str
    name: str = "select"

    def apply(self, driver: Driver, element: ElementHandle) -> None:
        element.select_option(self.option)


@dataclass(frozen=True)
class ScrollIntoView:
    name: str = "scroll_into_view"

    def apply(self, driver: Driver, element: ElementHandle) -> None:
        driver.execute_script("([el]) => el.scrollIntoView({block: 'center', inline: 'nearest'})", element)


# sets the value through the native setter so React-style listeners see it
SET_INPUT_VALUE_JS = """([el, value]) => {
    const setter = Object.getOwnPropertyDescriptor(HTMLInputElement.prototype, 'value').set;
    setter.call(el, value);
    el.dispatchEvent(new Event('input', { bubbles: true }));
    el.dispatchEvent(new Event('change', { bubbles: true }));
    return el.value;
}"""


@dataclass(frozen=True)
class SetValue:
    """Script-driven value change for inputs that ignore typing (range sliders)."""
    value: str
    name: str = "set_value"

    def apply(self, driver: Driver, element: ElementHandle) -> None:
        driver.execute_script(SET_INPUT_VALUE_JS, element, self.value)


AnyAction = Union[Click, ScriptClick, CoordinateClick, Type, Select, ScrollIntoView, SetValue]


class ActionExecutor:
    def __init__(self, driver: Driver, reporter: ReportSink, screenshots: ScreenshotHelper):
        self.driver = driver
        self.reporter = reporter
        self.screenshots = screenshots

    def perform(self, action: AnyAction, resolved: ResolvedElement) -> None:
        """
        Re-check, act, and on any failure capture diagnostics and raise ActionError.
        """
        target = resolved.target.name
        try:
            self._precheck(action, resolved.element)
            action.apply(self.driver, resolved.element)
        except Exception as exc:
            screenshot = self._diagnose(action, resolved, exc)
            raise ActionError(action.name, target, resolved.strategy_index, screenshot, exc) from exc

        logger.debug("%s on '%s' ok (strategy #%d, via %s)", action.name, target,
                     resolved.strategy_index, resolved.via)

    @staticmethod
    def _precheck(action: AnyAction, element: ElementHandle) -> None:
        # scrolling does not need an interactable element
        if isinstance(action, ScrollIntoView):
            return
        if not element.is_displayed():
            raise StaleElementError("element is no longer visible")
        if not element.is_enabled():
            raise StaleElementError("element is disabled")

    def _diagnose(self, action: AnyAction, resolved: ResolvedElement, exc: BaseException) -> Optional[str]:
        label = f"{action.name}_failed_{resolved.target.name}"
        message = (
            f"{action.name} failed on '{resolved.target.name}' "
            f"(strategy #{resolved.strategy_index}, via {resolved.via}): {type(exc).__name__}: {exc}"
        )
        logger.error(message)
        self.reporter.log_fail(message)

        try:
            path = self.screenshots.capture(label)
        except Exception:
            # the original failure is what gets raised
            logger.warning("Could not capture screenshot for %s", label, exc_info=True)
            return None
        self.reporter.attach_screenshot(path, label)
        return str(path)
