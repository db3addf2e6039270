"""
Explicit waits: poll a condition at a fixed interval until it holds or the
deadline passes.

Each probe returns the satisfied value or ``None``/falsy; only the boundary
(``wait_until``) raises, with a ``WaitTimeoutError``.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, Optional, Sequence, Tuple, TypeVar

from utils.driver import By, Driver, ElementHandle

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_POLL_INTERVAL = 500  # milliseconds
DEFAULT_WAIT_TIMEOUT = 10000  # milliseconds

LOADING_INDICATORS = (
    ".loading, .spinner, .loader, [class*='loading'], [class*='spinner'], "
    "[data-testid*='loading'], .skeleton"
)


class WaitTimeoutError(Exception):
    """Raised when a wait condition is not met within its timeout."""

    def __init__(self, description: str, elapsed_ms: float, timeout_ms: int):
        super().__init__(
            f"Timed out after {elapsed_ms:.0f}ms (timeout {timeout_ms}ms) waiting for: {description}"
        )
        self.description = description
        self.elapsed_ms = elapsed_ms
        self.timeout_ms = timeout_ms


@dataclass(frozen=True)
class WaitCondition(Generic[T]):
    description: str
    probe: Callable[[], Optional[T]]
    timeout_ms: int = DEFAULT_WAIT_TIMEOUT
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL

    def __post_init__(self):
        if self.timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be > 0, got {self.timeout_ms}")
        if not 0 < self.poll_interval_ms < self.timeout_ms:
            raise ValueError(
                f"poll_interval_ms must be in (0, timeout_ms), got {self.poll_interval_ms}/{self.timeout_ms}"
            )

    def with_timeout(self, timeout_ms: int, poll_interval_ms: Optional[int] = None) -> "WaitCondition[T]":
        return WaitCondition(self.description, self.probe, timeout_ms,
                             poll_interval_ms if poll_interval_ms is not None else self.poll_interval_ms)


def wait_until(
    condition: WaitCondition[T],
    *,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Any] = time.sleep,
) -> T:
    """
    Poll ``condition.probe`` until it returns a truthy value.

    Never sleeps past the deadline, so the call returns (or raises) within
    timeout + poll interval.
    """
    start = clock()
    deadline = start + condition.timeout_ms / 1000.0
    interval = condition.poll_interval_ms / 1000.0
    polls = 0

    while True:
        polls += 1
        result = condition.probe()
        if result:
            logger.debug("Condition met after %d poll(s): %s", polls, condition.description)
            return result

        now = clock()
        if now >= deadline:
            elapsed_ms = (now - start) * 1000
            logger.debug("Condition timed out after %d poll(s): %s", polls, condition.description)
            raise WaitTimeoutError(condition.description, elapsed_ms, condition.timeout_ms)
        sleep(min(interval, deadline - now))


# ---- Probes (return Optional, never raise for "not yet") ----
def _first_visible(elements: Iterable[ElementHandle]) -> Optional[ElementHandle]:
    for element in elements:
        if element.is_displayed():
            return element
    return None


def _is_clickable(element: ElementHandle) -> bool:
    if not (element.is_displayed() and element.is_enabled()):
        return False
    if element.get_attribute("aria-disabled") == "true":
        return False
    return element.get_attribute("disabled") is None


def element_visible(driver: Driver, kind: str, value: str, **kwargs) -> WaitCondition[ElementHandle]:
    return WaitCondition(
        f"visibility of {kind}={value}",
        lambda: _first_visible(driver.find_elements(kind, value)),
        **kwargs,
    )


def element_clickable(driver: Driver, kind: str, value: str, **kwargs) -> WaitCondition[ElementHandle]:
    def probe() -> Optional[ElementHandle]:
        for element in driver.find_elements(kind, value):
            if _is_clickable(element):
                return element
        return None

    return WaitCondition(f"clickability of {kind}={value}", probe, **kwargs)


def element_present(driver: Driver, kind: str, value: str, **kwargs) -> WaitCondition[ElementHandle]:
    return WaitCondition(
        f"presence of {kind}={value}",
        lambda: driver.find_element(kind, value),
        **kwargs,
    )


def element_absent(driver: Driver, kind: str, value: str, **kwargs) -> WaitCondition[bool]:
    return WaitCondition(
        f"absence of {kind}={value}",
        lambda: _first_visible(driver.find_elements(kind, value)) is None,
        **kwargs,
    )


def text_contains(driver: Driver, kind: str, value: str, text: str, **kwargs) -> WaitCondition[ElementHandle]:
    def probe() -> Optional[ElementHandle]:
        for element in driver.find_elements(kind, value):
            if text in element.text():
                return element
        return None

    return WaitCondition(f"text '{text}' in {kind}={value}", probe, **kwargs)


def url_contains(driver: Driver, fragment: str, **kwargs) -> WaitCondition[str]:
    def probe() -> Optional[str]:
        url = driver.current_url()
        return url if fragment in url else None

    return WaitCondition(f"url containing '{fragment}'", probe, **kwargs)


def any_visible(driver: Driver, locators: Sequence[Tuple[str, str]], **kwargs) -> WaitCondition[ElementHandle]:
    def probe() -> Optional[ElementHandle]:
        for kind, value in locators:
            element = _first_visible(driver.find_elements(kind, value))
            if element is not None:
                return element
        return None

    described = ", ".join(f"{k}={v}" for k, v in locators)
    return WaitCondition(f"any visible of [{described}]", probe, **kwargs)


def page_ready(driver: Driver, loading_css: str = LOADING_INDICATORS, **kwargs) -> WaitCondition[bool]:
    def probe() -> bool:
        if driver.execute_script("() => document.readyState") != "complete":
            return False
        return _first_visible(driver.find_elements(By.CSS, loading_css)) is None

    return WaitCondition("document ready and no loading indicator", probe, **kwargs)


class WaitHelper:
    """Driver-bound facade over the condition factories."""

    def __init__(self, driver: Driver, timeout_ms: int = DEFAULT_WAIT_TIMEOUT,
                 poll_interval_ms: int = DEFAULT_POLL_INTERVAL,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], Any] = time.sleep):
        self.driver = driver
        self.timeout_ms = timeout_ms
        self.poll_interval_ms = poll_interval_ms
        self._clock = clock
        self._sleep = sleep

    def _wait(self, condition: WaitCondition[T]) -> T:
        return wait_until(condition, clock=self._clock, sleep=self._sleep)

    def _opts(self, timeout_ms: Optional[int]) -> dict:
        return {"timeout_ms": timeout_ms or self.timeout_ms, "poll_interval_ms": self.poll_interval_ms}

    def visible(self, kind: str, value: str, timeout_ms: Optional[int] = None) -> ElementHandle:
        return self._wait(element_visible(self.driver, kind, value, **self._opts(timeout_ms)))

    def clickable(self, kind: str, value: str, timeout_ms: Optional[int] = None) -> ElementHandle:
        return self._wait(element_clickable(self.driver, kind, value, **self._opts(timeout_ms)))

    def present(self, kind: str, value: str, timeout_ms: Optional[int] = None) -> ElementHandle:
        return self._wait(element_present(self.driver, kind, value, **self._opts(timeout_ms)))

    def absent(self, kind: str, value: str, timeout_ms: Optional[int] = None) -> bool:
        return self._wait(element_absent(self.driver, kind, value, **self._opts(timeout_ms)))

    def text(self, kind: str, value: str, text: str, timeout_ms: Optional[int] = None) -> ElementHandle:
        return self._wait(text_contains(self.driver, kind, value, text, **self._opts(timeout_ms)))

    def url(self, fragment: str, timeout_ms: Optional[int] = None) -> str:
        return self._wait(url_contains(self.driver, fragment, **self._opts(timeout_ms)))

    def any(self, locators: Sequence[Tuple[str, str]], timeout_ms: Optional[int] = None) -> ElementHandle:
        return self._wait(any_visible(self.driver, locators, **self._opts(timeout_ms)))

    def page_ready(self, timeout_ms: Optional[int] = None) -> bool:
        return self._wait(page_ready(self.driver, **self._opts(timeout_ms)))
