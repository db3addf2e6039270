from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

import allure

from config import settings
from config.locators_i18n import get_text as i18n_get_text
from utils.driver import By, Driver, ElementHandle
from utils.wait_helper import WaitCondition, WaitTimeoutError, wait_until

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_STRATEGY_TIMEOUT = 3000  # milliseconds
DEFAULT_POLL_INTERVAL = 500  # milliseconds

# elements inspected by the last-resort keyword scan
KEYWORD_SCAN_CSS = "button, a, [role='button'], label, p, span, li, h1, h2, h3, h4, div[class*='card']"
KEYWORD_SCAN_LIMIT = 400


# ---- Exceptions ----
class SelectorError(Exception):
    """Base selector-related error."""
    pass


class ElementNotFoundError(SelectorError):
    """Raised when every locator strategy of a target (and the keyword scan) failed."""

    def __init__(self, target_name: str, attempts: List[str], elapsed_ms: float = 0.0):
        super().__init__(
            f"Element '{target_name}' not found after {len(attempts)} strategies "
            f"({elapsed_ms:.0f}ms): {attempts}"
        )
        self.target_name = target_name
        self.attempts = attempts
        self.elapsed_ms = elapsed_ms


# ---- Locator strategies ----
@dataclass(frozen=True)
class LocatorStrategy:
    kind: str
    value: str = ""
    # i18n key; resolved against settings.locale when value is empty
    text_key: Optional[str] = None

    def __post_init__(self):
        if self.kind not in By.ALL:
            raise ValueError(f"Unknown selector kind: {self.kind}")
        if not self.value and not self.text_key:
            raise ValueError("LocatorStrategy needs a value or a text_key")

    def describe(self) -> str:
        if self.text_key and not self.value:
            return f"{self.kind}(key={self.text_key})"
        value = self.value if len(self.value) <= 120 else self.value[:117] + "..."
        return f"{self.kind}={value}"


def by_test_id(value: str) -> LocatorStrategy:
    return LocatorStrategy(By.TEST_ID, value)


def by_css(value: str) -> LocatorStrategy:
    return LocatorStrategy(By.CSS, value)


def by_xpath(value: str) -> LocatorStrategy:
    return LocatorStrategy(By.XPATH, value)


def by_text(value: str = "", text_key: Optional[str] = None) -> LocatorStrategy:
    return LocatorStrategy(By.TEXT, value, text_key)


def by_script(value: str) -> LocatorStrategy:
    return LocatorStrategy(By.SCRIPT, value)


@dataclass(frozen=True)
class Target:
    """A named page element and the ordered ways to find it (most specific first)."""
    name: str
    strategies: Tuple[LocatorStrategy, ...]
    keywords: Tuple[str, ...] = ()
    description: Optional[str] = None

    def __post_init__(self):
        if not self.strategies:
            raise ValueError(f"Target '{self.name}' has no locator strategies")

    def formatted(self, **kwargs) -> "Target":
        """
        Replace templated placeholders in strategy values and return a new Target.
        """

        def fmt(s: str) -> str:
            if not s or "{" not in s:
                return s
            try:
                return s.format(**kwargs)
            except (KeyError, ValueError) as e:
                logger.warning(f"Target formatting failed for '{s}': {e}")
                return s

        return replace(self, strategies=tuple(replace(s, value=fmt(s.value)) for s in self.strategies))


@dataclass(frozen=True)
class ResolvedElement:
    """
    A live element plus how it was found.
    - strategy_index: position of the winning strategy, -1 for the keyword scan
    Never cache one across steps: the node may go stale.
    """
    element: ElementHandle
    target: Target
    strategy_index: int
    strategy: Optional[LocatorStrategy] = None
    elapsed_ms: float = 0.0
    attempts: List[str] = field(default_factory=list)

    @property
    def via(self) -> str:
        return self.strategy.describe() if self.strategy else "keyword_scan"


# ---- Internal helpers ----
def _localize(strategy: LocatorStrategy, locale: str) -> LocatorStrategy:
    """Fill a text strategy's value from the i18n table."""
    if strategy.text_key and not strategy.value:
        localized = i18n_get_text(strategy.text_key, locale)
        if localized:
            return replace(strategy, value=localized)
    return strategy


def _attach_to_allure(name: str, payload: Any, kind: str = "application/json"):
    """Attach structured info to Allure; attach errors are only debug-logged."""
    try:
        if kind == "application/json":
            content = json.dumps(payload, ensure_ascii=False, indent=2, default=str)
            allure.attach(content, name=name, attachment_type=allure.attachment_type.JSON)
        else:
            allure.attach(str(payload), name=name, attachment_type=allure.attachment_type.TEXT)
    except Exception:
        logger.debug("Allure attach failed for %s", name, exc_info=True)


def _record_attempts(target: Target, attempts: List[str], outcome: str, elapsed_ms: float):
    """Log and attach the attempts for debugging."""
    info = {
        "target": target.name,
        "attempts": attempts,
        "outcome": outcome,
        "elapsed_ms": round(elapsed_ms, 1),
        "locale": getattr(settings, "locale", None),
    }
    logger.debug("Resolve attempts: %s", json.dumps(info, ensure_ascii=False))
    if outcome == "not_found":
        _attach_to_allure(f"resolve_failed_{target.name}", info)


def casefold_tr(text: str) -> str:
    # Turkish dotted/dotless I before casefold
    return text.replace("İ", "i").replace("I", "ı").casefold()


# ---- Public API ----
class LocatorResolver:
    """
    Resolve a Target to a visible element by trying its strategies in order.

    Each strategy gets a short bounded wait; the first visible match wins and
    later strategies are never queried. When all fail, a keyword scan over
    common text elements runs before ElementNotFoundError is raised.
    """

    def __init__(
        self,
        driver: Driver,
        strategy_timeout_ms: int = DEFAULT_STRATEGY_TIMEOUT,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL,
        locale: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Any] = time.sleep,
    ):
        self.driver = driver
        self.strategy_timeout_ms = strategy_timeout_ms
        self.poll_interval_ms = poll_interval_ms
        self.locale = locale or getattr(settings, "locale", "tr")
        self._clock = clock
        self._sleep = sleep

    def _visible_matches(self, strategy: LocatorStrategy,
                         predicate: Optional[Callable[[ElementHandle], bool]] = None) -> List[ElementHandle]:
        matches = []
        for element in self.driver.find_elements(strategy.kind, strategy.value):
            if element.is_displayed() and (predicate is None or predicate(element)):
                matches.append(element)
        return matches

    def _first_visible(self, strategy: LocatorStrategy) -> Optional[ElementHandle]:
        for element in self.driver.find_elements(strategy.kind, strategy.value):
            if element.is_displayed():
                return element
        return None

    def resolve(self, target: Target, timeout_ms: Optional[int] = None) -> ResolvedElement:
        """
        Returns the first visible match, or raises ElementNotFoundError with the
        target name and every strategy attempted.
        """
        timeout_ms = timeout_ms or self.strategy_timeout_ms
        start = self._clock()
        attempts: List[str] = []

        for index, raw in enumerate(target.strategies):
            strategy = _localize(raw, self.locale)
            attempts.append(strategy.describe())
            if not strategy.value:
                logger.debug("[%s] strategy #%d skipped: no text for locale %s", target.name, index, self.locale)
                continue

            condition = WaitCondition(
                f"{target.name} via {strategy.describe()}",
                lambda s=strategy: self._first_visible(s),
                timeout_ms=timeout_ms,
                poll_interval_ms=min(self.poll_interval_ms, max(1, timeout_ms // 2)),
            )
            try:
                element = wait_until(condition, clock=self._clock, sleep=self._sleep)
            except WaitTimeoutError as e:
                logger.debug("[%s] strategy #%d missed after %.0fms: %s",
                             target.name, index, e.elapsed_ms, strategy.describe())
                continue

            elapsed_ms = (self._clock() - start) * 1000
            logger.debug("[%s] resolved by strategy #%d %s (%.0fms)",
                         target.name, index, strategy.describe(), elapsed_ms)
            _record_attempts(target, attempts, f"strategy_{index}", elapsed_ms)
            return ResolvedElement(element, target, index, strategy, elapsed_ms, attempts)

        element = self._keyword_scan(target)
        elapsed_ms = (self._clock() - start) * 1000
        if target.keywords:
            attempts.append(f"keyword_scan={list(target.keywords)}")
        if element is not None:
            logger.info("[%s] resolved by keyword scan after %d failed strategies", target.name, len(target.strategies))
            _record_attempts(target, attempts, "keyword_scan", elapsed_ms)
            return ResolvedElement(element, target, -1, None, elapsed_ms, attempts)

        _record_attempts(target, attempts, "not_found", elapsed_ms)
        logger.warning("[%s] not found after %d attempts (%.0fms)", target.name, len(attempts), elapsed_ms)
        raise ElementNotFoundError(target.name, attempts, elapsed_ms)

    def _keyword_scan(self, target: Target) -> Optional[ElementHandle]:
        if not target.keywords:
            return None
        keywords = [casefold_tr(k) for k in target.keywords]
        candidates = self.driver.find_elements(By.CSS, KEYWORD_SCAN_CSS)[:KEYWORD_SCAN_LIMIT]
        for element in candidates:
            text = casefold_tr(element.text() or "")
            if text and any(k in text for k in keywords) and element.is_displayed():
                return element
        return None

    def probe(self, target: Target) -> Optional[ResolvedElement]:
        """
        One non-waiting pass over the strategies; ``None`` when nothing is visible.
        For state checks only, never as a stand-in for resolve() before acting.
        """
        for index, raw in enumerate(target.strategies):
            strategy = _localize(raw, self.locale)
            if not strategy.value:
                continue
            element = self._first_visible(strategy)
            if element is not None:
                return ResolvedElement(element, target, index, strategy)
        return None

    def find_within(self, parent: ElementHandle, target: Target) -> Optional[ResolvedElement]:
        """
        One non-waiting pass like the page-level lookup, scoped to ``parent``
        (a price or button inside a result card). Script strategies are skipped.
        """
        for index, raw in enumerate(target.strategies):
            strategy = _localize(raw, self.locale)
            if not strategy.value or strategy.kind == By.SCRIPT:
                continue
            for element in parent.find_elements(strategy.kind, strategy.value):
                if element.is_displayed():
                    return ResolvedElement(element, target, index, strategy)
        return None

    def resolve_all(
        self,
        target: Target,
        predicate: Optional[Callable[[ElementHandle], bool]] = None,
        timeout_ms: Optional[int] = None,
    ) -> List[ResolvedElement]:
        """
        All visible matches of the first strategy that yields at least one
        element accepted by ``predicate``.
        """
        timeout_ms = timeout_ms or self.strategy_timeout_ms
        start = self._clock()
        attempts: List[str] = []

        for index, raw in enumerate(target.strategies):
            strategy = _localize(raw, self.locale)
            attempts.append(strategy.describe())
            if not strategy.value:
                continue
            condition = WaitCondition(
                f"{target.name} (all) via {strategy.describe()}",
                lambda s=strategy: self._visible_matches(s, predicate),
                timeout_ms=timeout_ms,
                poll_interval_ms=min(self.poll_interval_ms, max(1, timeout_ms // 2)),
            )
            try:
                elements = wait_until(condition, clock=self._clock, sleep=self._sleep)
            except WaitTimeoutError:
                logger.debug("[%s] strategy #%d matched nothing: %s", target.name, index, strategy.describe())
                continue
            elapsed_ms = (self._clock() - start) * 1000
            logger.debug("[%s] %d element(s) via strategy #%d", target.name, len(elements), index)
            return [ResolvedElement(e, target, index, strategy, elapsed_ms, attempts) for e in elements]

        elapsed_ms = (self._clock() - start) * 1000
        _record_attempts(target, attempts, "not_found", elapsed_ms)
        raise ElementNotFoundError(target.name, attempts, elapsed_ms)

    def exists(self, target: Target) -> bool:
        return self.probe(target) is not None

    def wait(self, condition: WaitCondition[T]) -> T:
        """Run a wait on this resolver's clock (lets callers share injected time in tests)."""
        return wait_until(condition, clock=self._clock, sleep=self._sleep)


def summarize(resolved: ResolvedElement) -> Dict[str, Any]:
    """Diagnostic dict for logs and report attachments."""
    return {
        "target": resolved.target.name,
        "strategy_index": resolved.strategy_index,
        "via": resolved.via,
        "elapsed_ms": round(resolved.elapsed_ms, 1),
    }
