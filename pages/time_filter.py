"""
Departure-time filter as an explicit state machine.

    CLOSED -> OPENING -> OPEN -> VALUE_SET -> APPLIED -> CONFIRMED
                 ^  |      |                     |
                 +--+------+---------------------+-> VERIFICATION_FAILED

Opening is retried with a different trigger method each time (plain click,
script click, coordinate click). The value is set by the first applicable
strategy (preset option, range slider, paired time inputs). After applying,
a sample of result cards is checked against the requested window.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from utils.action_executor import ActionError, Click, CoordinateClick, ScriptClick, SetValue, Type
from utils.context import TestContext
from utils.driver import By, ElementHandle
from utils.selector_helper import ElementNotFoundError, Target
from utils.time_extractor import ValidationReport, to_minutes
from utils.wait_helper import WaitCondition, WaitTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE = 5
DEFAULT_THRESHOLD = 0.7
DEFAULT_OPEN_TIMEOUT = 3000  # milliseconds
MAX_OPEN_ATTEMPTS = 3
MAX_VERIFICATION_RETRIES = 1

# the slider's "max" attribute when the page does not set one (minutes per day)
SLIDER_DEFAULT_MAX = 1440


class FilterState(Enum):
    CLOSED = "closed"
    OPENING = "opening"
    OPEN = "open"
    VALUE_SET = "value_set"
    APPLIED = "applied"
    VERIFICATION_FAILED = "verification_failed"
    CONFIRMED = "confirmed"


class TriggerMethod(Enum):
    CLICK = "click"
    SCRIPT_CLICK = "script_click"
    COORDINATE_CLICK = "coordinate_click"

    def action(self):
        return {
            TriggerMethod.CLICK: Click(),
            TriggerMethod.SCRIPT_CLICK: ScriptClick(),
            TriggerMethod.COORDINATE_CLICK: CoordinateClick(),
        }[self]


TRIGGER_ORDER = (TriggerMethod.CLICK, TriggerMethod.SCRIPT_CLICK, TriggerMethod.COORDINATE_CLICK)

ALLOWED_TRANSITIONS: Dict[FilterState, Tuple[FilterState, ...]] = {
    FilterState.CLOSED: (FilterState.OPENING,),
    FilterState.OPENING: (FilterState.OPENING, FilterState.OPEN),
    FilterState.OPEN: (FilterState.VALUE_SET, FilterState.OPENING),
    FilterState.VALUE_SET: (FilterState.APPLIED,),
    FilterState.APPLIED: (FilterState.CONFIRMED, FilterState.VERIFICATION_FAILED),
    FilterState.VERIFICATION_FAILED: (FilterState.OPENING,),
    FilterState.CONFIRMED: (),
}


class IllegalTransitionError(RuntimeError):
    def __init__(self, current: FilterState, requested: FilterState):
        super().__init__(f"Illegal filter transition {current.name} -> {requested.name}")
        self.current = current
        self.requested = requested


class FilterApplicationError(Exception):
    """All open attempts or the verification retry were used up."""

    def __init__(self, message: str, attempts: int, last_state: FilterState,
                 trigger_methods: Sequence[TriggerMethod] = ()):
        super().__init__(f"{message} (attempts={attempts}, last_state={last_state.name})")
        self.attempts = attempts
        self.last_state = last_state
        self.trigger_methods = list(trigger_methods)


@dataclass(frozen=True)
class TimeRange:
    start: str
    end: str

    def __post_init__(self):
        if to_minutes(self.start) > to_minutes(self.end):
            raise ValueError(f"Invalid time window: {self.start} is after {self.end}")

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


def slider_position(value: str, max_value: int = SLIDER_DEFAULT_MAX) -> int:
    """Map ``HH:MM`` onto a 0..max_value slider, rounding to the nearest step."""
    return (to_minutes(value) * max_value + SLIDER_DEFAULT_MAX // 2) // SLIDER_DEFAULT_MAX


def slider_max(raw: Optional[str]) -> int:
    """The slider's ``max`` attribute as a step count; missing or unusable values mean minutes."""
    try:
        max_value = int(float(raw))
    except (TypeError, ValueError, OverflowError):
        return SLIDER_DEFAULT_MAX
    return max_value if max_value > 0 else SLIDER_DEFAULT_MAX


# ---- Value strategies ----
class PresetOptionStrategy:
    """Click a named preset, only when the requested window equals the preset's exactly."""
    name = "preset"

    def __init__(self, presets: Mapping[Tuple[str, str], Target]):
        self.presets = dict(presets)

    def apply(self, ctx: TestContext, window: TimeRange) -> bool:
        target = self.presets.get((window.start, window.end))
        if target is None:
            return False
        ctx.executor.perform(Click(), ctx.resolver.resolve(target))
        return True


class RangeSliderStrategy:
    """Drive a two-handle range slider by setting each handle's value via script."""
    name = "range_slider"

    def __init__(self, target: Target):
        self.target = target

    def apply(self, ctx: TestContext, window: TimeRange) -> bool:
        handles = ctx.resolver.resolve_all(self.target)
        if len(handles) < 2:
            logger.debug("Range slider has %d handle(s), need 2", len(handles))
            return False

        max_value = slider_max(handles[0].element.get_attribute("max"))
        for handle, value in ((handles[0], window.start), (handles[1], window.end)):
            position = slider_position(value, max_value)
            ctx.executor.perform(SetValue(str(position)), handle)
            logger.debug("Slider handle set to %s (%d/%d)", value, position, max_value)
        return True


class TimeInputsStrategy:
    """Type into from/to inputs, then press apply when the panel has one."""
    name = "time_inputs"

    def __init__(self, from_target: Target, to_target: Target, apply_target: Optional[Target] = None):
        self.from_target = from_target
        self.to_target = to_target
        self.apply_target = apply_target

    def apply(self, ctx: TestContext, window: TimeRange) -> bool:
        ctx.executor.perform(Type(window.start), ctx.resolver.resolve(self.from_target))
        ctx.executor.perform(Type(window.end), ctx.resolver.resolve(self.to_target))
        if self.apply_target is not None:
            button = ctx.resolver.probe(self.apply_target)
            if button is not None:
                ctx.executor.perform(Click(), button)
        return True


@dataclass
class FilterOutcome:
    state: FilterState
    attempts: int
    trigger_methods: List[TriggerMethod] = field(default_factory=list)
    strategy: Optional[str] = None
    report: Optional[ValidationReport] = None

    @property
    def confirmed(self) -> bool:
        return self.state is FilterState.CONFIRMED


def _card_text(element: ElementHandle) -> str:
    return element.text()


class TimeFilterStateMachine:
    """
    One instance per filter application; ``apply`` runs the whole flow and
    either returns a CONFIRMED outcome or raises FilterApplicationError.
    """

    def __init__(
        self,
        ctx: TestContext,
        *,
        trigger: Target,
        panel_controls: Target,
        strategies: Sequence,
        result_item: Target,
        expand_icon: Optional[Target] = None,
        expanded_markers: Sequence[str] = ("expanded",),
        result_predicate: Optional[Callable[[ElementHandle], bool]] = None,
        item_text: Callable[[ElementHandle], str] = _card_text,
        loading_css: Optional[str] = None,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
        threshold: float = DEFAULT_THRESHOLD,
        max_attempts: int = MAX_OPEN_ATTEMPTS,
        max_verification_retries: int = MAX_VERIFICATION_RETRIES,
        open_timeout_ms: int = DEFAULT_OPEN_TIMEOUT,
    ):
        if not 1 <= max_attempts <= len(TRIGGER_ORDER):
            raise ValueError(f"max_attempts must be 1..{len(TRIGGER_ORDER)}, got {max_attempts}")
        if not 0 < threshold <= 1:
            raise ValueError(f"threshold must be in (0, 1], got {threshold}")
        if sample_size < 1:
            raise ValueError(f"sample_size must be >= 1, got {sample_size}")
        if not strategies:
            raise ValueError("At least one value strategy is required")

        self.ctx = ctx
        self.trigger = trigger
        self.panel_controls = panel_controls
        self.strategies = list(strategies)
        self.result_item = result_item
        self.expand_icon = expand_icon
        self.expanded_markers = tuple(expanded_markers)
        self.result_predicate = result_predicate
        self.item_text = item_text
        self.loading_css = loading_css
        self.sample_size = sample_size
        self.threshold = threshold
        self.max_attempts = max_attempts
        self.max_verification_retries = max_verification_retries
        self.open_timeout_ms = open_timeout_ms

        self._state = FilterState.CLOSED
        self.history: List[Tuple[FilterState, FilterState]] = []
        self._last_error: Optional[BaseException] = None

    @property
    def state(self) -> FilterState:
        return self._state

    def _transition(self, new_state: FilterState) -> None:
        if new_state not in ALLOWED_TRANSITIONS[self._state]:
            raise IllegalTransitionError(self._state, new_state)
        logger.debug("Time filter: %s -> %s", self._state.name, new_state.name)
        self.history.append((self._state, new_state))
        self._state = new_state

    # ---- Flow ----
    def apply(self, start: str, end: str) -> FilterOutcome:
        window = TimeRange(start, end)
        if self._state is not FilterState.CLOSED:
            raise IllegalTransitionError(self._state, FilterState.OPENING)

        self.ctx.reporter.log_info(f"Applying departure time filter {window}")
        used: List[TriggerMethod] = []
        verification_retries = 0
        strategy_name: Optional[str] = None
        report: Optional[ValidationReport] = None

        for method in TRIGGER_ORDER[:self.max_attempts]:
            used.append(method)
            self._transition(FilterState.OPENING)
            if not self._open(method):
                continue
            self._transition(FilterState.OPEN)

            strategy_name = self._set_value(window)
            if strategy_name is None:
                continue
            self._transition(FilterState.VALUE_SET)
            self._transition(FilterState.APPLIED)
            self._wait_for_results()

            report = self.verify(window)
            if report.meets_threshold(self.threshold):
                self._transition(FilterState.CONFIRMED)
                self.ctx.reporter.log_pass(
                    f"Departure time filter {window} confirmed via {strategy_name} ({report.summary()})"
                )
                return FilterOutcome(self._state, len(used), used, strategy_name, report)

            self._transition(FilterState.VERIFICATION_FAILED)
            self._report_verification_failure(window, report)
            if verification_retries >= self.max_verification_retries:
                break
            verification_retries += 1

        message = f"Could not apply departure time filter {window}"
        if report is not None:
            message += f"; last verification: {report.summary()}"
        logger.error(message)
        raise FilterApplicationError(message, len(used), self._state, used) from self._last_error

    def _open(self, method: TriggerMethod) -> bool:
        if self.is_open():
            logger.debug("Filter panel already open, %s not needed", method.value)
            return True
        try:
            resolved = self.ctx.resolver.resolve(self.trigger)
            self.ctx.executor.perform(method.action(), resolved)
        except (ElementNotFoundError, ActionError) as e:
            self._last_error = e
            logger.warning("Opening filter via %s failed: %s", method.value, e)
            return False

        try:
            self.ctx.resolver.wait(WaitCondition(
                f"time filter panel open after {method.value}",
                self.is_open,
                timeout_ms=self.open_timeout_ms,
                poll_interval_ms=min(self.ctx.resolver.poll_interval_ms, max(1, self.open_timeout_ms // 2)),
            ))
        except WaitTimeoutError as e:
            self._last_error = e
            logger.warning("Filter panel did not open via %s", method.value)
            return False
        logger.info("Filter panel opened via %s", method.value)
        return True

    def is_open(self) -> bool:
        """Expanded-icon class first, then visible panel controls as a second signal."""
        if self.expand_icon is not None:
            icon = self.ctx.resolver.probe(self.expand_icon)
            if icon is not None:
                classes = icon.element.get_attribute("class") or ""
                if any(marker in classes for marker in self.expanded_markers):
                    return True
        return self.ctx.resolver.probe(self.panel_controls) is not None

    def _set_value(self, window: TimeRange) -> Optional[str]:
        for strategy in self.strategies:
            try:
                if strategy.apply(self.ctx, window):
                    logger.info("Time window %s set via %s", window, strategy.name)
                    return strategy.name
            except (ElementNotFoundError, ActionError) as e:
                self._last_error = e
                logger.warning("Value strategy %s failed: %s", strategy.name, e)
                continue
            logger.debug("Value strategy %s not applicable to %s", strategy.name, window)
        self.ctx.reporter.log_info(f"No value strategy could set {window}")
        return None

    def _wait_for_results(self) -> None:
        if not self.loading_css:
            return
        try:
            self.ctx.waits.absent(By.CSS, self.loading_css)
        except WaitTimeoutError:
            logger.warning("Loading indicator still visible after applying filter")

    # ---- Verification ----
    def verify(self, window: TimeRange) -> ValidationReport:
        """
        Re-resolve result cards and check the first ``sample_size`` departure
        times. Cards without a readable time count against the ratio.
        """
        report = ValidationReport(window.start, window.end)
        try:
            items = self.ctx.resolver.resolve_all(self.result_item, predicate=self.result_predicate)
        except ElementNotFoundError as e:
            self._last_error = e
            logger.warning("No result cards to verify: %s", e)
            return report

        for item in items[:self.sample_size]:
            report.add(self.item_text(item.element))
        logger.info("Filter verification: %s", report.summary())
        return report

    def _report_verification_failure(self, window: TimeRange, report: ValidationReport) -> None:
        message = (
            f"Departure time filter {window} not reflected in results: "
            f"{report.summary()} (threshold {self.threshold:.0%})"
        )
        logger.warning(message)
        self.ctx.reporter.log_fail(message)
        try:
            path = self.ctx.screenshots.capture("time_filter_verification_failed")
        except Exception:
            logger.warning("Could not capture verification screenshot", exc_info=True)
            return
        self.ctx.reporter.attach_screenshot(path, "time_filter_verification_failed")
