"""
航班列表页页面对象

- 结果列表加载与读取
- 出发时间筛选（委托给 TimeFilterStateMachine）
- 结果校验（ValidationReport 作为返回值，不抛异常）
"""
from __future__ import annotations

from typing import List, Optional

from config import settings
from pages.base_page import BasePage
from pages.flight_list_selector import (
    EXPANDED_CLASS_MARKERS,
    FLIGHT_ROUTE_CSS,
    FLIGHT_TIME_CSS,
    apply_filter_button,
    clear_filters_button,
    departure_time_expand_icon,
    departure_time_panel_controls,
    departure_time_trigger,
    flight_item,
    flight_list,
    loading_indicator,
    noon_preset_button,
    range_slider,
    time_from_input,
    time_to_input,
)
from pages.time_filter import (
    FilterOutcome,
    PresetOptionStrategy,
    RangeSliderStrategy,
    TimeFilterStateMachine,
    TimeInputsStrategy,
)
from utils.action_executor import Click
from utils.driver import By, ElementHandle
from utils.logger import log_duration, log_step, logger
from utils.selector_helper import ElementNotFoundError, ResolvedElement
from utils.time_extractor import ValidationReport, extract_time, looks_like_flight_card
from utils.wait_helper import WaitTimeoutError

# 页面提供的快捷时间段：（开始, 结束） -> 按钮
NOON_PRESET = ("10:00", "17:00")


def _fold(text: str) -> str:
    # dotted/dotless i are interchangeable in URLs and titles (Istanbul / İstanbul / istanbul)
    return (text or "").replace("İ", "i").replace("I", "i").replace("ı", "i").casefold()


def _is_flight_card(element: ElementHandle) -> bool:
    return looks_like_flight_card(element.text())


class FlightListPage(BasePage):
    """航班搜索结果页"""

    PATH = "/ucak-bileti/"

    # ==================== 列表加载 ====================

    @log_step("等待航班列表加载")
    def wait_for_flight_list_to_load(self, timeout: Optional[int] = None) -> "FlightListPage":
        """
        等待加载指示器消失且结果列表可见

        Raises:
            ElementNotFoundError: 超时后结果列表仍不可见
        """
        timeout = timeout or settings.timeouts.page_load
        with log_duration("flight list load"):
            self._wait_for_refresh(timeout)
            self.find(flight_list, timeout)
        logger.info(f"Flight list loaded: {self.get_flight_count()} flights")
        return self

    def is_page_loaded(self) -> bool:
        return self.is_flight_list_displayed()

    def is_flight_list_displayed(self) -> bool:
        """结果列表可见，或至少有一个航班卡片"""
        return self.exists(flight_list) or self.exists(flight_item)

    # ==================== 航班读取 ====================

    def get_flight_items(self) -> List[ResolvedElement]:
        """
        获取航班卡片（过滤掉广告、横幅等非航班元素）

        Returns:
            List[ResolvedElement]: 没有结果时返回空列表
        """
        try:
            return self.ctx.resolver.resolve_all(flight_item, predicate=_is_flight_card)
        except ElementNotFoundError:
            logger.warning("No flight cards found on the result page")
            return []

    def get_flight_count(self) -> int:
        return len(self.get_flight_items())

    @staticmethod
    def _sub_text(element: ElementHandle, selectors) -> Optional[str]:
        for css in selectors:
            for child in element.find_elements(By.CSS, css):
                text = child.text().strip()
                if text:
                    return text
        return None

    def card_time_text(self, element: ElementHandle) -> str:
        """卡片内时间子元素的文本，没有时退回整张卡片文本"""
        sub = self._sub_text(element, FLIGHT_TIME_CSS)
        if sub and extract_time(sub):
            return sub
        return element.text()

    def extract_departure_time(self, item: ResolvedElement) -> Optional[str]:
        """提取单个航班的出发时间（HH:MM），无法识别时返回 None"""
        return extract_time(self.card_time_text(item.element))

    def get_departure_times(self) -> List[Optional[str]]:
        return [self.extract_departure_time(item) for item in self.get_flight_items()]

    # ==================== 出发时间筛选 ====================

    def time_filter(self) -> TimeFilterStateMachine:
        """按当前配置构建出发时间筛选状态机（每次筛选一个新实例）"""
        cfg = settings.filter
        return TimeFilterStateMachine(
            self.ctx,
            trigger=departure_time_trigger,
            expand_icon=departure_time_expand_icon,
            expanded_markers=EXPANDED_CLASS_MARKERS,
            panel_controls=departure_time_panel_controls,
            strategies=(
                PresetOptionStrategy({NOON_PRESET: noon_preset_button}),
                RangeSliderStrategy(range_slider),
                TimeInputsStrategy(time_from_input, time_to_input, apply_filter_button),
            ),
            result_item=flight_item,
            result_predicate=_is_flight_card,
            item_text=self.card_time_text,
            loading_css=loading_indicator,
            sample_size=cfg.sample_size,
            threshold=cfg.verification_threshold,
            max_attempts=cfg.max_attempts,
            open_timeout_ms=settings.timeouts.strategy_wait,
        )

    @log_step("应用出发时间筛选")
    def apply_departure_time_filter(self, start: Optional[str] = None, end: Optional[str] = None) -> FilterOutcome:
        """
        应用出发时间筛选

        Args:
            start: 开始时间 HH:MM（默认 settings.filter.start_time）
            end: 结束时间 HH:MM（默认 settings.filter.end_time）

        Raises:
            FilterApplicationError: 打开/设置/校验重试次数耗尽
        """
        start = start or settings.filter.start_time
        end = end or settings.filter.end_time
        outcome = self.time_filter().apply(start, end)
        logger.info(
            f"Departure filter {start}-{end} confirmed after {outcome.attempts} attempt(s) "
            f"via {outcome.strategy}"
        )
        return outcome

    # ==================== 结果校验 ====================

    @log_step("校验航班出发时间")
    def validate_all_flights_in_time_range(self, start: Optional[str] = None,
                                           end: Optional[str] = None) -> ValidationReport:
        """
        校验所有航班的出发时间都在 [start, end] 内

        Returns:
            ValidationReport: 校验结果（越界时记录失败并截图，不抛异常）
        """
        start = start or settings.filter.start_time
        end = end or settings.filter.end_time
        report = ValidationReport(start, end)
        for item in self.get_flight_items():
            report.add(self.card_time_text(item.element))

        if report.all_valid:
            self.ctx.reporter.log_pass(f"All departure times within range: {report.summary()}")
        else:
            self.ctx.reporter.log_fail(f"Departure times outside range: {report.summary()}")
            self.screenshot_on_failure("time_range_validation_failed")
        return report

    def validate_flight_route(self, origin: str, destination: str) -> bool:
        """
        校验航线：页面标题或 URL 同时包含出发地与目的地，否则检查首个航班卡片
        """
        origin_key, destination_key = _fold(origin), _fold(destination)

        def matches(text: str) -> bool:
            folded = _fold(text)
            return origin_key in folded and destination_key in folded

        route_ok = matches(self.title()) or matches(self.current_url())
        if not route_ok:
            items = self.get_flight_items()
            if items:
                first = items[0].element
                route_ok = matches(self._sub_text(first, FLIGHT_ROUTE_CSS) or first.text())

        if route_ok:
            self.ctx.reporter.log_pass(f"Flight route matches: {origin} -> {destination}")
        else:
            self.ctx.reporter.log_fail(
                f"Flight route does not match {origin} -> {destination} (title: '{self.title()}')"
            )
            self.screenshot_on_failure("route_validation_failed")
        return route_ok

    def clear_all_filters(self) -> "FlightListPage":
        """清除全部筛选（按钮不存在时只记录日志）"""
        resolved = self.ctx.resolver.probe(clear_filters_button)
        if resolved is None:
            logger.info("No clear-filters button visible, nothing to reset")
            return self
        self.ctx.executor.perform(Click(), resolved)
        self._wait_for_refresh()
        return self

    def _wait_for_refresh(self, timeout: Optional[int] = None) -> None:
        """等待加载指示器消失；超时只记录警告，随后照常读取结果"""
        try:
            self.wait_for_absent(By.CSS, loading_indicator, timeout)
        except WaitTimeoutError:
            logger.warning("Loading indicator still visible, reading results anyway")
