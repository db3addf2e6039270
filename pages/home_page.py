"""
enuygun 首页页面对象（机票搜索表单）
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from config import settings
from pages.base_page import BasePage
from pages.flight_list_page import FlightListPage
from pages.home_selector import (
    autocomplete_first,
    departure_date,
    destination_input,
    flight_tab,
    logo,
    one_way_radio,
    origin_input,
    return_date,
    round_trip_radio,
    search_button,
)
from utils.action_executor import Click
from utils.logger import log_step, logger
from utils.selector_helper import ElementNotFoundError, Target

# 自动补全候选出现的等待时间（毫秒）
AUTOCOMPLETE_TIMEOUT = 2000


def default_departure_date() -> str:
    """今天 + departure_offset_days，按 settings.search.date_format 格式化"""
    search = settings.search
    return (date.today() + timedelta(days=search.departure_offset_days)).strftime(search.date_format)


def default_return_date() -> str:
    """今天 + return_offset_days"""
    search = settings.search
    return (date.today() + timedelta(days=search.return_offset_days)).strftime(search.date_format)


class HomePage(BasePage):
    """enuygun 首页"""

    PATH = "/"

    # ===== 页面状态 =====

    def open(self) -> "HomePage":
        """打开首页并等待搜索表单就绪"""
        self.goto()
        self.wait_for_page_ready()
        return self

    def is_page_loaded(self) -> bool:
        """搜索按钮与出发地输入框均可见即视为加载完成"""
        return self.exists(search_button) and self.exists(origin_input)

    def is_logo_displayed(self) -> bool:
        return self.exists(logo)

    # ===== 表单操作 =====

    @log_step("选择机票标签页")
    def select_flight_tab(self) -> None:
        self.click(flight_tab)

    def select_one_way(self) -> None:
        """选择单程"""
        self.click(one_way_radio)

    def select_round_trip(self) -> None:
        """选择往返"""
        self.click(round_trip_radio)

    def _enter_city(self, target: Target, city: str) -> None:
        """
        输入城市并选择首个自动补全候选

        没有候选出现时保留已输入的文本（部分站点版本直接接受自由文本）
        """
        self.fill(target, city)
        try:
            suggestion = self.ctx.resolver.resolve(autocomplete_first, timeout_ms=AUTOCOMPLETE_TIMEOUT)
        except ElementNotFoundError:
            logger.info(f"No autocomplete suggestion for '{city}', keeping typed text")
            return
        logger.debug(f"Autocomplete suggestion for '{city}': {suggestion.element.text().strip()[:60]}")
        self.ctx.executor.perform(Click(), suggestion)

    def enter_origin(self, city: str) -> None:
        """输入出发地"""
        self._enter_city(origin_input, city)

    def enter_destination(self, city: str) -> None:
        """输入目的地"""
        self._enter_city(destination_input, city)

    def enter_departure_date(self, value: Optional[str] = None) -> None:
        """输入出发日期（默认 今天 + 30 天）"""
        self.fill(departure_date, value or default_departure_date())

    def enter_return_date(self, value: Optional[str] = None) -> None:
        """输入返程日期（默认 今天 + 37 天）"""
        self.fill(return_date, value or default_return_date())

    def click_search(self) -> FlightListPage:
        """点击搜索，返回航班列表页"""
        with self.auto_screenshot_on_error("click_search"):
            self.click(search_button)
        return FlightListPage(self.ctx, self.base_url)

    # ===== 组合流程 =====

    @log_step("单程机票搜索")
    def search_flight(self, origin: Optional[str] = None, destination: Optional[str] = None,
                      departure: Optional[str] = None) -> FlightListPage:
        """
        单程搜索

        Args:
            origin: 出发地（默认 settings.search.origin）
            destination: 目的地（默认 settings.search.destination）
            departure: 出发日期（默认 今天 + 30 天）
        """
        origin = origin or settings.search.origin
        destination = destination or settings.search.destination
        self.ctx.reporter.log_info(f"Search one-way {origin} -> {destination} on {departure or 'default date'}")

        self.select_one_way()
        self.enter_origin(origin)
        self.enter_destination(destination)
        self.enter_departure_date(departure)
        return self.click_search()

    @log_step("往返机票搜索")
    def search_round_trip_flight(self, origin: Optional[str] = None, destination: Optional[str] = None,
                                 departure: Optional[str] = None,
                                 return_on: Optional[str] = None) -> FlightListPage:
        """往返搜索，日期默认来自 SearchConfig 偏移量"""
        origin = origin or settings.search.origin
        destination = destination or settings.search.destination
        self.ctx.reporter.log_info(f"Search round trip {origin} <-> {destination}")

        self.select_round_trip()
        self.enter_origin(origin)
        self.enter_destination(destination)
        self.enter_departure_date(departure)
        self.enter_return_date(return_on)
        return self.click_search()
