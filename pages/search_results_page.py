"""
搜索结果页页面对象

在 FlightListPage（列表读取、出发时间筛选）之上补充：
- 航空公司 / 价格 / 直飞筛选
- 价格、时长、出发时间排序
- 选择航班、读取首个航班的价格与时长
- 搜索摘要、无结果提示、修改搜索
"""
from __future__ import annotations

import re
from typing import List, Optional, Union

from config import settings
from pages.flight_list_page import FlightListPage
from pages.home_page import HomePage
from pages.search_results_selector import (
    RESULTS_OR_EMPTY_CSS,
    airline_filter,
    airline_option,
    apply_price_filter_button,
    direct_flights_option,
    flight_duration,
    flight_price,
    max_price_input,
    min_price_input,
    modify_search_button,
    no_results_message,
    price_filter,
    search_results,
    search_summary,
    select_flight_button,
    sort_by_departure_button,
    sort_by_duration_button,
    sort_by_price_button,
    stops_filter,
)
from utils.action_executor import Click
from utils.driver import By
from utils.logger import log_duration, log_step, logger
from utils.selector_helper import ElementNotFoundError, ResolvedElement, Target

Price = Union[int, float, str]

# 1.099 TL / 1.099,50 TL / 899 TL：'.' 为千分位，',' 为小数点
_PRICE_RE = re.compile(r"(\d{1,3}(?:\.\d{3})+|\d+)(?:,(\d{1,2}))?")


def parse_price(text: Optional[str]) -> Optional[float]:
    """解析土耳其格式的价格文本，无法识别时返回 None"""
    match = _PRICE_RE.search(text or "")
    if match is None:
        return None
    whole = match.group(1).replace(".", "")
    cents = match.group(2) or "0"
    return float(f"{whole}.{cents}")


def _as_number(value: Price) -> float:
    if isinstance(value, (int, float)):
        return float(value)
    parsed = parse_price(value)
    if parsed is None:
        raise ValueError(f"Not a price: {value!r}")
    return parsed


class SearchResultsPage(FlightListPage):
    """搜索结果页（筛选、排序、选择航班）"""

    # ==================== 加载与状态 ====================

    @log_step("等待搜索结果")
    def wait_for_search_results(self, timeout: Optional[int] = None) -> "SearchResultsPage":
        """
        等待加载指示器消失，且结果区域或无结果提示可见

        Raises:
            WaitTimeoutError: 超时后两者都不可见
        """
        timeout = timeout or settings.timeouts.page_load
        with log_duration("search results load"):
            self._wait_for_refresh(timeout)
            self.wait_for_visible(By.CSS, RESULTS_OR_EMPTY_CSS, timeout)
        logger.info("Search results loaded")
        return self

    def are_search_results_displayed(self) -> bool:
        return self.exists(search_results) or self.is_flight_list_displayed()

    def is_no_results_displayed(self) -> bool:
        return self.exists(no_results_message)

    def is_page_loaded(self) -> bool:
        return self.are_search_results_displayed() or self.is_no_results_displayed()

    def get_search_summary(self) -> str:
        """搜索摘要文本，不存在时返回空字符串"""
        resolved = self.ctx.resolver.probe(search_summary)
        if resolved is None:
            logger.info("No search summary on the result page")
            return ""
        return resolved.element.text().strip()

    # ==================== 航班卡片 ====================

    def _flight_at(self, index: int) -> ResolvedElement:
        items = self.get_flight_items()
        if not 0 <= index < len(items):
            raise IndexError(f"Invalid flight index {index}: {len(items)} flight(s) listed")
        return items[index]

    def _card_part(self, index: int, part: Target) -> ResolvedElement:
        card = self._flight_at(index)
        resolved = self.ctx.resolver.find_within(card.element, part)
        if resolved is None:
            raise ElementNotFoundError(part.name, [s.describe() for s in part.strategies])
        return resolved

    @log_step("选择航班")
    def select_flight_by_index(self, index: int) -> None:
        """
        点击第 index 个航班卡片中的“选择”按钮

        Raises:
            IndexError: 没有该序号的航班
            ElementNotFoundError: 卡片中没有选择按钮
            ActionError: 点击失败
        """
        with self.auto_screenshot_on_error(f"select_flight_{index}"):
            self.ctx.executor.perform(Click(), self._card_part(index, select_flight_button))
        logger.info(f"Selected flight at index {index}")

    def select_first_flight(self) -> None:
        self.select_flight_by_index(0)

    def get_first_flight_price(self) -> str:
        price = self._card_part(0, flight_price).element.text().strip()
        logger.info(f"First flight price: {price}")
        return price

    def get_first_flight_duration(self) -> str:
        duration = self._card_part(0, flight_duration).element.text().strip()
        logger.info(f"First flight duration: {duration}")
        return duration

    def get_flight_prices(self) -> List[Optional[float]]:
        """每个航班卡片的价格（无法识别时为 None）"""
        prices = []
        for item in self.get_flight_items():
            part = self.ctx.resolver.find_within(item.element, flight_price)
            prices.append(parse_price(part.element.text() if part else None))
        return prices

    # ==================== 筛选 ====================

    @log_step("按航空公司筛选")
    def filter_by_airline(self, airline: str) -> "SearchResultsPage":
        with self.auto_screenshot_on_error("filter_by_airline"):
            self.click(airline_filter)
            self.click(airline_option(airline))
            self._wait_for_refresh()
        logger.info(f"Applied airline filter: {airline}")
        return self

    @log_step("按价格区间筛选")
    def filter_by_price_range(self, min_price: Price, max_price: Price) -> "SearchResultsPage":
        """
        输入最低/最高价格并应用

        Raises:
            ValueError: 价格无法解析或最低价高于最高价
        """
        low, high = _as_number(min_price), _as_number(max_price)
        if low > high:
            raise ValueError(f"Invalid price range: {min_price} is above {max_price}")

        with self.auto_screenshot_on_error("filter_by_price_range"):
            self.click(price_filter)
            self.fill(min_price_input, str(min_price))
            self.fill(max_price_input, str(max_price))
            self.click(apply_price_filter_button)
            self._wait_for_refresh()
        logger.info(f"Applied price filter: {min_price} - {max_price}")
        return self

    @log_step("只看直飞航班")
    def filter_by_direct_flights(self) -> "SearchResultsPage":
        with self.auto_screenshot_on_error("filter_by_direct_flights"):
            self.click(stops_filter)
            self.click(direct_flights_option)
            self._wait_for_refresh()
        logger.info("Applied direct flights filter")
        return self

    # ==================== 排序 ====================

    def _sort(self, button: Target, label: str) -> "SearchResultsPage":
        with self.auto_screenshot_on_error(f"sort_by_{label}"):
            # 排序栏在列表顶部
            self.scroll_to_top()
            self.click(button)
            self._wait_for_refresh()
        logger.info(f"Sorted results by {label}")
        return self

    @log_step("按价格排序")
    def sort_by_price(self) -> "SearchResultsPage":
        return self._sort(sort_by_price_button, "price")

    @log_step("按飞行时长排序")
    def sort_by_duration(self) -> "SearchResultsPage":
        return self._sort(sort_by_duration_button, "duration")

    @log_step("按出发时间排序")
    def sort_by_departure_time(self) -> "SearchResultsPage":
        return self._sort(sort_by_departure_button, "departure_time")

    # ==================== 修改搜索 ====================

    @log_step("修改搜索")
    def modify_search(self) -> HomePage:
        self.click(modify_search_button)
        logger.info("Clicked modify search button")
        return HomePage(self.ctx, self.base_url)
