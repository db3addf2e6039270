"""
线上冒烟：enuygun 单程搜索 + 出发时间筛选（需 --run-e2e）
"""
import pytest

from pages.home_page import HomePage
from pages.search_results_page import SearchResultsPage

pytestmark = [pytest.mark.e2e, pytest.mark.ui]


@pytest.mark.smoke
def test_home_page_loads(e2e_ctx):
    home = HomePage(e2e_ctx).open()
    assert home.is_page_loaded(), "搜索表单未加载"


@pytest.mark.yaml_data(file="flight_search.yaml", group="one_way")
def test_search_with_departure_time_filter(e2e_ctx, origin, destination, start, end):
    home = HomePage(e2e_ctx).open()
    results = home.search_flight(origin, destination)
    results.wait_for_flight_list_to_load()

    assert results.get_flight_count() > 0, "没有航班结果"
    assert results.validate_flight_route(origin, destination)

    outcome = results.apply_departure_time_filter(start, end)
    assert outcome.confirmed

    report = results.validate_all_flights_in_time_range(start, end)
    assert report.valid_count > 0, report.summary()


@pytest.mark.yaml_data(file="flight_search.yaml", group="time_ranges")
def test_departure_time_ranges(e2e_ctx, origin, destination, start, end):
    HomePage(e2e_ctx).open().search_flight(origin, destination)
    results = SearchResultsPage(e2e_ctx).wait_for_search_results()
    if results.is_no_results_displayed():
        pytest.skip(f"{origin} -> {destination} 当天没有航班")

    outcome = results.apply_departure_time_filter(start, end)
    assert outcome.confirmed

    report = results.validate_all_flights_in_time_range(start, end)
    assert report.valid_count > 0, report.summary()


@pytest.mark.yaml_data(file="flight_search.yaml", group="no_results")
def test_no_results_message(e2e_ctx, origin, destination, min_price, max_price):
    HomePage(e2e_ctx).open().search_flight(origin, destination)
    results = SearchResultsPage(e2e_ctx).wait_for_search_results()

    results.filter_by_price_range(min_price, max_price)

    assert results.is_no_results_displayed() or results.get_flight_count() == 0, "价格区间外仍有航班"


def test_results_details_and_sorting(e2e_ctx):
    HomePage(e2e_ctx).open().search_flight()
    results = SearchResultsPage(e2e_ctx).wait_for_search_results()
    assert results.are_search_results_displayed(), "没有航班结果"

    assert results.get_search_summary(), "搜索摘要为空"
    assert results.get_first_flight_price(), "首个航班没有价格"
    assert results.get_first_flight_duration(), "首个航班没有飞行时长"

    prices = [p for p in results.sort_by_price().get_flight_prices() if p is not None]
    assert prices == sorted(prices), f"价格未按升序排列: {prices}"
