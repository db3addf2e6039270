from utils.selector_helper import Target, by_css, by_test_id, by_text, by_xpath

# ===== 结果区域 =====

search_results = Target(
    name="search-results",
    strategies=(
        by_test_id("search-results"),
        by_css(".search-results, .flight-results, .results-container"),
    ),
    description="搜索结果区域",
)

search_summary = Target(
    name="search-summary",
    strategies=(
        by_test_id("search-summary"),
        by_css(".search-summary, .summary-bar, .search-info"),
    ),
    description="搜索摘要（航线、日期、乘客）",
)

no_results_message = Target(
    name="no-results",
    strategies=(
        by_test_id("no-results"),
        by_css(".no-results, .empty-results"),
        by_text(text_key="results.no_results"),
    ),
    description="无结果提示",
)

modify_search_button = Target(
    name="modify-search",
    strategies=(
        by_test_id("modify-search"),
        by_css(".modify-search, .change-search"),
        by_text(text_key="results.modify"),
    ),
    description="修改搜索按钮",
)

# 结果列表或无结果提示，任一可见即视为搜索已返回
RESULTS_OR_EMPTY_CSS = (
    "[data-testid='search-results'], .search-results, .flight-results, .results-container, "
    "[data-testid='no-results'], .no-results, .empty-results"
)

# ===== 筛选 =====

airline_filter = Target(
    name="airline-filter",
    strategies=(
        by_test_id("airline-filter"),
        by_css(".airline-filter, [class*='filter-airline']"),
    ),
    description="航空公司筛选标题",
)


def airline_option(airline: str) -> Target:
    """航空公司筛选项（按可见文本）"""
    return Target(
        name=f"airline-option-{airline}",
        strategies=(
            by_xpath(f"//label[contains(text(),'{airline}')]"),
            by_text(airline),
        ),
        description=f"航空公司选项：{airline}",
    )


price_filter = Target(
    name="price-filter",
    strategies=(
        by_test_id("price-filter"),
        by_css(".price-filter, [class*='filter-price']"),
    ),
    description="价格筛选标题",
)

min_price_input = Target(
    name="min-price",
    strategies=(
        by_test_id("min-price"),
        by_css(".min-price, input[name*='min']"),
    ),
    description="最低价格输入框",
)

max_price_input = Target(
    name="max-price",
    strategies=(
        by_test_id("max-price"),
        by_css(".max-price, input[name*='max']"),
    ),
    description="最高价格输入框",
)

apply_price_filter_button = Target(
    name="apply-price-filter",
    strategies=(
        by_test_id("apply-price-filter"),
        by_css(".apply-filter, .apply-price"),
        by_text(text_key="filter.apply"),
    ),
    description="价格筛选“应用”按钮",
)

stops_filter = Target(
    name="stops-filter",
    strategies=(
        by_test_id("stops-filter"),
        by_css(".stops-filter, [class*='filter-transfer']"),
    ),
    description="中转次数筛选标题",
)

direct_flights_option = Target(
    name="direct-flights-option",
    strategies=(
        by_xpath("//label[contains(text(),'Aktarmasız') or contains(text(),'Direct')]"),
        by_text(text_key="results.direct"),
    ),
    description="“Aktarmasız”（直飞）选项",
)

# ===== 排序 =====

sort_by_price_button = Target(
    name="sort-price",
    strategies=(
        by_test_id("sort-price"),
        by_css(".sort-price, [data-sort='price']"),
    ),
    description="按价格排序",
)

sort_by_duration_button = Target(
    name="sort-duration",
    strategies=(
        by_test_id("sort-duration"),
        by_css(".sort-duration, [data-sort='duration']"),
    ),
    description="按飞行时长排序",
)

sort_by_departure_button = Target(
    name="sort-departure",
    strategies=(
        by_test_id("sort-departure"),
        by_css(".sort-departure, [data-sort='departure']"),
    ),
    description="按出发时间排序",
)

# ===== 航班卡片内元素（在卡片子树内查找） =====

select_flight_button = Target(
    name="select-flight",
    strategies=(
        by_test_id("select-flight"),
        by_css(".select-btn, .book-btn"),
        by_text(text_key="flight_list.select"),
    ),
    description="航班卡片“选择”按钮",
)

flight_price = Target(
    name="flight-price",
    strategies=(
        by_test_id("flight-price"),
        by_css(".price, .amount"),
    ),
    description="航班卡片价格",
)

flight_duration = Target(
    name="flight-duration",
    strategies=(
        by_test_id("flight-duration"),
        by_css(".duration, .flight-duration"),
    ),
    description="航班卡片飞行时长",
)

