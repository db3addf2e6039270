from utils.selector_helper import Target, by_css, by_script, by_test_id, by_text, by_xpath

# ===== 结果列表 =====

flight_list = Target(
    name="flight-list",
    strategies=(
        by_test_id("flight-list"),
        by_css(".flight-results, .flights-list, .search-results, .flight-container, .results-container"),
        by_css(".listing-container, [class*='flight-list'], [class*='result-list']"),
    ),
    keywords=("uçuş", "sefer", "flight"),
    description="航班结果列表容器",
)

flight_item = Target(
    name="flight-item",
    strategies=(
        by_test_id("flight-item"),
        by_css(".flight-card, .flight-item, .flight-result, .flight-row, .flight-option"),
        by_css("[class*='flight-card'], [class*='flight-item'], .ticket, .journey"),
    ),
    description="单个航班卡片",
)

loading_indicator = (
    ".loading, .spinner, .loading-indicator, .loader, .loading-overlay, "
    "[class*='loading'], [class*='spinner']"
)

# 航班卡片内的时间/航线子元素（按顺序尝试）
FLIGHT_TIME_CSS = (
    "[data-testid='departure-time']",
    ".departure-time",
    ".flight-time",
    ".dep-time",
    ".time",
)

FLIGHT_ROUTE_CSS = (
    "[data-testid='flight-route']",
    ".flight-route",
    ".route",
    ".cities",
)

clear_filters_button = Target(
    name="clear-filters",
    strategies=(
        by_test_id("clear-filters"),
        by_css(".clear-filters, .reset-filters, .filter-clear"),
        by_text(text_key="filter.clear"),
    ),
    description="清除全部筛选",
)

# ===== 出发时间筛选 =====

# 展开图标：class 中的 ei-expand-more / ei-expand-less 反映面板状态
departure_time_expand_icon = Target(
    name="departure-time-expand-icon",
    strategies=(
        by_xpath("//i[contains(@class,'ctx-filter-departure-return-time')]"),
    ),
    description="出发时间筛选展开图标",
)

departure_time_trigger = Target(
    name="departure-time-filter-trigger",
    strategies=(
        by_xpath("//i[@class='ctx-filter-departure-return-time ei-expand-more ']"),
        by_xpath("//div[@class='ctx-filter-departure-return-time card-header']"),
        by_text(text_key="filter.departure_time.title"),
        by_xpath("//*[contains(text(),'Gidiş kalkış') or contains(text(),'Kalkış saatleri')]"),
    ),
    keywords=("Gidiş kalkış", "varış saatleri", "Departure / arrival"),
    description="出发时间筛选标题（点击展开）",
)

EXPANDED_CLASS_MARKERS = ("ei-expand-less", "expanded")

# 面板展开后才可见的控件，用作“已展开”的旁证
departure_time_panel_controls = Target(
    name="departure-time-panel-controls",
    strategies=(
        by_xpath("//p[contains(@class,'search__filter_departure-noon')]"),
        by_css(".rc-slider, input[type='range'], .range-slider"),
        by_css("input[type='time'], input[placeholder*='saat']"),
        by_css(".ctx-filter-departure-return-time .card-body, .filter-content.expanded"),
    ),
    description="出发时间筛选面板内控件",
)

noon_preset_button = Target(
    name="noon-preset-button",
    strategies=(
        by_xpath("//p[@class='search__filter_departure-noon '][contains(text(),'Öğle')]"),
        by_xpath("//p[contains(@class,'filter_departure-noon')][contains(text(),'Öğle')]"),
        by_xpath("//*[contains(@class,'noon')][contains(text(),'Öğle') or contains(text(),'Noon')]"),
        by_text(text_key="filter.departure_time.noon"),
    ),
    description="“Öğle”（中午）快捷筛选按钮",
)

range_slider = Target(
    name="departure-time-slider",
    strategies=(
        by_css(".ctx-filter-departure-return-time input[type='range']"),
        by_css("input[type='range']"),
        by_script(
            "() => Array.from(document.querySelectorAll('.rc-slider input, .range-slider input'))"
        ),
    ),
    description="出发时间区间滑块（双把手）",
)

time_from_input = Target(
    name="time-from-input",
    strategies=(
        by_css("input[placeholder*='başlangıç'], input[placeholder*='from'], input[name*='from']"),
        by_css("input[type='time']:first-of-type, .time-from, .start-time"),
    ),
    description="开始时间输入框",
)

time_to_input = Target(
    name="time-to-input",
    strategies=(
        by_css("input[placeholder*='bitiş'], input[placeholder*='to'], input[name*='to']"),
        by_css("input[type='time']:last-of-type, .time-to, .end-time"),
    ),
    description="结束时间输入框",
)

apply_filter_button = Target(
    name="apply-filter-button",
    strategies=(
        by_test_id("apply-filter"),
        by_xpath("//button[contains(text(),'Uygula') or contains(text(),'Apply') or contains(text(),'Filtrele')]"),
        by_css(".apply-filters, .filter-apply, .apply-btn"),
    ),
    description="筛选“应用”按钮",
)
