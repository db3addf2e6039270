from utils.selector_helper import Target, by_css, by_test_id, by_text, by_xpath

# enuygun Logo
logo = Target(
    name="enuygun-logo",
    strategies=(
        by_test_id("enuygun-logo"),
        by_css(".header-logo, .logo, .enuygun-logo"),
    ),
    description="首页 Logo",
)

# 机票标签页
flight_tab = Target(
    name="flight-tab",
    strategies=(
        by_test_id("flight-tab"),
        by_xpath("//a[contains(text(),'Uçak') or contains(text(),'Flight')]"),
        by_text(text_key="home.flight_tab"),
    ),
    description="机票标签页",
)

# 单程 / 往返
one_way_radio = Target(
    name="one-way-radio",
    strategies=(
        by_test_id("one-way-radio"),
        by_css("input[value='one-way'], label[for*='one-way'], [class*='one-way']"),
    ),
    description="单程选项",
)

round_trip_radio = Target(
    name="round-trip-radio",
    strategies=(
        by_test_id("round-trip-radio"),
        by_css("input[value='round-trip'], label[for*='round-trip'], [class*='round-trip']"),
    ),
    description="往返选项",
)

# 出发地 / 目的地输入框
origin_input = Target(
    name="origin-input",
    strategies=(
        by_test_id("origin-input"),
        by_css("input[name='origin'], input[placeholder*='Nereden'], input[placeholder*='From']"),
    ),
    description="出发地输入框",
)

destination_input = Target(
    name="destination-input",
    strategies=(
        by_test_id("destination-input"),
        by_css("input[name='destination'], input[placeholder*='Nereye'], input[placeholder*='To']"),
    ),
    description="目的地输入框",
)

# 自动补全下拉的第一个候选
autocomplete_first = Target(
    name="autocomplete-first-option",
    strategies=(
        by_test_id("autocomplete-option-0"),
        by_css("[role='listbox'] [role='option'], .autocomplete li, [class*='suggestion'] li"),
    ),
    description="自动补全首个候选",
)

# 日期
departure_date = Target(
    name="departure-date",
    strategies=(
        by_test_id("departure-date"),
        by_css("input[name='departureDate'], [class*='departure-date'] input"),
    ),
    description="出发日期",
)

return_date = Target(
    name="return-date",
    strategies=(
        by_test_id("return-date"),
        by_css("input[name='returnDate'], [class*='return-date'] input"),
    ),
    description="返程日期",
)

# 搜索按钮
search_button = Target(
    name="search-button",
    strategies=(
        by_test_id("search-button"),
        by_css("button[type='submit'], .search-btn, .btn-search"),
    ),
    keywords=("Ucuz bilet bul", "Bilet bul", "Find cheap"),
    description="搜索按钮",
)
