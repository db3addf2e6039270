"""
可见文本的本地化映射。页面中依赖可见文本定位（按钮文字、筛选标题等）时，
用 key 去映射不同语言的实际文本，由 settings.locale 决定当前语言。
"""
LOCATORS_I18N = {
    "tr": {
        "home.flight_tab": "Uçak",
        "home.search": "Ucuz bilet bul",
        "filter.departure_time.title": "Gidiş kalkış / varış saatleri",
        "filter.departure_time.noon": "Öğle",
        "filter.apply": "Uygula",
        "filter.clear": "Temizle",
        "flight_list.select": "Seç",
        "results.direct": "Aktarmasız",
        "results.modify": "Değiştir",
        "results.no_results": "uçuş bulunamadı",
    },
    "en": {
        "home.flight_tab": "Flight",
        "home.search": "Find cheap tickets",
        "filter.departure_time.title": "Departure / arrival times",
        "filter.departure_time.noon": "Noon",
        "filter.apply": "Apply",
        "filter.clear": "Clear",
        "flight_list.select": "Select",
        "results.direct": "Direct",
        "results.modify": "Modify",
        "results.no_results": "No flights found",
    },
}


def get_text(key: str, locale: str = "tr") -> str:
    return LOCATORS_I18N.get(locale, {}).get(key, "")
