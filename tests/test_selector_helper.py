import pytest

from pages.home_selector import search_button
from tests.fakes import FakeElement
from utils.driver import By
from utils.selector_helper import (
    KEYWORD_SCAN_CSS,
    ElementNotFoundError,
    LocatorStrategy,
    Target,
    by_css,
    by_test_id,
    by_text,
    by_xpath,
    summarize,
)

THREE_WAY = Target(
    name="three-way",
    strategies=(by_test_id("first"), by_css(".second"), by_xpath("//third")),
)


class TestResolveOrdering:
    def test_first_visible_strategy_wins_and_later_ones_are_not_queried(self, fake_driver, resolver):
        winner = fake_driver.add(By.TEST_ID, "first", FakeElement("1"))
        fake_driver.add(By.CSS, ".second", FakeElement("2"))

        resolved = resolver.resolve(THREE_WAY)

        assert resolved.element is winner
        assert resolved.strategy_index == 0
        assert not fake_driver.queried(By.CSS, ".second")
        assert not fake_driver.queried(By.XPATH, "//third")

    def test_falls_through_to_last_strategy(self, fake_driver, resolver, clock):
        winner = fake_driver.add(By.XPATH, "//third", FakeElement("3"))

        resolved = resolver.resolve(THREE_WAY)

        assert resolved.strategy_index == 2
        assert resolved.element is winner
        # two misses, each bounded by the strategy timeout
        assert clock.now == pytest.approx(6.0)
        assert resolved.attempts == ["test_id=first", "css=.second", "xpath=//third"]

    def test_hidden_match_does_not_count(self, fake_driver, resolver):
        fake_driver.add(By.TEST_ID, "first", FakeElement("hidden", visible=False))
        shown = fake_driver.add(By.CSS, ".second", FakeElement("shown"))

        resolved = resolver.resolve(THREE_WAY)

        assert resolved.element is shown
        assert resolved.strategy_index == 1


def test_search_button_resolves_through_css_fallback(fake_driver, resolver):
    """data-testid 缺失时由第二个策略（CSS）命中"""
    button = fake_driver.add(By.CSS, "button[type='submit'], .search-btn, .btn-search", FakeElement("Ucuz bilet bul"))

    resolved = resolver.resolve(search_button)

    assert resolved.strategy_index == 1
    assert resolved.element is button
    assert resolved.via.startswith("css=")
    assert not fake_driver.queried(By.CSS, KEYWORD_SCAN_CSS)


def test_not_found_names_target_and_every_strategy(fake_driver, resolver):
    with pytest.raises(ElementNotFoundError) as exc_info:
        resolver.resolve(THREE_WAY)

    error = exc_info.value
    assert error.target_name == "three-way"
    assert error.attempts == ["test_id=first", "css=.second", "xpath=//third"]
    assert "three-way" in str(error)
    assert error.elapsed_ms == pytest.approx(9000)


def test_keyword_scan_is_last_resort(fake_driver, resolver):
    target = Target(name="search", strategies=(by_test_id("search-button"),), keywords=("Ucuz bilet bul",))
    fake_driver.add(By.CSS, KEYWORD_SCAN_CSS, FakeElement("Menü"), FakeElement("UCUZ BİLET BUL"))

    resolved = resolver.resolve(target)

    assert resolved.strategy_index == -1
    assert resolved.via == "keyword_scan"
    assert resolved.element.text() == "UCUZ BİLET BUL"
    assert fake_driver.queries.index((By.TEST_ID, "search-button")) < fake_driver.queries.index(
        (By.CSS, KEYWORD_SCAN_CSS))


def test_keyword_scan_failure_is_listed_in_attempts(fake_driver, resolver):
    target = Target(name="search", strategies=(by_test_id("search-button"),), keywords=("Bilet bul",))
    with pytest.raises(ElementNotFoundError) as exc_info:
        resolver.resolve(target)
    assert exc_info.value.attempts[-1].startswith("keyword_scan=")


def test_text_strategy_is_localized(fake_driver, resolver):
    target = Target(name="noon", strategies=(by_text(text_key="filter.departure_time.noon"),))
    noon = fake_driver.add(By.TEXT, "Öğle", FakeElement("Öğle"))

    assert resolver.resolve(target).element is noon


def test_text_strategy_without_translation_is_skipped(fake_driver, resolver):
    target = Target(name="missing", strategies=(by_text(text_key="no.such.key"), by_css(".fallback")))
    fallback = fake_driver.add(By.CSS, ".fallback", FakeElement("x"))

    resolved = resolver.resolve(target)

    assert resolved.element is fallback
    assert resolved.strategy_index == 1


def test_probe_does_not_wait(fake_driver, resolver, clock):
    assert resolver.probe(THREE_WAY) is None
    assert clock.sleeps == []
    assert resolver.exists(THREE_WAY) is False


def test_resolve_all_applies_predicate(fake_driver, resolver):
    fake_driver.add(By.CSS, ".second", FakeElement("Reklam"), FakeElement("10:30 SAW"), FakeElement("12:00 ESB"))

    found = resolver.resolve_all(THREE_WAY, predicate=lambda e: ":" in e.text())

    assert [r.element.text() for r in found] == ["10:30 SAW", "12:00 ESB"]
    assert all(r.strategy_index == 1 for r in found)


def test_resolve_all_raises_when_nothing_matches(resolver):
    with pytest.raises(ElementNotFoundError):
        resolver.resolve_all(THREE_WAY)


def test_find_within_stays_inside_parent(fake_driver, resolver):
    # a page-level match must not leak into the card lookup
    fake_driver.add(By.CSS, ".second", FakeElement("page"))
    card = FakeElement("10:15 SAW")
    card.add_child(By.TEST_ID, "first", FakeElement("hidden", visible=False))
    inner = card.add_child(By.XPATH, "//third", FakeElement("inner"))

    found = resolver.find_within(card, THREE_WAY)

    assert found.element is inner
    assert found.strategy_index == 2
    assert resolver.find_within(FakeElement("empty"), THREE_WAY) is None


def test_summarize(fake_driver, resolver):
    fake_driver.add(By.TEST_ID, "first", FakeElement("1"))
    info = summarize(resolver.resolve(THREE_WAY))
    assert info["target"] == "three-way"
    assert info["strategy_index"] == 0
    assert info["via"] == "test_id=first"


class TestLocatorModel:
    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError):
            LocatorStrategy("id", "x")

    def test_strategy_needs_value_or_key(self):
        with pytest.raises(ValueError):
            LocatorStrategy(By.TEXT)

    def test_target_needs_strategies(self):
        with pytest.raises(ValueError):
            Target(name="empty", strategies=())

    def test_formatted_fills_placeholders(self):
        template = Target(name="row", strategies=(by_css(".row-{index}"), by_xpath("//li[{index}]")))
        filled = template.formatted(index=3)
        assert [s.value for s in filled.strategies] == [".row-3", "//li[3]"]
        assert template.strategies[0].value == ".row-{index}"
