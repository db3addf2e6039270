import pytest

from pages.base_page import BasePage
from tests.fakes import FakeElement
from utils.driver import By
from utils.selector_helper import ElementNotFoundError, Target, by_css, by_test_id
from utils.wait_helper import WaitTimeoutError

heading = Target(name="heading", strategies=(by_test_id("heading"), by_css("h1")))
cabin_select = Target(name="cabin-select", strategies=(by_test_id("cabin-select"),))


@pytest.fixture
def page(ctx):
    return BasePage(ctx, base_url="https://www.enuygun.com")


def test_goto_relative_and_absolute(fake_driver, page):
    page.goto("/ucak-bileti/")
    page.goto("https://petstore.swagger.io/")
    assert fake_driver.visited == ["https://www.enuygun.com/ucak-bileti/", "https://petstore.swagger.io/"]


def test_text_and_attribute(fake_driver, page):
    fake_driver.add(By.CSS, "h1", FakeElement("  Ucuz uçak bileti  ", attrs={"class": "title"}))
    assert page.text(heading) == "Ucuz uçak bileti"
    assert page.attribute(heading, "class") == "title"
    assert page.is_visible(heading)


def test_select_and_scroll(fake_driver, page):
    select = fake_driver.add(By.TEST_ID, "cabin-select", FakeElement("Ekonomi"))
    page.select(cabin_select, "Business")
    assert select.selected == "Business"

    resolved = page.scroll_to(cabin_select)
    assert resolved.element is select
    assert "scrollIntoView" in fake_driver.scripts[-1][0]


def test_assert_visible_failure_screenshots(fake_driver, page, reporter):
    with pytest.raises(AssertionError) as exc_info:
        page.assert_visible(heading, "başlık görünmeli")

    assert str(exc_info.value) == "başlık görünmeli"
    assert isinstance(exc_info.value.__cause__, ElementNotFoundError)
    assert len(fake_driver.screenshots) == 1
    assert len(reporter.failures()) == 1


def test_assert_text_contains(fake_driver, page):
    fake_driver.add(By.TEST_ID, "heading", FakeElement("İstanbul - Ankara"))
    page.assert_text_contains(heading, "Ankara")
    with pytest.raises(AssertionError):
        page.assert_text_contains(heading, "İzmir")
    assert len(fake_driver.screenshots) == 1


def test_assert_url_contains(fake_driver, page):
    fake_driver.url = "https://www.enuygun.com/ucak-bileti/istanbul-ankara/"
    page.assert_url_contains("istanbul-ankara")
    with pytest.raises(AssertionError):
        page.assert_url_contains("izmir", timeout=2000)


def test_page_ready_timeout_returns_false(fake_driver, page):
    fake_driver.ready_state = "loading"
    assert page.wait_for_page_ready(timeout=2000) is False


def test_screenshot_failure_is_logged_not_raised(fake_driver, page):
    fake_driver.screenshot_error = RuntimeError("target closed")
    assert page.screenshot_on_failure("broken") is None


def test_debug_info(fake_driver, page):
    assert page.debug_info(heading)["visible"] is False
    fake_driver.add(By.CSS, "h1", FakeElement("Başlık"))
    info = page.debug_info(heading)
    assert info["visible"] is True
    assert info["strategy_index"] == 1


def test_page_contains(fake_driver, page):
    fake_driver.source = "<html><body>Uçuş bulunamadı</body></html>"
    assert page.page_contains("UÇUŞ", "no flights")
    assert not page.page_contains("kampanya")


def test_wait_for_visible_returns_element(fake_driver, page):
    banner = fake_driver.add(By.CSS, ".results", FakeElement("12 uçuş"))
    assert page.wait_for_visible(By.CSS, ".results") is banner


def test_wait_for_visible_times_out(fake_driver, page):
    fake_driver.add(By.CSS, ".results", FakeElement("12 uçuş", visible=False))
    with pytest.raises(WaitTimeoutError):
        page.wait_for_visible(By.CSS, ".results", timeout=2000)


def test_scroll_to_top(fake_driver, page):
    page.scroll_to_top()
    assert fake_driver.scripts[-1] == ("() => window.scrollTo(0, 0)", ())
