from config import get_text, settings
from config.locators_i18n import LOCATORS_I18N
from tests.fakes import FakeDriver
from utils.context import TestContext
from utils.report_helper import AllureReporter
from utils.screenshot_helper import ScreenshotHelper


def test_create_takes_timeouts_from_settings(tmp_path):
    driver = FakeDriver()
    ctx = TestContext.create(driver, screenshots=ScreenshotHelper(driver, tmp_path), test_name="t")

    assert ctx.resolver.strategy_timeout_ms == settings.timeouts.strategy_wait
    assert ctx.resolver.poll_interval_ms == settings.timeouts.poll_interval
    assert ctx.waits.timeout_ms == settings.timeouts.element_wait
    assert isinstance(ctx.reporter, AllureReporter)
    assert ctx.executor.driver is driver


def test_contexts_share_nothing(tmp_path):
    first = TestContext.create(FakeDriver(), screenshots=ScreenshotHelper(FakeDriver(), tmp_path / "a"))
    second = TestContext.create(FakeDriver(), screenshots=ScreenshotHelper(FakeDriver(), tmp_path / "b"))
    first.reporter.log_fail("only in the first session")
    assert second.reporter.entries == []


def test_every_locale_has_the_same_keys():
    assert set(LOCATORS_I18N["tr"]) == set(LOCATORS_I18N["en"])


def test_get_text():
    assert get_text("filter.departure_time.noon", "tr") == "Öğle"
    assert get_text("filter.departure_time.noon", "en") == "Noon"
    assert get_text("missing.key") == ""
    assert get_text("filter.apply", "de") == ""
