import pytest

from tests.fakes import FakeClock, FakeDriver, FakeElement
from utils.driver import By
from utils.wait_helper import (
    WaitCondition,
    WaitHelper,
    WaitTimeoutError,
    element_absent,
    element_clickable,
    page_ready,
    wait_until,
)


def test_returns_probe_value_without_sleeping(clock):
    condition = WaitCondition("ready", lambda: "value", timeout_ms=1000, poll_interval_ms=250)
    assert wait_until(condition, clock=clock, sleep=clock.sleep) == "value"
    assert clock.sleeps == []


def test_succeeds_once_probe_turns_truthy(clock):
    answers = iter([None, None, "late"])
    condition = WaitCondition("late", lambda: next(answers), timeout_ms=1000, poll_interval_ms=250)

    assert wait_until(condition, clock=clock, sleep=clock.sleep) == "late"
    assert clock.sleeps == [0.25, 0.25]


@pytest.mark.parametrize("timeout_ms, poll_ms", [(1000, 250), (1000, 300), (3000, 500), (700, 500)])
def test_timeout_is_bounded_by_timeout_plus_poll(clock, timeout_ms, poll_ms):
    """等待时长不超过 timeout + poll interval"""
    condition = WaitCondition("never", lambda: None, timeout_ms=timeout_ms, poll_interval_ms=poll_ms)

    with pytest.raises(WaitTimeoutError) as exc_info:
        wait_until(condition, clock=clock, sleep=clock.sleep)

    assert clock.now * 1000 <= timeout_ms + poll_ms
    assert clock.now * 1000 >= timeout_ms - 1e-6
    assert exc_info.value.timeout_ms == timeout_ms
    assert "never" in str(exc_info.value)


def test_never_sleeps_past_deadline(clock):
    condition = WaitCondition("never", lambda: None, timeout_ms=700, poll_interval_ms=500)
    with pytest.raises(WaitTimeoutError):
        wait_until(condition, clock=clock, sleep=clock.sleep)
    assert clock.sleeps == [0.5, pytest.approx(0.2)]


@pytest.mark.parametrize("timeout_ms, poll_ms", [(0, 100), (-5, 100), (1000, 0), (1000, 1000), (1000, 2000)])
def test_invalid_condition_rejected(timeout_ms, poll_ms):
    with pytest.raises(ValueError):
        WaitCondition("bad", lambda: None, timeout_ms=timeout_ms, poll_interval_ms=poll_ms)


def test_with_timeout_keeps_probe():
    condition = WaitCondition("x", lambda: 1, timeout_ms=1000, poll_interval_ms=100)
    shorter = condition.with_timeout(500)
    assert shorter.timeout_ms == 500
    assert shorter.poll_interval_ms == 100
    assert shorter.probe is condition.probe


def test_clickable_skips_aria_disabled(clock):
    driver = FakeDriver()
    driver.add(By.CSS, "button", FakeElement("Ara", attrs={"aria-disabled": "true"}))
    condition = element_clickable(driver, By.CSS, "button", timeout_ms=1000, poll_interval_ms=250)
    with pytest.raises(WaitTimeoutError):
        wait_until(condition, clock=clock, sleep=clock.sleep)


def test_absent_true_when_only_hidden_matches(clock):
    driver = FakeDriver()
    driver.add(By.CSS, ".spinner", FakeElement(visible=False))
    condition = element_absent(driver, By.CSS, ".spinner", timeout_ms=1000, poll_interval_ms=250)
    assert wait_until(condition, clock=clock, sleep=clock.sleep) is True


def test_page_ready_waits_for_ready_state(clock):
    driver = FakeDriver()
    driver.ready_state = "loading"
    condition = page_ready(driver, timeout_ms=1000, poll_interval_ms=250)
    with pytest.raises(WaitTimeoutError):
        wait_until(condition, clock=clock, sleep=clock.sleep)

    driver.ready_state = "complete"
    assert wait_until(condition, clock=FakeClock(), sleep=lambda s: None) is True


class TestWaitHelper:
    def test_visible_returns_element(self, clock):
        driver = FakeDriver()
        shown = FakeElement("shown")
        driver.add(By.CSS, ".item", FakeElement("hidden", visible=False), shown)
        waits = WaitHelper(driver, timeout_ms=1000, poll_interval_ms=250, clock=clock, sleep=clock.sleep)
        assert waits.visible(By.CSS, ".item") is shown

    def test_url_timeout_uses_helper_clock(self, clock):
        driver = FakeDriver(url="https://www.enuygun.com/")
        waits = WaitHelper(driver, timeout_ms=1000, poll_interval_ms=250, clock=clock, sleep=clock.sleep)
        with pytest.raises(WaitTimeoutError):
            waits.url("ucak-bileti")
        assert clock.now == pytest.approx(1.0)
