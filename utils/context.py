"""
Per-test bundle of the driver and its collaborators, passed explicitly to
page objects and the filter state machine.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from config import settings
from utils.action_executor import ActionExecutor
from utils.driver import Driver
from utils.report_helper import AllureReporter, ReportSink
from utils.screenshot_helper import ScreenshotHelper
from utils.selector_helper import LocatorResolver
from utils.wait_helper import WaitHelper


@dataclass
class TestContext:
    driver: Driver
    reporter: ReportSink
    screenshots: ScreenshotHelper
    resolver: LocatorResolver
    waits: WaitHelper
    executor: ActionExecutor = field(init=False)

    # keep pytest from collecting this class
    __test__ = False

    def __post_init__(self):
        self.executor = ActionExecutor(self.driver, self.reporter, self.screenshots)

    @classmethod
    def create(
        cls,
        driver: Driver,
        reporter: Optional[ReportSink] = None,
        screenshots: Optional[ScreenshotHelper] = None,
        test_name: str = "",
    ) -> "TestContext":
        """Build a context with timeouts taken from settings."""
        timeouts = settings.timeouts
        return cls(
            driver=driver,
            reporter=reporter or AllureReporter(test_name),
            screenshots=screenshots or ScreenshotHelper(driver),
            resolver=LocatorResolver(
                driver,
                strategy_timeout_ms=timeouts.strategy_wait,
                poll_interval_ms=timeouts.poll_interval,
                locale=settings.locale,
            ),
            waits=WaitHelper(driver, timeout_ms=timeouts.element_wait, poll_interval_ms=timeouts.poll_interval),
        )
