"""
BasePage - Page Object Pattern 基类

通过 TestContext 提供通用的页面操作方法：定位走 LocatorResolver，
动作走 ActionExecutor，等待走 WaitHelper。所有页面对象类应继承此类。
"""
from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Dict, Optional
from urllib.parse import urljoin

from config import settings
from utils.action_executor import Click, ScrollIntoView, Select, Type
from utils.context import TestContext
from utils.logger import log_exception, logger
from utils.selector_helper import ResolvedElement, Target, summarize
from utils.wait_helper import WaitTimeoutError


class BasePage:
    """页面对象基类 - 封装通用的页面操作方法"""

    # 页面路径（相对 base_url），子类覆盖
    PATH = "/"

    def __init__(self, ctx: TestContext, base_url: Optional[str] = None):
        """
        初始化 BasePage

        Args:
            ctx: 当前测试的上下文（驱动、报告、截图）
            base_url: 基础 URL（默认 settings.base_url）
        """
        self.ctx = ctx
        self.driver = ctx.driver
        self.base_url = base_url or settings.base_url

        self._page_name = self.__class__.__name__
        self._load_time: Optional[float] = None

    # ==================== 导航相关方法 ====================

    def goto(self, url: Optional[str] = None, timeout: Optional[int] = None) -> None:
        """
        导航到指定 URL

        Args:
            url: 目标 URL（相对路径会拼接 base_url；为空时使用 PATH）
            timeout: 超时时间（毫秒，默认 settings.timeouts.page_load）
        """
        url = url or self.PATH
        if not url.startswith(("http://", "https://")):
            url = urljoin(self.base_url, url)

        logger.info(f"Navigate to: {url}")
        start_time = time.time()
        self.driver.goto(url, timeout_ms=timeout or settings.timeouts.page_load)
        self._load_time = time.time() - start_time
        logger.info(f"Page loaded in {self._load_time:.2f}s")

    def current_url(self) -> str:
        """获取当前 URL"""
        return self.driver.current_url()

    def title(self) -> str:
        """获取页面标题"""
        return self.driver.title()

    def is_page_loaded(self) -> bool:
        """子类覆盖：页面关键元素是否已出现"""
        return True

    # ==================== 元素定位 ====================

    def find(self, target: Target, timeout: Optional[int] = None) -> ResolvedElement:
        """
        解析目标元素（按策略顺序，首个可见者胜出）

        Raises:
            ElementNotFoundError: 所有策略及关键字扫描均失败
        """
        return self.ctx.resolver.resolve(target, timeout_ms=timeout)

    def exists(self, target: Target) -> bool:
        """快速检查元素是否可见（不等待、不抛异常）"""
        return self.ctx.resolver.exists(target)

    def is_visible(self, target: Target) -> bool:
        """检查元素是否可见"""
        return self.exists(target)

    # ==================== 动作 ====================

    def click(self, target: Target, timeout: Optional[int] = None) -> None:
        """
        点击元素

        Raises:
            ElementNotFoundError: 元素未找到
            ActionError: 点击失败（已截图并记录报告）
        """
        self.ctx.executor.perform(Click(), self.find(target, timeout))

    def fill(self, target: Target, value: str, clear: bool = True, timeout: Optional[int] = None) -> None:
        """
        输入文本

        Args:
            target: 输入框
            value: 文本
            clear: 输入前是否清空
        """
        self.ctx.executor.perform(Type(value, clear=clear), self.find(target, timeout))

    def select(self, target: Target, option: str, timeout: Optional[int] = None) -> None:
        """按可见文本选择下拉选项"""
        self.ctx.executor.perform(Select(option), self.find(target, timeout))

    def scroll_to(self, target: Target, timeout: Optional[int] = None) -> ResolvedElement:
        """滚动到元素，返回已解析元素"""
        resolved = self.find(target, timeout)
        self.ctx.executor.perform(ScrollIntoView(), resolved)
        return resolved

    # ==================== 文本与属性 ====================

    def text(self, target: Target, timeout: Optional[int] = None) -> str:
        """获取元素文本（去除首尾空白）"""
        return self.find(target, timeout).element.text().strip()

    def attribute(self, target: Target, name: str, timeout: Optional[int] = None) -> Optional[str]:
        """获取元素属性"""
        return self.find(target, timeout).element.get_attribute(name)

    # ==================== 等待 ====================

    def wait_for_visible(self, kind: str, value: str, timeout: Optional[int] = None):
        """等待元素可见"""
        return self.ctx.waits.visible(kind, value, timeout_ms=timeout)

    def wait_for_absent(self, kind: str, value: str, timeout: Optional[int] = None) -> bool:
        """等待元素消失"""
        return self.ctx.waits.absent(kind, value, timeout_ms=timeout)

    def wait_for_url(self, fragment: str, timeout: Optional[int] = None) -> str:
        """等待 URL 包含指定片段"""
        return self.ctx.waits.url(fragment, timeout_ms=timeout)

    def wait_for_page_ready(self, timeout: Optional[int] = None) -> bool:
        """
        等待 document.readyState == complete 且加载指示器消失

        超时只记录警告并返回 False，由调用方决定是否继续
        """
        try:
            return self.ctx.waits.page_ready(timeout_ms=timeout or settings.timeouts.page_load)
        except WaitTimeoutError as e:
            logger.warning(f"{self._page_name}: page not ready: {e}")
            return False

    # ==================== 断言 ====================

    def assert_visible(self, target: Target, message: Optional[str] = None) -> None:
        """断言元素可见（失败时截图）"""
        with self.auto_screenshot_on_error(f"assert_visible_{target.name}"):
            try:
                self.find(target)
            except Exception as e:
                raise AssertionError(message or f"Element not visible: {target.name}") from e

    def assert_text_contains(self, target: Target, expected: str, message: Optional[str] = None) -> None:
        """断言元素文本包含期望值（失败时截图）"""
        with self.auto_screenshot_on_error(f"assert_text_{target.name}"):
            actual = self.text(target)
            assert expected in actual, message or f"'{expected}' not in text of {target.name}: '{actual}'"

    def assert_url_contains(self, fragment: str, timeout: Optional[int] = None) -> None:
        """断言 URL 包含指定片段（失败时截图）"""
        with self.auto_screenshot_on_error("assert_url"):
            try:
                self.wait_for_url(fragment, timeout)
            except WaitTimeoutError as e:
                raise AssertionError(f"URL '{self.current_url()}' does not contain '{fragment}'") from e

    # ==================== 截图与调试 ====================

    def screenshot(self, name: str) -> str:
        """截图并附加到报告，返回文件路径"""
        path = self.ctx.screenshots.capture(name)
        self.ctx.reporter.attach_screenshot(path, name)
        return str(path)

    def screenshot_on_failure(self, name: str = "failure") -> Optional[str]:
        """失败时截图（截图本身失败只记录日志）"""
        try:
            return self.screenshot(name)
        except Exception as e:
            logger.error(f"Failed to take screenshot: {e}")
            return None

    @contextmanager
    def auto_screenshot_on_error(self, name: str = "operation"):
        """
        上下文管理器：操作失败时自动截图并记录报告

        Usage:
            with page.auto_screenshot_on_error("search"):
                page.click(search_button)
        """
        try:
            yield
        except Exception as e:
            log_exception(logger, e, context=f"{self._page_name}.{name}")
            self.ctx.reporter.log_fail(f"{self._page_name}.{name} failed: {e}")
            self.screenshot_on_failure(name=name)
            raise

    def debug_info(self, target: Target) -> Dict[str, Any]:
        """
        获取目标元素的调试信息（解析策略、耗时、尝试列表）
        """
        resolved = self.ctx.resolver.probe(target)
        if resolved is None:
            return {"target": target.name, "visible": False,
                    "strategies": [s.describe() for s in target.strategies]}
        return {**summarize(resolved), "visible": True}

    def page_contains(self, *keywords: str) -> bool:
        """页面源码是否包含任一关键字（大小写不敏感）"""
        source = self.driver.page_source().lower()
        return any(k.lower() in source for k in keywords)

    def execute(self, script: str, *args: Any) -> Any:
        """在页面上下文中执行 JavaScript 函数"""
        return self.driver.execute_script(script, *args)

    def scroll_to_top(self) -> None:
        """滚动到页面顶部"""
        self.execute("() => window.scrollTo(0, 0)")

    def __repr__(self) -> str:
        return f"<{self._page_name} url={self.base_url}>"
