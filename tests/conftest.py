import re
import sys
import warnings
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Tuple

import pytest
from playwright.sync_api import sync_playwright

from config import settings
from tests.fakes import FakeClock, FakeDriver
from utils.context import TestContext
from utils.data.yaml_cases_loader import InvalidYamlFormatError, load_yaml_cases
from utils.driver import PlaywrightDriver
from utils.logger import attach_logs_to_allure, logger, setup_playwright_logging
from utils.report_helper import AllureReporter
from utils.screenshot_helper import ScreenshotHelper
from utils.selector_helper import LocatorResolver
from utils.wait_helper import WaitHelper


# ==================== 命令行选项 ====================
def pytest_addoption(parser):
    parser.addoption(
        "--config-override", action="store", default="",
        help="覆盖配置，格式: key1=value1,key2.subkey=value2",
    )
    parser.addoption(
        "--run-e2e", action="store_true", default=False,
        help="运行访问真实站点 / API 的 e2e 用例",
    )


def pytest_configure(config):
    overrides = config.getoption("--config-override")
    if overrides:
        settings.apply_overrides(overrides)


def pytest_collection_modifyitems(config, items):
    if config.getoption("--run-e2e"):
        return
    skip_e2e = pytest.mark.skip(reason="需要 --run-e2e")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip_e2e)


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    outcome = yield
    report = outcome.get_result()
    if report.when == "call" and report.failed and "e2e" in item.keywords:
        attach_logs_to_allure()


# ==================== YAML 数据驱动 ====================
@lru_cache(maxsize=64)
def _cached_load_yaml(file_path_str: str) -> Dict[str, List[Dict[str, Any]]]:
    """带缓存的YAML加载（基于绝对路径）"""
    return load_yaml_cases(Path(file_path_str))


def pytest_generate_tests(metafunc):
    """
    @pytest.mark.yaml_data(file="xxx.yaml", group="yyy")

    测试函数参数名必须与YAML字段名一致；文件/组缺失时跳过，格式错误时终止收集
    """
    marker = metafunc.definition.get_closest_marker("yaml_data")
    if marker is None:
        return

    try:
        file_name = marker.kwargs["file"]
        group_name = marker.kwargs["group"]
    except KeyError as e:
        _raise_usage_error(
            metafunc,
            f"@pytest.mark.yaml_data 缺少必需参数 {e}\n"
            f"  正确用法: @pytest.mark.yaml_data(file='xxx.yaml', group='yyy')"
        )
        return

    abs_file_path = Path(settings.paths.test_data) / file_name
    if not abs_file_path.exists():
        _warn_and_skip(metafunc, f"YAML数据文件不存在，跳过测试: {abs_file_path}")
        _parametrize_empty(metafunc)
        return

    try:
        groups = _cached_load_yaml(str(abs_file_path))
    except InvalidYamlFormatError as e:
        _raise_usage_error(metafunc, f"YAML数据格式验证失败，测试终止:\n{e}")
        return

    cases = groups.get(group_name)
    if not cases:
        _warn_and_skip(
            metafunc,
            f"YAML中不存在用例组 '{group_name}'，跳过测试。可用组: {list(groups) or '[空]'}"
        )
        _parametrize_empty(metafunc)
        return

    param_names = [p for p in metafunc.fixturenames if p in cases[0]]
    if not param_names:
        _raise_usage_error(
            metafunc,
            f"测试函数参数与YAML字段无匹配\n"
            f"  YAML字段: {sorted(cases[0])}\n"
            f"  测试参数: {sorted(metafunc.fixturenames)}"
        )
        return

    param_values: List[Tuple[Any, ...]] = []
    param_ids: List[str] = []
    for idx, case in enumerate(cases):
        if any(p not in case for p in param_names):
            continue
        param_values.append(tuple(case[p] for p in param_names))
        param_ids.append(_case_id(case, group_name, idx))

    if not param_values:
        _warn_and_skip(metafunc, f"用例组 '{group_name}' 无有效用例，所需参数: {param_names}")
        _parametrize_empty(metafunc)
        return

    metafunc.parametrize(param_names, param_values, ids=param_ids, scope="function")


def _case_id(case: Dict[str, Any], group_name: str, idx: int) -> str:
    case_id = str(case.get("id", "") or case.get("name", "") or case.get("desc", ""))
    # pytest 节点 ID 只保留标识符字符
    case_id = re.sub(r"_+", "_", re.sub(r"[^a-zA-Z0-9_]", "_", case_id)).strip("_")
    if not case_id or not case_id[0].isalpha():
        case_id = f"{group_name}_{idx}"
    return case_id[:100]


def _raise_usage_error(metafunc, message: str) -> None:
    raise pytest.UsageError(f"[YAML数据错误] in {metafunc.definition.nodeid}\n{message}")


def _warn_and_skip(metafunc, message: str) -> None:
    """收集阶段不能 pytest.skip()，只能发警告 + 参数化空列表"""
    full_message = f"[YAML数据] in {metafunc.definition.nodeid}\n{message}"
    warnings.warn(full_message, UserWarning, stacklevel=2)
    print(f"\n⚠️  YAML数据跳过 [{metafunc.definition.nodeid}]:\n{message}", file=sys.stderr)


def _parametrize_empty(metafunc) -> None:
    """参数化空列表触发 pytest 自动跳过"""
    safe_params = [
        p for p in metafunc.fixturenames
        if p.isidentifier() and not p.startswith("_") and p != "request"
    ]
    metafunc.parametrize(safe_params[0] if safe_params else "yaml_skip_marker", [], ids=[], scope="function")


# ==================== 单元测试夹具（内存 DOM） ====================
@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_driver():
    return FakeDriver()


@pytest.fixture
def reporter(request):
    return AllureReporter(request.node.name)


@pytest.fixture
def screenshots(fake_driver, tmp_path):
    return ScreenshotHelper(fake_driver, screenshot_dir=tmp_path / "screenshots")


@pytest.fixture
def resolver(fake_driver, clock):
    return LocatorResolver(fake_driver, strategy_timeout_ms=3000, poll_interval_ms=500, locale="tr",
                           clock=clock, sleep=clock.sleep)


@pytest.fixture
def ctx(fake_driver, reporter, screenshots, resolver, clock):
    """每个测试一个上下文，互不共享状态"""
    return TestContext(
        driver=fake_driver,
        reporter=reporter,
        screenshots=screenshots,
        resolver=resolver,
        waits=WaitHelper(fake_driver, timeout_ms=10000, poll_interval_ms=500, clock=clock, sleep=clock.sleep),
    )


# ==================== e2e 夹具（真实浏览器） ====================
@pytest.fixture(scope="session")
def browser():
    with sync_playwright() as p:
        launcher = getattr(p, settings.browser.type)
        instance = launcher.launch(headless=settings.browser.headless, slow_mo=settings.browser.slow_mo)
        yield instance
        instance.close()


@pytest.fixture
def page(browser):
    context = browser.new_context(viewport=settings.browser.viewport,
                                  locale="tr-TR" if settings.locale == "tr" else "en-US")
    page = context.new_page()
    yield page
    context.close()


@pytest.fixture
def e2e_ctx(page, request):
    setup_playwright_logging(page, logger)
    return TestContext.create(PlaywrightDriver(page), test_name=request.node.name)
