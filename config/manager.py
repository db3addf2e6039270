import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ._path import PROJECT_ROOT
from .env_loader import EnvLoader
from .yaml_loader import YamlLoader

_TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


class BrowserConfig(BaseModel):
    """浏览器配置模型"""
    headless: bool = False
    type: str = "chromium"  # chromium/firefox/webkit
    slow_mo: int = 0
    viewport: Dict[str, int] = {"width": 1920, "height": 1080}

    @field_validator("type")
    @classmethod
    def validate_browser_type(cls, v):
        valid_types = ["chromium", "firefox", "webkit"]
        if v not in valid_types:
            raise ValueError(f"无效的浏览器类型: {v}, 必须是 {valid_types}")
        return v

    model_config = ConfigDict(protected_namespaces=())


class LogConfig(BaseModel):
    """日志配置模型"""
    log_dir: Path = PROJECT_ROOT / "logs"
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: str = "test_run.log"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = str(v).upper()
        if v not in valid_levels:
            raise ValueError(f"无效的日志级别: {v}, 必须是 {valid_levels}")
        return v

    model_config = ConfigDict(protected_namespaces=())


class TimeoutsConfig(BaseModel):
    """超时配置模型（单位：毫秒）"""
    page_load: int = 60000
    element_wait: int = 10000
    strategy_wait: int = 3000
    poll_interval: int = 500
    api: int = 15000

    @field_validator("*")
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("超时值必须大于0")
        return v

    @model_validator(mode="after")
    def validate_poll_interval(self):
        # 轮询间隔必须远小于等待超时
        if self.poll_interval >= min(self.element_wait, self.strategy_wait):
            raise ValueError(
                f"poll_interval ({self.poll_interval}ms) 必须小于 element_wait/strategy_wait"
            )
        return self

    model_config = ConfigDict(protected_namespaces=())


class AllureConfig(BaseModel):
    """Allure报告配置"""
    results_dir: Path = PROJECT_ROOT / "reports/allure-results"
    attach_screenshots: bool = True
    attach_logs: bool = True

    model_config = ConfigDict(protected_namespaces=())


class PathsConfig(BaseModel):
    """输出目录配置"""
    screenshots: Path = PROJECT_ROOT / "screenshots"
    reports: Path = PROJECT_ROOT / "reports"
    test_data: Path = PROJECT_ROOT / "test_data"

    model_config = ConfigDict(protected_namespaces=())


class SearchConfig(BaseModel):
    """航班搜索默认数据"""
    origin: str = "Istanbul"
    destination: str = "Ankara"
    departure_offset_days: int = 30
    return_offset_days: int = 37
    date_format: str = "%d.%m.%Y"

    @model_validator(mode="after")
    def validate_offsets(self):
        if self.return_offset_days < self.departure_offset_days:
            raise ValueError("return_offset_days 不能早于 departure_offset_days")
        return self


class FilterConfig(BaseModel):
    """出发时间筛选配置"""
    start_time: str = "10:00"
    end_time: str = "17:00"
    sample_size: int = Field(default=5, gt=0)
    # 70% 阈值待产品确认，保持可配置
    verification_threshold: float = Field(default=0.7, gt=0, le=1)
    max_attempts: int = Field(default=3, ge=1, le=3)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v):
        if not _TIME_PATTERN.match(str(v)):
            raise ValueError(f"无效的时间格式: {v}, 必须是 HH:MM")
        return v


class AppConfig(BaseModel):
    """应用级配置模型"""

    # 核心配置
    env: str = "dev"
    locale: str = "tr"
    base_url: str = "https://www.enuygun.com"
    api_base_url: str = "https://petstore.swagger.io/v2"

    # 子配置
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    timeouts: TimeoutsConfig = Field(default_factory=TimeoutsConfig)
    allure: AllureConfig = Field(default_factory=AllureConfig)
    log: LogConfig = Field(default_factory=LogConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    filter: FilterConfig = Field(default_factory=FilterConfig)

    # path
    project_root: Path = PROJECT_ROOT

    model_config = ConfigDict(protected_namespaces=(), extra="ignore")

    @field_validator("env")
    @classmethod
    def validate_env(cls, v):
        valid_envs = ["dev", "staging", "prod"]
        if v not in valid_envs:
            raise ValueError(f"无效环境: {v}, 必须是 {valid_envs}")
        return v

    @field_validator("locale")
    @classmethod
    def validate_locale(cls, v):
        valid_locales = ["tr", "en"]
        if v not in valid_locales:
            raise ValueError(f"无效语言: {v}, 必须是 {valid_locales}")
        return v


class ConfigManager:
    """
    配置管理核心

    优先级（低 -> 高）：模型默认值 -> base.yaml -> {env}.yaml -> APP_ 环境变量 -> 命令行覆盖
    """

    def __init__(self, yaml_loader: Optional[YamlLoader] = None, env_loader: Optional[EnvLoader] = None):
        self._config: Optional[AppConfig] = None
        self._yaml_loader = yaml_loader or YamlLoader()
        self._env_loader = env_loader or EnvLoader()
        self._overrides: Dict[str, Any] = {}

    def _load_config(self) -> AppConfig:
        """加载完整配置"""
        env_config = self._env_loader.load()

        # 环境名可能来自覆盖、APP_ENV 或 ENV
        env_name = (
            self._overrides.get("env")
            or env_config.get("env")
            or os.getenv("ENV", "dev")
        )

        # 1. 加载YAML配置（文件缺失时为空）
        file_config = self._yaml_loader.load_environment(env=env_name)

        # 2. 合并环境变量
        merged = YamlLoader._deep_merge(file_config, env_config)

        # 3. 应用命令行覆盖
        final_config = YamlLoader._deep_merge(merged, self._overrides)
        final_config.setdefault("env", env_name)

        # 4. 创建配置实例
        try:
            return AppConfig(**final_config)
        except ValidationError as e:
            self._handle_validation_error(e)

    def initialize(self) -> None:
        """显式初始化 (通常不需要调用)"""
        if self._config is None:
            self._config = self._load_config()

    def reload(self) -> None:
        """丢弃缓存并重新加载"""
        self._yaml_loader.clear_cache()
        self._config = None
        self.initialize()

    def __getattr__(self, name: str) -> Any:
        """动态属性访问"""
        if name.startswith("_"):
            raise AttributeError(name)

        if self._config is None:
            self.initialize()

        try:
            return getattr(self._config, name)
        except AttributeError:
            available = [k for k in AppConfig.model_fields]
            raise AttributeError(
                f"配置中不存在属性: {name}\n可用属性: {', '.join(available)}"
            ) from None

    def get(self, path: str, default: Any = None) -> Any:
        """
        安全获取嵌套配置
        示例: settings.get("timeouts.page_load", 60000)
        """
        if self._config is None:
            self.initialize()

        current = self._config.model_dump()
        for key in path.split("."):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default
        return current

    def apply_overrides(self, overrides_str: str) -> None:
        """
        应用命令行覆盖
        格式: "key1=value1,key2.subkey=value2"
        """
        if not overrides_str:
            return

        self._overrides = {}
        for pair in overrides_str.split(","):
            if "=" not in pair:
                continue
            key, value = pair.split("=", 1)
            keys = [k.strip() for k in key.strip().split(".")]
            current = self._overrides

            # 构建嵌套字典
            for k in keys[:-1]:
                current = current.setdefault(k, {})
            current[keys[-1]] = self._parse_value(value.strip())

        # 覆盖在下一次访问时生效
        self._config = None

    def _parse_value(self, value: str) -> Any:
        """智能解析配置值类型"""
        # 布尔值
        if value.lower() in ("true", "false"):
            return value.lower() == "true"

        # 时间字符串保持原样（10:00）
        if _TIME_PATTERN.match(value):
            return value

        # 数字
        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        return value

    def to_yaml(self) -> str:
        """生成配置快照YAML"""
        if self._config is None:
            self.initialize()

        data = self._config.model_dump(mode="json")
        return yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)

    @staticmethod
    def _handle_validation_error(error: ValidationError):
        """处理验证错误"""
        messages = []
        for err in error.errors():
            loc = ".".join(str(part) for part in err["loc"])
            messages.append(f"配置项 '{loc}': {err['msg']} (值: {err.get('input')})")

        raise RuntimeError("配置验证失败:\n" + "\n".join(messages)) from None
