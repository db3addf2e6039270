"""
日志配置模块

✅ 预编译正则脱敏（API key / Authorization / 邮箱）
✅ 处理器工厂统一创建与回收文件句柄
✅ 延迟初始化，避免模块导入时重复注册处理器
✅ HTTP 请求/响应日志与 Allure 日志附件
"""

import atexit
import hashlib
import json
import logging
import re
import sys
import threading
import traceback
from contextlib import contextmanager
from datetime import datetime, timezone
from functools import lru_cache, wraps
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set

import allure

from config import settings


# ==================== 配置集中管理 ====================

class LogConfig:
    """日志配置集中管理"""
    LOG_DIR = Path(settings.log.log_dir)
    LOG_LEVEL = settings.log.log_level
    MAIN_LOG_FILE = settings.log.log_file
    BACKUP_COUNT = 7
    MAX_BYTES = 10 * 1024 * 1024  # 10MB
    ENABLE_COLORS = sys.stdout.isatty()
    CONSOLE_FORMAT = "%(asctime)s %(levelname)s [%(name)s:%(lineno)d] %(message)s"
    FILE_FORMAT = "%(asctime)s %(levelname)s [%(name)s:%(module)s:%(funcName)s:%(lineno)d] %(message)s"
    SENSITIVE_KEYS: Set[str] = {
        'password', 'token', 'api_key', 'apikey', 'secret',
        'authorization', 'cookie', 'x-api-key'
    }


# ==================== 敏感信息脱敏 ====================

class _PatternCache:
    """预编译正则模式缓存"""
    patterns = [
        (re.compile(r'(?i)("password"\s*:\s*")[^"]+(")'), r'\1******\2'),
        (re.compile(r'(?i)("api[_-]?key"\s*:\s*")[^"]+(")'), r'\1******\2'),
        (re.compile(r'(?i)(api[_-]?key=)[^&\s]+'), r'\1******'),
        (re.compile(r'(?i)(bearer\s+)[A-Za-z0-9\-._~+/]+=*'), r'\1******'),
        (re.compile(r'([a-zA-Z0-9._%+-]+)@([a-zA-Z0-9.-]+\.[a-zA-Z]{2,})'), r'***@\2'),
    ]

@lru_cache(maxsize=128)
def _mask_cached(text: str) -> str:
    """LRU缓存脱敏结果（适用于重复日志消息）"""
    return _apply_patterns(text)


def _apply_patterns(text: str) -> str:
    for pattern, repl in _PatternCache.patterns:
        text = pattern.sub(repl, text)
    return text


def mask_sensitive_data(message: Any) -> Any:
    """敏感信息脱敏（非字符串原样返回）"""
    if not isinstance(message, str):
        return message
    return _mask_cached(message) if len(message) < 500 else _apply_patterns(message)


# ==================== 彩色格式化器 ====================

class ColorCodes:
    RESET = "\x1b[0m"
    CYAN = "\x1b[36m"
    GREEN = "\x1b[32m"
    YELLOW = "\x1b[33m"
    RED = "\x1b[31m"
    CRITICAL = "\x1b[1m\x1b[41m\x1b[37m"


class ColoredFormatter(logging.Formatter):
    LEVEL_COLORS = {
        logging.DEBUG: ColorCodes.CYAN,
        logging.INFO: ColorCodes.GREEN,
        logging.WARNING: ColorCodes.YELLOW,
        logging.ERROR: ColorCodes.RED,
        logging.CRITICAL: ColorCodes.CRITICAL,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, "")
        if not color:
            return super().format(record)
        original = record.levelname
        try:
            record.levelname = f"{color}{record.levelname}{ColorCodes.RESET}"
            return super().format(record)
        finally:
            record.levelname = original  # 确保恢复


# ==================== 处理器工厂 ====================

class HandlerFactory:
    """日志处理器工厂 - 统一管理资源"""
    _handlers: List[logging.Handler] = []
    _lock = threading.Lock()

    @classmethod
    def _ensure_log_dir(cls) -> Path:
        """创建日志目录，失败时降级到当前目录"""
        try:
            LogConfig.LOG_DIR.mkdir(parents=True, exist_ok=True)
            return LogConfig.LOG_DIR
        except OSError as e:
            sys.stderr.write(f"Failed to create log directory: {e}\n")
            return Path.cwd()

    @classmethod
    def create_timed_handler(cls, filename: str, level: int, when: str = "midnight") -> logging.Handler:
        handler = TimedRotatingFileHandler(
            filename=cls._ensure_log_dir() / filename,
            when=when,
            interval=1,
            backupCount=LogConfig.BACKUP_COUNT,
            encoding="utf-8",
            delay=True  # 延迟打开文件直到首次写入
        )
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(LogConfig.FILE_FORMAT, "%Y-%m-%d %H:%M:%S"))
        cls._register(handler)
        return handler

    @classmethod
    def create_rotating_handler(cls, filename: str, level: int) -> logging.Handler:
        handler = RotatingFileHandler(
            filename=cls._ensure_log_dir() / filename,
            maxBytes=LogConfig.MAX_BYTES,
            backupCount=5,
            encoding="utf-8",
            delay=True
        )
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(LogConfig.FILE_FORMAT, "%Y-%m-%d %H:%M:%S"))
        cls._register(handler)
        return handler

    @classmethod
    def create_console_handler(cls, level: int, enable_colors: bool) -> logging.Handler:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        if enable_colors and LogConfig.ENABLE_COLORS:
            handler.setFormatter(ColoredFormatter(LogConfig.CONSOLE_FORMAT, "%H:%M:%S"))
        else:
            handler.setFormatter(logging.Formatter(LogConfig.CONSOLE_FORMAT, "%Y-%m-%d %H:%M:%S"))
        cls._register(handler)
        return handler

    @classmethod
    def _register(cls, handler: logging.Handler) -> None:
        with cls._lock:
            cls._handlers.append(handler)

    @classmethod
    def cleanup(cls) -> None:
        """进程退出时关闭所有处理器"""
        for handler in cls._handlers:
            try:
                handler.close()
            except Exception as e:
                sys.stderr.write(f"Failed to close log handler: {e}\n")


atexit.register(HandlerFactory.cleanup)


# ==================== 敏感数据过滤器 ====================

class SensitiveDataFilter(logging.Filter):
    """日志记录脱敏过滤器"""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = mask_sensitive_data(record.msg)
        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    k: "******" if _is_sensitive_key(k) else mask_sensitive_data(v)
                    for k, v in record.args.items()
                }
            else:
                record.args = tuple(mask_sensitive_data(arg) for arg in record.args)
        return True


def _is_sensitive_key(key: Any) -> bool:
    key_str = str(key).lower()
    return any(s in key_str for s in LogConfig.SENSITIVE_KEYS)


# ==================== 请求日志 ====================

class RequestLogger:
    """HTTP请求/响应日志记录器"""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def log_request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict] = None,
        body: Optional[Any] = None,
        params: Optional[Dict] = None,
    ) -> str:
        request_id = hashlib.sha256(
            f"{method}{url}{datetime.now(timezone.utc).timestamp()}".encode()
        ).hexdigest()[:12]

        log_data = {
            "request_id": request_id,
            "method": method.upper(),
            "url": self._sanitize_url(url),
            "params": self._sanitize_dict(params or {}),
            "headers": self._sanitize_dict(headers or {}),
            "body_preview": self._preview_body(body),
        }

        self.logger.debug("HTTP Request: %s", json.dumps(log_data, ensure_ascii=False, default=str))
        return request_id

    def log_response(
        self,
        request_id: str,
        status_code: int,
        url: str,
        body: Optional[Any] = None,
        duration_ms: float = 0.0,
    ) -> None:
        log_data = {
            "request_id": request_id,
            "status_code": status_code,
            "url": self._sanitize_url(url),
            "body_preview": self._preview_body(body),
            "duration_ms": round(duration_ms, 2),
        }

        level = logging.INFO if 200 <= status_code < 400 else logging.WARNING
        self.logger.log(level, "HTTP Response: %s", json.dumps(log_data, ensure_ascii=False, default=str))

    @staticmethod
    def _sanitize_url(url: str) -> str:
        """URL脱敏（移除查询参数中的敏感信息）"""
        if '?' not in url:
            return url
        base, query = url.split('?', 1)
        sanitized = [
            f"{p.split('=')[0]}=******" if _is_sensitive_key(p.split('=')[0]) else p
            for p in query.split('&')
        ]
        return f"{base}?{'&'.join(sanitized)}"

    @staticmethod
    def _sanitize_dict(d: Dict) -> Dict:
        return {k: "******" if _is_sensitive_key(k) else v for k, v in d.items()}

    @staticmethod
    def _preview_body(body: Any) -> str:
        if body is None:
            return ""
        if isinstance(body, (dict, list)):
            preview = json.dumps(body, ensure_ascii=False, default=str)
        elif isinstance(body, bytes):
            preview = f"<{len(body)} bytes>"
        else:
            preview = str(body)
        preview = mask_sensitive_data(preview)
        return preview[:500] + "..." if len(preview) > 500 else preview


# ==================== Playwright/Allure 集成 ====================

def setup_playwright_logging(page, logger: logging.Logger) -> None:
    """把浏览器控制台和页面异常转发到日志"""
    level_map = {'error': logging.ERROR, 'warning': logging.WARNING, 'info': logging.INFO}

    def console_handler(msg):
        logger.log(level_map.get(msg.type, logging.DEBUG), "[Browser] %s", msg.text)

    page.on("console", console_handler)
    page.on("pageerror", lambda err: logger.error("[Page Error] %s", err))


def attach_logs_to_allure(max_chars: int = 100_000) -> None:
    """把本次运行的主日志附加到 Allure（allure.attach_logs 关闭时不附加；失败时仅记录 debug）"""
    if not settings.allure.attach_logs:
        return
    log_file = LogConfig.LOG_DIR / LogConfig.MAIN_LOG_FILE
    if not log_file.exists() or log_file.stat().st_size == 0:
        return
    try:
        with open(log_file, 'r', encoding='utf-8', errors='replace') as f:
            content = f.read()[-max_chars:]
        allure.attach(content, name=log_file.stem, attachment_type=allure.attachment_type.TEXT)
    except Exception:
        logging.getLogger(__name__).debug("Failed to attach %s", log_file, exc_info=True)


# ==================== 主日志配置 ====================

_setup_lock = threading.Lock()


def setup_logger(
    name: str = "automation",
    log_level: Optional[str] = None,
    log_to_console: bool = True,
    log_to_file: bool = True,
    enable_colors: bool = True,
) -> logging.Logger:
    """
    配置并返回命名日志记录器（重复调用不会重复注册处理器）
    """
    logger = logging.getLogger(name)

    with _setup_lock:
        if logger.handlers:
            return logger

        level = getattr(logging, (log_level or LogConfig.LOG_LEVEL).upper(), logging.INFO)
        logger.setLevel(level)
        logger.propagate = False
        logger.addFilter(SensitiveDataFilter())

        if log_to_console:
            logger.addHandler(HandlerFactory.create_console_handler(level, enable_colors))

        if log_to_file:
            # 主日志（按天轮转）
            logger.addHandler(HandlerFactory.create_timed_handler(LogConfig.MAIN_LOG_FILE, logging.DEBUG))
            # 错误日志（按大小轮转）
            logger.addHandler(HandlerFactory.create_rotating_handler(
                f"error_{datetime.now().strftime('%Y%m%d')}.log", logging.ERROR
            ))

        if name == "automation":
            logger.info("=" * 70)
            logger.info("✅ Logger initialized: %s | Level: %s", name, logging.getLevelName(level))
            logger.info("📁 Log directory: %s", LogConfig.LOG_DIR.resolve())
            logger.info("🌐 Environment: %s | Locale: %s", settings.env, settings.locale)
            logger.info("=" * 70)

        return logger


# ==================== 全局日志实例（延迟初始化） ====================

class LazyLogger:
    """延迟初始化日志记录器，避免模块加载时副作用"""
    _instances: Dict[str, logging.Logger] = {}
    _lock = threading.Lock()

    @classmethod
    def get(cls, name: str, **kwargs) -> logging.Logger:
        if name not in cls._instances:
            with cls._lock:
                if name not in cls._instances:
                    cls._instances[name] = setup_logger(name, **kwargs)
        return cls._instances[name]


logger = LazyLogger.get("automation")
api_logger = LazyLogger.get("api", log_level="DEBUG")
request_logger = RequestLogger(api_logger)


# ==================== 辅助工具 ====================

def log_exception(logger: logging.Logger = logger, exc: Optional[BaseException] = None, context: str = "") -> None:
    """记录异常及其堆栈"""
    if exc is None:
        exc = sys.exc_info()[1]
        if exc is None:
            return
    tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    msg = f"Exception in {context}: {exc}" if context else str(exc)
    logger.error("%s\nTraceback:\n%s", msg, tb)


def log_step(step_name: str, logger: logging.Logger = logger) -> Callable:
    """步骤跟踪装饰器，同时生成 Allure 步骤"""
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            logger.info("▶️ Step: %s", step_name)
            with allure.step(step_name):
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    logger.error("❌ Step failed: %s | Error: %s", step_name, e)
                    raise
            logger.info("✅ Step completed: %s", step_name)
            return result
        return wrapper
    return decorator


@contextmanager
def log_duration(step_name: str, logger: logging.Logger = logger):
    """执行时间跟踪上下文管理器"""
    start = datetime.now()
    logger.debug("⏱️ Starting: %s", step_name)
    try:
        yield
    finally:
        duration_ms = (datetime.now() - start).total_seconds() * 1000
        logger.debug("✅ Completed: %s (%.2fms)", step_name, duration_ms)


__all__ = [
    "logger", "api_logger", "request_logger", "setup_logger", "LazyLogger", "LogConfig",
    "RequestLogger", "SensitiveDataFilter", "mask_sensitive_data",
    "setup_playwright_logging", "attach_logs_to_allure",
    "log_exception", "log_step", "log_duration",
]
