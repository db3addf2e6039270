"""
ScreenshotHelper - 截图辅助类

通过 Driver 接口截取当前页面，负责安全文件名、截图历史、
自动清理以及（可选）Allure 附件。
"""
from __future__ import annotations

import json
import logging
import re
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import allure

from config import settings
from utils.driver import Driver

logger = logging.getLogger(__name__)


# ==================== 元数据模型 ====================

class ScreenshotMetadata:
    """截图元数据"""

    def __init__(self, name: str, filepath: str, timestamp: float, url: str, title: str,
                 size: Optional[int] = None):
        self.name = name
        self.filepath = filepath
        self.timestamp = timestamp
        self.url = url
        self.title = title
        self.size = size

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "name": self.name,
            "filepath": self.filepath,
            "timestamp": self.timestamp,
            "datetime": datetime.fromtimestamp(self.timestamp).isoformat(),
            "url": self.url,
            "title": self.title,
            "size_kb": round(self.size / 1024, 2) if self.size else None,
        }

    def __repr__(self) -> str:
        return f"<ScreenshotMetadata {self.name}>"


# ==================== 核心辅助类 ====================

class ScreenshotHelper:
    """
    截图辅助类

    - capture(label) -> 截图路径（供 ActionExecutor / 筛选状态机失败时调用）
    - 截图历史与自动清理
    - 安全路径处理（防止路径穿越）
    """

    def __init__(
            self,
            driver: Driver,
            screenshot_dir: Optional[Union[str, Path]] = None,
            auto_cleanup: bool = False,
            max_screenshots: int = 100,
            enable_allure: bool = False
    ):
        """
        Args:
            driver: 浏览器驱动
            screenshot_dir: 截图保存目录（默认 settings.paths.screenshots）
            auto_cleanup: 是否自动清理旧截图
            max_screenshots: 最大截图数量（用于自动清理）
            enable_allure: 截图后直接附加到 Allure（报告器已附加时保持关闭）
        """
        self.driver = driver
        self.screenshot_dir = Path(screenshot_dir or settings.paths.screenshots).resolve()
        self.auto_cleanup = auto_cleanup
        self.max_screenshots = max_screenshots
        self.enable_allure = enable_allure

        self.screenshot_dir.mkdir(parents=True, exist_ok=True)
        self._history: List[ScreenshotMetadata] = []

        logger.debug(f"ScreenshotHelper initialized: {self.screenshot_dir}")

    # ==================== 安全工具方法 ====================

    @staticmethod
    def _sanitize_filename(name: str) -> str:
        """
        清洗文件名，防止路径穿越攻击

        替换所有非字母数字字符为下划线，保留连字符和点
        """
        return re.sub(r'[^\w\-_\.]', '_', name).strip('_')

    def _get_safe_filepath(self, name: str, ext: str = "png") -> Path:
        """
        生成安全的文件路径，确保最终路径在 screenshot_dir 目录内
        """
        safe_name = self._sanitize_filename(name) or "screenshot"
        filepath = (self.screenshot_dir / f"{safe_name}.{ext.lstrip('.')}").resolve()

        try:
            filepath.relative_to(self.screenshot_dir)
        except ValueError:
            raise ValueError(f"Invalid filename '{name}' - path traversal attempt detected")

        return filepath

    # ==================== 公共截图 API ====================

    def capture(self, label: str) -> Path:
        """
        截取当前页面并返回文件路径

        文件名格式: {label}_{YYYYmmdd_HHMMSS_mmm}.png

        Raises:
            Exception: 驱动截图失败（残留文件会被清理）
        """
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")[:-3]
        name = f"{label}_{timestamp}"
        filepath = self._get_safe_filepath(name)

        try:
            self.driver.screenshot(filepath)
        except Exception:
            if filepath.exists():
                filepath.unlink()
            logger.error(f"Screenshot capture failed: {label}", exc_info=True)
            raise

        metadata = ScreenshotMetadata(
            name=name,
            filepath=str(filepath),
            timestamp=time.time(),
            url=self._safe_call(self.driver.current_url),
            title=self._safe_call(self.driver.title),
            size=filepath.stat().st_size if filepath.exists() else None,
        )
        self._history.append(metadata)

        if self.auto_cleanup and len(self._history) > self.max_screenshots:
            self._cleanup_old_screenshots()

        if self.enable_allure:
            self._attach_to_allure(filepath, name)

        logger.info(f"Screenshot saved: {filepath}")
        return filepath

    @staticmethod
    def _safe_call(fn) -> str:
        # 页面崩溃时仍要保留截图本身
        try:
            return fn()
        except Exception:
            logger.debug("Metadata lookup failed", exc_info=True)
            return ""

    # ==================== 截图管理 ====================

    def get_history(self) -> List[ScreenshotMetadata]:
        """获取截图历史（返回副本避免外部修改）"""
        return self._history.copy()

    def get_latest_screenshot(self) -> Optional[ScreenshotMetadata]:
        """获取最新截图"""
        return self._history[-1] if self._history else None

    def cleanup_screenshots(self, keep_latest: Optional[int] = None) -> int:
        """
        清理截图目录下的 png 文件

        Args:
            keep_latest: 保留最新 N 个，None 表示全部删除

        Returns:
            int: 删除的文件数量
        """
        files = sorted(self.screenshot_dir.glob("*.png"), key=lambda f: f.stat().st_mtime)
        if keep_latest is not None:
            files = files[:-keep_latest] if len(files) > keep_latest else []

        deleted = 0
        for file in files:
            try:
                file.unlink()
                deleted += 1
            except OSError as e:
                logger.warning(f"Failed to delete {file.name}: {e}")

        self._history = [m for m in self._history if Path(m.filepath).exists()]
        logger.info(f"Cleaned up {deleted} screenshots from {self.screenshot_dir}")
        return deleted

    def _cleanup_old_screenshots(self) -> None:
        """自动清理旧截图（保留最新 max_screenshots 个）"""
        for metadata in self._history[:-self.max_screenshots]:
            filepath = Path(metadata.filepath)
            if filepath.exists():
                try:
                    filepath.unlink()
                except OSError as e:
                    logger.warning(f"Failed to auto-delete {filepath.name}: {e}")
        self._history = self._history[-self.max_screenshots:]

    def export_history(self, filepath: Union[str, Path]) -> None:
        """导出截图历史到 JSON 文件"""
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump([m.to_dict() for m in self._history], f, ensure_ascii=False, indent=2)
        logger.info(f"Exported {len(self._history)} screenshot records to {filepath}")

    @staticmethod
    def _attach_to_allure(filepath: Path, name: str) -> None:
        """将截图附加到 Allure 报告（带容错）"""
        try:
            allure.attach.file(str(filepath), name=name, attachment_type=allure.attachment_type.PNG)
        except Exception as e:
            logger.warning(f"Failed to attach screenshot to Allure: {e}")
