"""
Report sink used as a side channel by the resolver/executor/state machine.

One reporter per test (held by the TestContext); entries are append-only so
parallel sessions never interleave.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Protocol, Union, runtime_checkable

import allure

from config import settings

logger = logging.getLogger(__name__)


@runtime_checkable
class ReportSink(Protocol):
    def log_info(self, message: str) -> None: ...

    def log_pass(self, message: str) -> None: ...

    def log_fail(self, message: str) -> None: ...

    def log_skip(self, message: str) -> None: ...

    def attach_screenshot(self, path: Union[str, Path], name: Optional[str] = None) -> None: ...


@dataclass(frozen=True)
class ReportEntry:
    status: str  # info / pass / fail / skip / screenshot
    message: str
    timestamp: datetime = field(default_factory=datetime.now)


class AllureReporter:
    """
    ReportSink writing Allure steps/attachments and mirroring to the logger.
    Allure failures are logged at debug level and never fail the test.
    """

    _LEVELS = {"info": logging.INFO, "pass": logging.INFO, "skip": logging.INFO, "fail": logging.ERROR}
    _ICONS = {"info": "ℹ️", "pass": "✅", "skip": "⏭️", "fail": "❌"}

    def __init__(self, test_name: str = "", log: Optional[logging.Logger] = None,
                 attach_screenshots: Optional[bool] = None):
        self.test_name = test_name
        self._log = log or logger
        self.attach_screenshots = (
            settings.allure.attach_screenshots if attach_screenshots is None else attach_screenshots
        )
        self._entries: List[ReportEntry] = []
        self._lock = threading.Lock()

    @property
    def entries(self) -> List[ReportEntry]:
        with self._lock:
            return list(self._entries)

    def failures(self) -> List[ReportEntry]:
        return [e for e in self.entries if e.status == "fail"]

    def _append(self, status: str, message: str) -> None:
        with self._lock:
            self._entries.append(ReportEntry(status, message))

    def _record(self, status: str, message: str) -> None:
        self._append(status, message)
        self._log.log(self._LEVELS[status], "%s %s", self._ICONS[status], message)
        try:
            with allure.step(f"{status.upper()}: {message}"):
                pass
        except Exception:
            self._log.debug("Allure step failed for %s", message, exc_info=True)

    def log_info(self, message: str) -> None:
        self._record("info", message)

    def log_pass(self, message: str) -> None:
        self._record("pass", message)

    def log_fail(self, message: str) -> None:
        self._record("fail", message)
        try:
            allure.attach(message, name="failure", attachment_type=allure.attachment_type.TEXT)
        except Exception:
            self._log.debug("Allure attach failed for failure message", exc_info=True)

    def log_skip(self, message: str) -> None:
        self._record("skip", message)

    def attach_screenshot(self, path: Union[str, Path], name: Optional[str] = None) -> None:
        path = Path(path)
        self._append("screenshot", str(path))
        if not path.exists():
            self._log.warning("Screenshot not found, not attached: %s", path)
            return
        if not self.attach_screenshots:
            self._log.debug("Screenshot attachments disabled, kept on disk: %s", path)
            return
        try:
            allure.attach.file(str(path), name=name or path.stem, attachment_type=allure.attachment_type.PNG)
        except Exception:
            self._log.debug("Allure attach failed for %s", path, exc_info=True)
