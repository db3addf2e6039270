"""
环境变量加载器
负责从 .env 文件与系统环境变量中读取 APP_ 前缀的配置覆盖
"""
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from ._path import PROJECT_ROOT

# 常见 CI 平台标记变量
_CI_ENV_VARS = {
    "GITHUB_ACTIONS": "github_actions",
    "GITLAB_CI": "gitlab_ci",
    "JENKINS_HOME": "jenkins",
    "CIRCLECI": "circleci",
    "CI": "generic_ci",
}


class EnvLoader:
    """环境变量加载器"""

    def __init__(self, prefix: str = "APP_", nested_delimiter: str = "__",
                 env_file: Optional[Path] = None):
        self.prefix = prefix
        self.nested_delimiter = nested_delimiter
        self.env_file = Path(env_file or os.getenv("ENV_FILE", PROJECT_ROOT / ".env"))
        self._dotenv_loaded = False

    def load(self) -> Dict[str, Any]:
        """
        加载环境变量配置

        Returns:
            嵌套字典，例如 APP_TIMEOUTS__ELEMENT_WAIT=5000 -> {"timeouts": {"element_wait": 5000}}
        """
        if not self._dotenv_loaded:
            # .env 不覆盖已经存在的系统环境变量
            if self.env_file.exists():
                load_dotenv(self.env_file, override=False)
            self._dotenv_loaded = True

        result: Dict[str, Any] = {}
        for key, value in os.environ.items():
            if not key.startswith(self.prefix):
                continue
            clean_key = key[len(self.prefix):].lower()
            parts = clean_key.split(self.nested_delimiter)
            current = result
            for part in parts[:-1]:
                current = current.setdefault(part, {})
            current[parts[-1]] = self._convert_value(value)

        # CI 环境默认无头运行（显式配置优先）
        if self.detect_ci() and "headless" not in result.get("browser", {}):
            result.setdefault("browser", {})["headless"] = True

        return result

    @staticmethod
    def detect_ci() -> Optional[str]:
        """检测当前是否运行在 CI 环境，返回平台名称"""
        for var, name in _CI_ENV_VARS.items():
            if os.getenv(var):
                return name
        return None

    @classmethod
    def _convert_value(cls, value: str) -> Any:
        """字符串转换为布尔/数字/列表"""
        if value.lower() in ("true", "false"):
            return value.lower() == "true"
        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass
        if value.startswith("[") and value.endswith("]"):
            items = value[1:-1].split(",")
            return [cls._convert_value(item.strip()) for item in items if item.strip()]
        return value
