from pathlib import Path
from typing import Any, Dict, Tuple, Union

import yaml

from ._path import PROJECT_ROOT


class YamlLoader:
    """YAML配置加载器"""

    def __init__(self, config_dir: Union[str, Path] = PROJECT_ROOT / "environments"):
        self.config_dir = Path(config_dir)
        self._cache = {}  # 缓存结构: {env: (merged_config, mtime_dict)}

    def load_environment(self, env: str = "dev") -> Dict[str, Any]:
        """
        加载指定环境的YAML配置

        base.yaml 与 {env}.yaml 均为可选；两者都不存在时返回空字典，
        由模型默认值兜底。
        """
        # 检查缓存是否有效
        if env in self._cache:
            cached_config, mtime_dict = self._cache[env]
            if self._is_cache_valid(mtime_dict):
                return cached_config.copy()

        # 1. 加载基础配置
        base_config, base_mtime = self._load_yaml_with_mtime("base.yaml")
        # 2. 加载环境特定配置
        env_file = f"{env}.yaml"
        env_config, env_mtime = self._load_yaml_with_mtime(env_file)

        # 3. 递归合并
        merged = self._deep_merge(base_config, env_config)

        # 4. 缓存结果（包含文件修改时间）
        mtime_dict = {
            "base.yaml": base_mtime,
            env_file: env_mtime
        }
        self._cache[env] = (merged, mtime_dict)
        return merged.copy()

    def _is_cache_valid(self, mtime_dict: Dict[str, float]) -> bool:
        """检查缓存是否有效（基于文件修改时间）"""
        for filename, cached_mtime in mtime_dict.items():
            file_path = self.config_dir / filename
            current_mtime = file_path.stat().st_mtime if file_path.exists() else 0
            if current_mtime != cached_mtime:
                return False
        return True

    def _load_yaml_with_mtime(self, filename: str) -> Tuple[Dict[str, Any], float]:
        """安全加载YAML文件并返回修改时间，文件不存在时返回 ({}, 0)"""
        file_path = self.config_dir / filename

        if not file_path.exists():
            return {}, 0

        mtime = file_path.stat().st_mtime
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"YAML解析错误 ({file_path}): {e}") from e

        if not isinstance(config, dict):
            raise ValueError(f"YAML根节点必须是字典 ({file_path}), 当前类型: {type(config).__name__}")
        return config, mtime

    @classmethod
    def _deep_merge(cls, base: Dict, override: Dict) -> Dict:
        """
        递归合并字典
        - override中的值覆盖base
        - 嵌套字典深度合并
        """
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = cls._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def clear_cache(self):
        """清除缓存"""
        self._cache.clear()
