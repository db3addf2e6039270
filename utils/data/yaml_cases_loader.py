"""
YAML 测试数据加载

文件结构：{用例组: 用例字典 | [用例字典, ...]}，统一返回 {用例组: [用例字典, ...]}。
"""
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

# 测试数据文件大小上限
MAX_FILE_SIZE = 1024 * 1024

CaseGroups = Dict[str, List[Dict[str, Any]]]


class InvalidYamlFormatError(ValueError):
    """YAML 用例文件格式错误"""
    pass


def load_yaml_cases(file_path: Union[str, Path]) -> CaseGroups:
    """
    加载并校验 YAML 用例文件

    Raises:
        FileNotFoundError: 文件不存在
        InvalidYamlFormatError: 语法错误、根不是字典或用例组格式非法
    """
    file_path = Path(file_path)
    if not file_path.is_file():
        raise FileNotFoundError(f"YAML 文件不存在: {file_path}")
    if file_path.stat().st_size > MAX_FILE_SIZE:
        raise InvalidYamlFormatError(f"YAML 文件过大 (>1MB): {file_path}")

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise InvalidYamlFormatError(f"YAML 语法错误 in {file_path}:\n{e}") from e
    except UnicodeDecodeError as e:
        raise InvalidYamlFormatError(f"YAML 文件编码错误（需 UTF-8）in {file_path}") from e

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise InvalidYamlFormatError(f"YAML 根必须是字典，当前类型: {type(raw).__name__} ({file_path})")

    return {group: _normalize_group(group, value, file_path) for group, value in raw.items()}


def _normalize_group(group: str, value: Any, file_path: Path) -> List[Dict[str, Any]]:
    if isinstance(value, dict):
        cases = [value]
    elif isinstance(value, list):
        cases = value
    else:
        raise _format_error(group, f"值必须是字典或字典列表，当前: {value!r}", file_path)

    if not cases:
        raise _format_error(group, "不能为空列表", file_path)
    for idx, case in enumerate(cases, start=1):
        if not isinstance(case, dict):
            raise _format_error(group, f"第 {idx} 个用例必须是字典，当前: {case!r}", file_path)
        if not case:
            raise _format_error(group, f"第 {idx} 个用例不能为空字典", file_path)
    return cases


def _format_error(group: str, message: str, file_path: Path) -> InvalidYamlFormatError:
    return InvalidYamlFormatError(f"YAML 格式验证失败 in {file_path}\n组 '{group}': {message}")
