"""
Petstore 响应校验与测试数据生成工具

校验函数只返回 bool 并记录日志，不抛异常；断言由测试决定。
"""
from __future__ import annotations

import json
import random
from datetime import datetime
from typing import List, Optional

import requests
from pydantic import ValidationError

from models.petstore import Pet
from utils.logger import api_logger

PET_NAMES = ("Buddy", "Max", "Charlie", "Rocky", "Luna", "Bella", "Daisy", "Lucy")
ERROR_FIELDS = ("message", "error", "detail")


# ==================== 响应校验 ====================

def validate_status_code(response: requests.Response, expected: int) -> bool:
    ok = response.status_code == expected
    if not ok:
        api_logger.error(f"Expected status {expected}, got {response.status_code}: {response.text[:200]}")
    return ok


def validate_response_time(response: requests.Response, max_ms: float) -> bool:
    elapsed_ms = response.elapsed.total_seconds() * 1000
    ok = elapsed_ms <= max_ms
    if not ok:
        api_logger.warning(f"Response took {elapsed_ms:.0f}ms (limit {max_ms:.0f}ms)")
    return ok


def validate_required_fields(response: requests.Response, *fields: str) -> bool:
    """响应 JSON 对象包含所有指定字段（值可以为 null）"""
    try:
        body = response.json()
    except ValueError:
        api_logger.error("Response body is not JSON, cannot check required fields")
        return False
    if not isinstance(body, dict):
        api_logger.error(f"Expected a JSON object, got {type(body).__name__}")
        return False
    missing = [f for f in fields if f not in body]
    if missing:
        api_logger.error(f"Missing required fields: {missing}")
    return not missing


def validate_header(response: requests.Response, name: str, expected: Optional[str] = None) -> bool:
    """头存在；给出 expected 时还要求值包含 expected"""
    value = response.headers.get(name)
    if value is None:
        api_logger.error(f"Header '{name}' missing")
        return False
    if expected is not None and expected not in value:
        api_logger.error(f"Header '{name}' is '{value}', expected to contain '{expected}'")
        return False
    return True


def is_valid_json(response: requests.Response) -> bool:
    try:
        json.loads(response.text)
    except ValueError as e:
        api_logger.error(f"Response is not valid JSON: {e}")
        return False
    return True


def extract_error_message(response: requests.Response) -> str:
    """依次取 message / error / detail 字段，都没有时返回原始响应体"""
    try:
        body = response.json()
    except ValueError:
        return response.text or "Unknown error"
    if isinstance(body, dict):
        for key in ERROR_FIELDS:
            if body.get(key):
                return str(body[key])
    return response.text or "Unknown error"


def parse_pet(response: requests.Response) -> Pet:
    """
    将响应体解析为 Pet

    Raises:
        ValueError: 响应体不是 JSON 或不符合 Pet 结构
    """
    try:
        return Pet.model_validate(response.json())
    except ValidationError as e:
        raise ValueError(f"Response is not a Pet: {e}") from e


def parse_pets(response: requests.Response) -> List[Pet]:
    return [Pet.model_validate(item) for item in response.json()]


# ==================== 测试数据 ====================

def generate_unique_pet_name() -> str:
    return f"{random.choice(PET_NAMES)}_{datetime.now():%Y%m%d_%H%M%S}_{random.randint(100, 999)}"


def generate_random_pet_id() -> int:
    return random.randint(1000, 999_999)
