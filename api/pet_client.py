"""
Swagger Petstore API 客户端

所有调用都经过 _request：记录请求/响应日志（RequestLogger 脱敏）、生成 Allure 步骤，
返回原始 requests.Response，状态码断言交给测试。传输层错误统一包装为 ApiClientError。
"""
from __future__ import annotations

import mimetypes
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

import allure
import requests

from config import settings
from models.petstore import Pet
from utils.logger import api_logger, request_logger

PET = "/pet"
PET_BY_ID = "/pet/{pet_id}"
FIND_BY_STATUS = "/pet/findByStatus"
FIND_BY_TAGS = "/pet/findByTags"
UPLOAD_IMAGE = "/pet/{pet_id}/uploadImage"

# 远大于 petstore 测试数据的 ID
NONEXISTENT_PET_ID = 9_999_999_999


class ApiClientError(Exception):
    """请求没有拿到任何 HTTP 响应（连接失败、超时等）"""

    def __init__(self, method: str, url: str, cause: Exception):
        super().__init__(f"{method} {url} failed: {type(cause).__name__}: {cause}")
        self.method = method
        self.url = url


class PetApiClient:
    """Petstore /pet 资源客户端"""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        """
        Args:
            base_url: API 根地址（默认 settings.api_base_url）
            timeout: 超时时间（秒，默认 settings.timeouts.api / 1000）
            session: 复用的 requests.Session（测试中可注入）
        """
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.timeouts.api / 1000
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def __enter__(self) -> "PetApiClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    # ==================== 核心请求 ====================

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self.base_url}{path}"
        request_id = request_logger.log_request(
            method, url,
            headers=kwargs.get("headers"),
            body=kwargs.get("json", kwargs.get("data")),
            params=kwargs.get("params"),
        )
        with allure.step(f"{method} {path}"):
            start = time.perf_counter()
            try:
                response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            except requests.RequestException as e:
                api_logger.error(f"[{request_id}] {method} {url} failed: {e}")
                raise ApiClientError(method, url, e) from e
            duration_ms = (time.perf_counter() - start) * 1000

        request_logger.log_response(request_id, response.status_code, url, body=response.text,
                                    duration_ms=duration_ms)
        return response

    # ==================== CRUD ====================

    def create_pet(self, pet: Pet) -> requests.Response:
        api_logger.info(f"Creating pet: {pet.name}")
        return self._request("POST", PET, json=pet.to_payload())

    def get_pet(self, pet_id: int) -> requests.Response:
        return self._request("GET", PET_BY_ID.format(pet_id=pet_id))

    def update_pet(self, pet: Pet) -> requests.Response:
        api_logger.info(f"Updating pet: {pet.name} (id={pet.id})")
        return self._request("PUT", PET, json=pet.to_payload())

    def delete_pet(self, pet_id: int, api_key: Optional[str] = None) -> requests.Response:
        headers = {"api_key": api_key} if api_key else None
        return self._request("DELETE", PET_BY_ID.format(pet_id=pet_id), headers=headers)

    # ==================== 查询 ====================

    def find_pets_by_status(self, *statuses: str) -> requests.Response:
        """按状态查询，多个状态以逗号拼接"""
        values = [getattr(s, "value", s) for s in statuses] or ["available"]
        return self._request("GET", FIND_BY_STATUS, params={"status": ",".join(values)})

    def find_pets_by_tags(self, *tags: str) -> requests.Response:
        return self._request("GET", FIND_BY_TAGS, params={"tags": ",".join(tags)})

    def upload_pet_image(self, pet_id: int, file_path: Union[str, Path],
                         metadata: Optional[str] = None) -> requests.Response:
        """
        上传宠物图片（multipart/form-data）

        Raises:
            FileNotFoundError: 本地文件不存在
        """
        file_path = Path(file_path)
        if not file_path.is_file():
            raise FileNotFoundError(f"Image not found: {file_path}")
        content_type = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
        data: Dict[str, str] = {"additionalMetadata": metadata} if metadata else {}
        with file_path.open("rb") as fh:
            return self._request(
                "POST", UPLOAD_IMAGE.format(pet_id=pet_id),
                files={"file": (file_path.name, fh, content_type)},
                data=data,
            )

    # ==================== 负向测试辅助 ====================

    def create_pet_raw(self, body: str) -> requests.Response:
        """原样发送请求体（用于非法 JSON / 非法字段测试）"""
        return self._request("POST", PET, data=body, headers={"Content-Type": "application/json"})

    def update_pet_raw(self, body: str) -> requests.Response:
        return self._request("PUT", PET, data=body, headers={"Content-Type": "application/json"})

    def get_nonexistent_pet(self, pet_id: int = NONEXISTENT_PET_ID) -> requests.Response:
        return self.get_pet(pet_id)

    def delete_nonexistent_pet(self, pet_id: int = NONEXISTENT_PET_ID) -> requests.Response:
        return self.delete_pet(pet_id)
