"""ApiClient -- 后端 REST API 调用封装

JSON over HTTPS + Bearer 令牌。后端统一返回信封：
{"success": bool, "message": str, "data": ..., "errors": {...}}
"""

import time
from typing import Any

import httpx
import structlog

from .config import DEFAULT_API_BASE_URL, ApiConfig
from .exceptions import ApiError, ApiUnreachableError, UnauthorizedError

log = structlog.get_logger()

# 连接类异常类型集合（触发 ApiUnreachableError）
_CONNECTION_ERROR_TYPES = (
    ConnectionError,
    TimeoutError,
    httpx.TransportError,
)


class ApiClient:
    """后端 REST API 客户端

    持有一个 httpx.AsyncClient，使用完毕后需 aclose()（或 async with）。
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE_URL,
        token: str = "",
        timeout_s: int = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """初始化 API 客户端

        Args:
            base_url: API 基础 URL
            token: Bearer 令牌，空字符串表示匿名
            timeout_s: 请求超时（秒）
            transport: 自定义 httpx transport（测试时注入 MockTransport）
        """
        self._base_url = base_url.rstrip("/")
        self._token: str | None = token or None
        self._http = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout_s,
            transport=transport,
        )

    @classmethod
    def from_config(
        cls,
        config: ApiConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ApiClient":
        return cls(
            base_url=config.base_url,
            token=config.api_token.get_secret_value(),
            timeout_s=config.timeout_s,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def token(self) -> str | None:
        return self._token

    def set_token(self, token: str | None) -> None:
        self._token = token or None

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """发送请求并返回解析后的响应信封

        Raises:
            ApiUnreachableError: 连接失败或超时
            UnauthorizedError: 401，本地令牌已清除
            ApiError: 其他非 2xx 响应，或信封 success=false
        """
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        start_time = time.monotonic()
        try:
            response = await self._http.request(
                method,
                path,
                json=json,
                params=params,
                headers=headers,
            )
        except _CONNECTION_ERROR_TYPES as e:
            log.error(
                "api_request_failed",
                method=method,
                path=path,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise ApiUnreachableError(self._base_url, e) from e

        duration_ms = int((time.monotonic() - start_time) * 1000)
        log.debug(
            "api_request_completed",
            method=method,
            path=path,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )

        if response.status_code == 401:
            self._token = None
            raise UnauthorizedError()

        body = _parse_json(response)

        if response.is_error:
            message = body.get("message") if isinstance(body, dict) else None
            raise ApiError(
                message or f"HTTP {response.status_code}",
                status_code=response.status_code,
                recoverable=response.status_code >= 500,
            )

        if not isinstance(body, dict):
            raise ApiError("响应格式不合法", status_code=response.status_code)

        if body.get("success") is False:
            raise ApiError(
                body.get("message") or "请求失败",
                status_code=response.status_code,
                recoverable=False,
            )

        return body

    async def fetch_data(
        self,
        method: str,
        path: str,
        *,
        error_message: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """发送请求并返回信封中的 data；data 缺失时以 error_message 抛出 ApiError"""
        body = await self.request(method, path, json=json, params=params)
        data = body.get("data")
        if data is None:
            raise ApiError(body.get("message") or error_message)
        return data


def _parse_json(response: httpx.Response) -> Any:
    """解析响应 JSON，空响应或非法 JSON 返回空字典"""
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return {}
