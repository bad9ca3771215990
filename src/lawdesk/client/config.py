"""ApiConfig -- 后端连接参数（LAWDESK_API_* 环境变量）"""

import os

import structlog
from pydantic import BaseModel, Field, SecretStr

log = structlog.get_logger()

DEFAULT_API_BASE_URL = "http://127.0.0.1:8000/api/v1"
DEFAULT_TIMEOUT_S = 30


class ApiConfig(BaseModel):
    """TaskService / UserService 共用的 ApiClient 参数"""

    base_url: str = DEFAULT_API_BASE_URL
    api_token: SecretStr = SecretStr("")
    timeout_s: int = Field(default=DEFAULT_TIMEOUT_S, ge=1)


def _timeout_from_env(raw: str) -> int | None:
    """正整数秒；其它值记录警告后交给默认值"""
    if raw.isdigit() and int(raw) >= 1:
        return int(raw)
    log.warning(
        "invalid_timeout_config",
        env_var="LAWDESK_API_TIMEOUT_S",
        value=raw,
        fallback=DEFAULT_TIMEOUT_S,
    )
    return None


def load_api_config() -> ApiConfig:
    """LAWDESK_API_BASE_URL / LAWDESK_API_TOKEN / LAWDESK_API_TIMEOUT_S，未设置的字段取默认值"""
    env = os.environ
    config = ApiConfig(
        base_url=env.get("LAWDESK_API_BASE_URL") or DEFAULT_API_BASE_URL,
        api_token=SecretStr(env.get("LAWDESK_API_TOKEN", "")),
    )
    if raw_timeout := env.get("LAWDESK_API_TIMEOUT_S"):
        if (timeout_s := _timeout_from_env(raw_timeout.strip())) is not None:
            config.timeout_s = timeout_s
    return config
