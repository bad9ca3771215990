"""Client 测试 fixtures -- httpx.MockTransport 驱动的 ApiClient"""

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest
import pytest_asyncio
from lawdesk.client import ApiClient

BASE_URL = "https://lawdesk.test/api/v1"


def _envelope(data: Any = None, *, success: bool = True, message: str = "", status: int = 200):
    """构造后端统一响应信封"""
    return httpx.Response(
        status,
        json={"success": success, "message": message, "data": data, "errors": {}},
    )


def _task_payload(task_id: int | str = 1, **overrides) -> dict[str, Any]:
    """后端 task JSON（snake_case，ID 为整数）"""
    payload = {
        "id": task_id,
        "title": f"Task {task_id}",
        "description": None,
        "type": "review",
        "status": "todo",
        "priority": "medium",
        "assigned_to": 7,
        "assigned_by": 1,
        "case_id": None,
        "due_date": "2026-03-05T00:00:00Z",
        "estimated_hours": None,
        "actual_hours": None,
        "created_at": "2026-02-27T09:00:00Z",
        "updated_at": "2026-02-27T09:00:00Z",
        "completed_at": None,
        "tags": None,
        "notes": None,
    }
    payload.update(overrides)
    return payload


class RecordingHandler:
    """记录请求并按顺序返回预设响应的 MockTransport handler"""

    def __init__(self, *responses: httpx.Response | Callable[[httpx.Request], httpx.Response]):
        self._responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self._responses.pop(0)
        if callable(response):
            return response(request)
        return response

    def json_body(self, index: int = -1) -> Any:
        return json.loads(self.requests[index].content)


@pytest_asyncio.fixture
async def make_client():
    """返回 (ApiClient, RecordingHandler) 构造器，测试结束后关闭所有客户端"""
    clients: list[ApiClient] = []

    def _make(*responses, token: str = "tok-123") -> tuple[ApiClient, RecordingHandler]:
        handler = RecordingHandler(*responses)
        client = ApiClient(
            base_url=BASE_URL,
            token=token,
            transport=httpx.MockTransport(handler),
        )
        clients.append(client)
        return client, handler

    yield _make

    for client in clients:
        await client.aclose()


@pytest.fixture
def envelope():
    return _envelope


@pytest.fixture
def task_payload():
    return _task_payload
