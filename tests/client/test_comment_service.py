"""TaskCommentService 单元测试

验证评论端点路径、请求体、payload 转换与错误处理。
"""

import pytest
from lawdesk.client import TaskCommentService, comment_from_api
from lawdesk.client.exceptions import ApiError
from pydantic import ValidationError as PydanticValidationError


def _comment_payload(comment_id=1, task_id=5, **overrides):
    payload = {
        "id": comment_id,
        "task_id": task_id,
        "user_id": 7,
        "comment": f"Comment {comment_id}",
        "user": {"id": 7, "name": "Layla", "email": "layla@lawdesk.test"},
        "created_at": "2026-03-01T10:00:00Z",
        "updated_at": "2026-03-01T10:00:00Z",
    }
    payload.update(overrides)
    return payload


class TestCommentFromApi:
    """评论 payload 转换"""

    def test_ids_stringified_and_user_flattened(self):
        comment = comment_from_api(_comment_payload(3))
        assert comment.id == "3"
        assert comment.task_id == "5"
        assert comment.user_id == "7"
        assert comment.user_name == "Layla"
        assert comment.created_at.tzinfo is not None

    def test_missing_user_and_timestamps(self):
        payload = _comment_payload(user=None, user_id=None, created_at=None, updated_at=None)
        comment = comment_from_api(payload)
        assert comment.user_name == ""
        assert comment.user_id == ""
        assert comment.created_at is not None

    def test_invalid_payload(self):
        with pytest.raises(ApiError, match="评论数据不合法"):
            comment_from_api({"id": 1, "task_id": 5})


class TestListComments:
    """GET /tasks/{id}/comments"""

    async def test_plain_list(self, make_client, envelope):
        client, handler = make_client(envelope([_comment_payload(1), _comment_payload(2)]))

        comments = await TaskCommentService(client).list_comments("5")

        assert [c.id for c in comments] == ["1", "2"]
        request = handler.requests[0]
        assert request.method == "GET"
        assert request.url.path.endswith("/tasks/5/comments")

    async def test_paginated_wrapper(self, make_client, envelope):
        client, _ = make_client(envelope({"data": [_comment_payload(4)]}))
        comments = await TaskCommentService(client).list_comments("5")
        assert [c.id for c in comments] == ["4"]

    async def test_failure(self, make_client, envelope):
        client, _ = make_client(envelope(None, success=False, message="forbidden"))
        with pytest.raises(ApiError, match="forbidden"):
            await TaskCommentService(client).list_comments("5")

    async def test_malformed_response(self, make_client, envelope):
        client, _ = make_client(envelope("not a list"))
        with pytest.raises(ApiError, match="评论列表响应格式不合法"):
            await TaskCommentService(client).list_comments("5")


class TestCommentMutations:
    """发表 / 编辑 / 删除"""

    async def test_create_strips_comment(self, make_client, envelope):
        """POST 请求体只含去除首尾空白的 comment"""
        client, handler = make_client(envelope(_comment_payload(9, comment="Filed the motion")))

        created = await TaskCommentService(client).create_comment("5", "  Filed the motion \n")

        request = handler.requests[0]
        assert request.method == "POST"
        assert request.url.path.endswith("/tasks/5/comments")
        assert handler.json_body() == {"comment": "Filed the motion"}
        assert created.id == "9"
        assert created.comment == "Filed the motion"

    async def test_blank_comment_sends_nothing(self, make_client):
        client, handler = make_client()
        with pytest.raises(PydanticValidationError):
            await TaskCommentService(client).create_comment("5", "   ")
        assert handler.requests == []

    async def test_update(self, make_client, envelope):
        client, handler = make_client(envelope(_comment_payload(9, comment="Revised")))

        updated = await TaskCommentService(client).update_comment("5", "9", "Revised")

        request = handler.requests[0]
        assert request.method == "PUT"
        assert request.url.path.endswith("/tasks/5/comments/9")
        assert handler.json_body() == {"comment": "Revised"}
        assert updated.comment == "Revised"

    async def test_delete(self, make_client, envelope):
        client, handler = make_client(envelope(None))

        await TaskCommentService(client).delete_comment("5", "9")

        assert handler.requests[0].method == "DELETE"
        assert handler.requests[0].url.path.endswith("/tasks/5/comments/9")

    async def test_delete_failure(self, make_client, envelope):
        client, _ = make_client(envelope(None, success=False, message="not yours"))
        with pytest.raises(ApiError, match="not yours"):
            await TaskCommentService(client).delete_comment("5", "9")
