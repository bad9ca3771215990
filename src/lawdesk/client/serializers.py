"""snake_case API payload 与 Task 模型之间的转换"""

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from lawdesk.core.models import Task, TaskComment, TaskDraft, TaskFilter, TaskPatch
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ApiError

# 这些字段为 null 时使用模型默认值
_DEFAULTED_FIELDS = ("type", "status", "priority", "tags")

# 后端可能返回整数 ID
_ID_FIELDS = ("id", "assigned_to", "assigned_by", "case_id")


def task_from_api(payload: Mapping[str, Any]) -> Task:
    """把后端 task payload 转换为 Task

    - created_at / updated_at 缺失时取当前时间
    - assigned_to 缺失时为空字符串
    - 嵌套对象（case、documents、comments 等）忽略

    Raises:
        ApiError: payload 不是合法的任务记录
    """
    data = dict(payload)
    now = datetime.now(UTC)

    for key in _ID_FIELDS:
        if data.get(key) is not None:
            data[key] = str(data[key])
    for key in _DEFAULTED_FIELDS:
        if data.get(key) is None:
            data.pop(key, None)

    data["assigned_to"] = data.get("assigned_to") or ""
    data["created_at"] = data.get("created_at") or now
    data["updated_at"] = data.get("updated_at") or now

    try:
        return Task.model_validate(data)
    except PydanticValidationError as e:
        raise ApiError(f"任务数据不合法: {e.errors()[0].get('msg', e)}") from e


def draft_to_api(draft: TaskDraft) -> dict[str, Any]:
    """新建表单 -> 请求体（省略空值）"""
    body = draft.model_dump(mode="json", exclude_none=True)
    body.setdefault("type", "other")
    return body


def patch_to_api(patch: TaskPatch) -> dict[str, Any]:
    """补丁 -> 请求体（仅显式设置的字段）"""
    return patch.model_dump(mode="json", exclude_unset=True)


def filter_to_params(
    task_filter: TaskFilter | None,
    page: int | None = None,
    limit: int | None = None,
) -> dict[str, Any]:
    """筛选条件 -> 查询参数（丢弃空值）"""
    params: dict[str, Any] = {}
    if task_filter is not None:
        for key, value in task_filter.model_dump(mode="json", exclude_none=True).items():
            if value != "":
                params[key] = value
    if page is not None:
        params["page"] = page
    if limit is not None:
        params["limit"] = limit
    return params


def comment_from_api(payload: Mapping[str, Any]) -> TaskComment:
    """把后端评论 payload 转换为 TaskComment

    嵌套的 user 对象只保留显示名。

    Raises:
        ApiError: payload 不是合法的评论记录
    """
    data = dict(payload)
    now = datetime.now(UTC)

    for key in ("id", "task_id", "user_id"):
        if data.get(key) is not None:
            data[key] = str(data[key])
    user = data.pop("user", None)
    data["user_id"] = data.get("user_id") or ""
    data["user_name"] = str(user.get("name") or "") if isinstance(user, Mapping) else ""
    data["created_at"] = data.get("created_at") or now
    data["updated_at"] = data.get("updated_at") or now

    try:
        return TaskComment.model_validate(data)
    except PydanticValidationError as e:
        raise ApiError(f"评论数据不合法: {e.errors()[0].get('msg', e)}") from e
