"""TaskComment Domain Model

任务下的评论串。评论不参与通知推导，也不进入 TaskStore，
由 TaskCommentService 直接读写远端。
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from .task import ensure_utc


class TaskComment(BaseModel):
    """任务评论"""

    id: str
    task_id: str
    user_id: str = Field(default="", description="作者用户 ID")
    user_name: str = Field(default="", description="作者显示名（来自嵌套 user 对象）")
    comment: str
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def _attach_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class TaskCommentDraft(BaseModel):
    """新建 / 编辑评论表单"""

    comment: str = Field(min_length=1)

    @field_validator("comment")
    @classmethod
    def _strip_comment(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("comment 不能为空")
        return value
