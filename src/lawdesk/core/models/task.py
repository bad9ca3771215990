"""Task Domain Model

Task 是本地 TaskStore 中的记录；TaskPatch 是乐观更新的补丁，
TaskDraft 是新建任务表单，TaskFilter 是列表查询条件。
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import TaskPriority, TaskStatus, TaskType


def ensure_utc(value: datetime | None) -> datetime | None:
    """无时区的时间一律按 UTC 解释"""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class Task(BaseModel):
    """Task 数据模型

    不变量：completed_at 当且仅当 status == completed 时有值。
    服务端返回的权威副本按原样保存，不做修正。
    """

    id: str = Field(description="唯一标识（不透明字符串）")
    title: str = Field(description="任务标题")
    description: str | None = Field(default=None, description="任务描述")
    type: TaskType = Field(default=TaskType.OTHER, description="任务类型")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="当前状态")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="任务优先级")
    assigned_to: str = Field(default="", description="负责人用户 ID")
    assigned_by: str | None = Field(default=None, description="指派人用户 ID")
    case_id: str | None = Field(default=None, description="关联案件 ID")
    due_date: datetime | None = Field(default=None, description="截止时间")
    estimated_hours: float | None = Field(default=None, description="预估工时")
    actual_hours: float | None = Field(default=None, description="实际工时")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")
    completed_at: datetime | None = Field(default=None, description="完成时间")
    tags: list[str] = Field(default_factory=list, description="标签")
    notes: str | None = Field(default=None, description="备注")

    @field_validator("due_date", "created_at", "updated_at", "completed_at")
    @classmethod
    def _attach_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)


class TaskPatch(BaseModel):
    """乐观更新补丁 -- 仅包含可变字段，未知字段直接拒绝"""

    model_config = ConfigDict(extra="forbid")

    title: str | None = None
    description: str | None = None
    type: TaskType | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assigned_to: str | None = None
    assigned_by: str | None = None
    case_id: str | None = None
    due_date: datetime | None = None
    estimated_hours: float | None = None
    actual_hours: float | None = None
    completed_at: datetime | None = None
    tags: list[str] | None = None
    notes: str | None = None

    @field_validator("due_date", "completed_at")
    @classmethod
    def _attach_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)

    def changes(self) -> dict:
        """仅返回调用方显式设置过的字段"""
        return self.model_dump(exclude_unset=True)


class TaskDraft(BaseModel):
    """新建任务表单"""

    title: str = Field(min_length=1, description="任务标题")
    description: str | None = None
    type: TaskType = TaskType.OTHER
    case_id: str | None = None
    assigned_to: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = None
    estimated_hours: float | None = None
    notes: str | None = None

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title 不能为空")
        return value

    @field_validator("due_date")
    @classmethod
    def _attach_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)


class TaskFilter(BaseModel):
    """任务列表筛选条件，所有条件之间为 AND 关系"""

    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    type: TaskType | None = None
    assigned_to: str | None = None
    case_id: str | None = None
    search: str | None = Field(default=None, description="标题/描述/负责人姓名子串，忽略大小写")
