"""PendingMutation Domain Model

一次进行中的乐观更新，由 Reconciler 独占持有。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import MutationStatus
from .task import Task


class PendingMutation(BaseModel):
    """进行中的本地变更"""

    mutation_id: str = Field(description="ULID")
    target_id: str = Field(description="目标 Task ID")
    previous_snapshot: Task = Field(description="变更前快照（用于回滚）")
    applied_snapshot: Task = Field(description="乐观应用后的快照")
    attempted_at: datetime
    status: MutationStatus = MutationStatus.APPLIED_LOCALLY
    error: str = Field(default="", description="失败原因")
