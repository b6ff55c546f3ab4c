from pydantic import BaseModel, Field
from typing import Any, Dict


class TaskAcceptedResponse(BaseModel):
    task_id: str


class ErrorResponse(BaseModel):
    status: str = "error"
    error: str
    details: Dict[str, Any] = Field(default_factory=dict)


class PoolStatus(BaseModel):
    size: int
    busy: int
    free: int


class HealthResponse(BaseModel):
    status: str
    pool: PoolStatus
    results: int
    running_tasks: int
    version: str
