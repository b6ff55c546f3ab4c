"""
Solve Task Models

SolveTask is the immutable request handed to the runner. TaskResult is
what gets stored and returned to pollers: a pending placeholder, a
success carrying the token, or a failure carrying the reason.

Wire format (by_alias=True):
    {"status": "pending", "value": "CAPTCHA_NOT_READY"}
    {"status": "success", "value": "<token>", "elapsed_time": 1.234}
    {"status": "failure", "value": "CAPTCHA_FAIL",
     "reason": "interaction-timeout", "elapsed_time": 9.876}
"""

from dataclasses import dataclass
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from config.constants import RESULT_FAIL, RESULT_NOT_READY

FailureReason = Literal["interaction-timeout", "error"]


@dataclass(frozen=True)
class SolveTask:
    """One solve request, fixed at submission time."""
    task_id: str
    url: str
    sitekey: str
    action: Optional[str] = None
    cdata: Optional[str] = None
    selector: Optional[str] = None


class _ResultModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def is_terminal(self) -> bool:
        return True

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class PendingResult(_ResultModel):
    status: Literal["pending"] = "pending"
    value: Literal["CAPTCHA_NOT_READY"] = RESULT_NOT_READY

    @property
    def is_terminal(self) -> bool:
        return False


class SuccessResult(_ResultModel):
    status: Literal["success"] = "success"
    token: str = Field(alias="value")
    elapsed_seconds: float = Field(alias="elapsed_time")


class FailureResult(_ResultModel):
    status: Literal["failure"] = "failure"
    value: Literal["CAPTCHA_FAIL"] = RESULT_FAIL
    reason: FailureReason
    elapsed_seconds: float = Field(alias="elapsed_time")


TaskResult = Annotated[
    Union[PendingResult, SuccessResult, FailureResult],
    Field(discriminator="status"),
]

task_result_adapter: TypeAdapter = TypeAdapter(TaskResult)


def parse_task_result(data: dict) -> Union[PendingResult, SuccessResult, FailureResult]:
    """Validate a stored/wire dict back into a TaskResult."""
    return task_result_adapter.validate_python(data)
