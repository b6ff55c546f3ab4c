from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse

from core.dependencies import get_dispatcher
from core.schemas import ErrorResponse, HealthResponse, TaskAcceptedResponse
from services.turnstile.dispatcher import Dispatcher
from services.turnstile.models import FailureResult
from utils.rate_limit import limit_solve

router = APIRouter(tags=["Turnstile"])

INDEX_PAGE = Path(__file__).resolve().parent.parent / "views" / "index.html"


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def index() -> str:
    """Serve the informational landing page."""
    return INDEX_PAGE.read_text(encoding="utf-8")


@router.get(
    "/turnstile",
    status_code=202,
    response_model=TaskAcceptedResponse,
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}},
)
@limit_solve
async def process_turnstile(
    request: Request,
    url: Optional[str] = None,
    sitekey: Optional[str] = None,
    action: Optional[str] = None,
    cdata: Optional[str] = None,
    cf_selector: Optional[str] = None,
    dispatcher: Dispatcher = Depends(get_dispatcher),
):
    """
    Queue a Turnstile solve.

    Returns the task id immediately; poll /result?id=<task_id> for the token.
    A missing url or sitekey is rejected with 400 and no task is created.
    """
    task_id = dispatcher.submit(
        url=url,
        sitekey=sitekey,
        action=action,
        cdata=cdata,
        selector=cf_selector,
    )
    return TaskAcceptedResponse(task_id=task_id)


@router.get(
    "/result",
    responses={400: {"model": ErrorResponse}, 422: {"description": "Solve failed"}},
)
async def get_result(
    task_id: Optional[str] = Query(default=None, alias="id"),
    dispatcher: Dispatcher = Depends(get_dispatcher),
):
    """
    Fetch the result of a task.

    200 while pending and on success, 422 once the solve has failed,
    400 for ids that were never issued.
    """
    result = dispatcher.fetch_result(task_id)
    status_code = 422 if isinstance(result, FailureResult) else 200
    return JSONResponse(status_code=status_code, content=result.to_json())


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request, dispatcher: Dispatcher = Depends(get_dispatcher)):
    """
    Pool and store status.

    Reports "degraded" when no worker is available at all.
    """
    status = dispatcher.status()
    return {
        "status": "healthy" if status["pool"]["size"] > 0 else "degraded",
        **status,
        "version": request.app.state.config.APP_VERSION,
    }
