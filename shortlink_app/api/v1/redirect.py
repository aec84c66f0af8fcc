import json
from datetime import datetime, timezone

from fastapi import APIRouter, BackgroundTasks, Depends, status
from fastapi.responses import RedirectResponse

from shortlink_app.dependencies import get_store
from shortlink_app.logging_config import get_logger
from shortlink_app.store.strategies import URLStoreStrategy

router = APIRouter(tags=["redirect"])
logger = get_logger(__name__)


def log_redirect(code: str) -> None:
    """Log a redirect event as one JSON line"""
    logger.info(json.dumps({
        "code": code,
        "time": datetime.now(timezone.utc).isoformat()
    }))


@router.get("/r/{code}")
def redirect_to_url(
    code: str,
    background_tasks: BackgroundTasks,
    store: URLStoreStrategy = Depends(get_store)
):
    """
    Redirect to the original URL.

    Unknown codes raise NotFound, which the app turns into a 404.
    The redirect is logged after the response is sent.
    """
    url = store.get(code)

    background_tasks.add_task(log_redirect, code)

    return RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)
