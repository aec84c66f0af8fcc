from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, status

from shortlink_app.config import Settings
from shortlink_app.dependencies import get_processor, get_settings, get_store, get_user_id
from shortlink_app.logging_config import get_logger
from shortlink_app.processor.url_processor import URLProcessor
from shortlink_app.schemas.url import ErrorResponse, ShortenRequest, ShortenResponse, UserURL
from shortlink_app.store.strategies import URLStoreStrategy

router = APIRouter(prefix="/api", tags=["urls"])
logger = get_logger(__name__)


def short_url_for(settings: Settings, code: str) -> str:
    return f"{settings.base_url.rstrip('/')}/r/{code}"


def log_shortened(url: str, short_url: str, user_id: str) -> None:
    logger.info("Shortened URL: %s -> %s (user: %s)", url, short_url, user_id)


@router.post(
    "/shorten",
    response_model=ShortenResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}}
)
def shorten_url(
    payload: ShortenRequest,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(get_user_id),
    store: URLStoreStrategy = Depends(get_store),
    processor: Optional[URLProcessor] = Depends(get_processor),
    settings: Settings = Depends(get_settings)
):
    """
    Shorten a URL (optionally with a custom alias).

    Flow:
    1. Store validates and persists (errors map to 400/409)
    2. Log in the background (after the response is sent)
    3. Queue a background probe - dropped if the queue is full,
       never delays the response
    """
    code = store.put(payload.url, alias=payload.alias, owner=user_id)
    short_url = short_url_for(settings, code)

    background_tasks.add_task(log_shortened, payload.url, short_url, user_id)

    if processor is not None:
        processor.submit(payload.url, block=False)

    return ShortenResponse(code=code, url=short_url)


@router.get("/urls", response_model=List[UserURL])
def list_user_urls(
    user_id: str = Depends(get_user_id),
    store: URLStoreStrategy = Depends(get_store),
    settings: Settings = Depends(get_settings)
):
    """List the caller's short URLs, newest first"""
    return [
        UserURL(
            code=entry.code,
            short_url=short_url_for(settings, entry.code),
            original_url=entry.url,
            created_at=entry.created_at
        )
        for entry in store.list_by_owner(user_id)
    ]


@router.get("/stats")
def get_stats(store: URLStoreStrategy = Depends(get_store)):
    """Number of stored URLs (diagnostics)"""
    return {"count": store.count()}
