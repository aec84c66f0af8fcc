"""
FastAPI dependencies for dependency injection.

Every collaborator (store, processor, metrics, settings) is created by
create_app() and kept on app.state, so two apps in one process never
share state. Routes pull them from the request.

Pattern: Dependency Injection
- Loose coupling between components
- Easy to test (build an app with an in-memory store)
"""

import uuid
from typing import Optional

from fastapi import Depends, Request, Response

from shortlink_app.config import Settings
from shortlink_app.metrics import RequestMetrics
from shortlink_app.processor.url_processor import URLProcessor
from shortlink_app.store.strategies import URLStoreStrategy


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> URLStoreStrategy:
    return request.app.state.store


def get_processor(request: Request) -> Optional[URLProcessor]:
    """Processor is optional: shortening works without background probes"""
    return getattr(request.app.state, "processor", None)


def get_metrics(request: Request) -> RequestMetrics:
    return request.app.state.metrics


def get_user_id(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_settings)
) -> str:
    """
    Caller identity from the user_id cookie.

    A first-time caller gets a fresh UUID, set as a long-lived cookie.
    """
    user_id = request.cookies.get(settings.user_cookie_name)
    if user_id:
        return user_id

    user_id = str(uuid.uuid4())
    response.set_cookie(
        key=settings.user_cookie_name,
        value=user_id,
        path="/",
        httponly=True,
        max_age=settings.user_cookie_max_age,
        samesite="lax"
    )
    return user_id
