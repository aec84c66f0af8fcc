from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime


class URLEntry(BaseModel):
    """
    One shortened link as returned by a URL store.

    from_attributes=True lets the SQL store build it straight from
    the ORM row (like DRF's ModelSerializer).
    """
    code: str
    url: str
    owner: str
    created_at: datetime

    # Entries are never mutated once created
    model_config = ConfigDict(from_attributes=True, frozen=True)


class ShortenRequest(BaseModel):
    url: str = Field("", description="The original URL to be shortened")
    alias: Optional[str] = Field(None, description="Optional custom alias (3-20 alphanumeric characters)")


class ShortenResponse(BaseModel):
    code: str
    url: str = Field(..., description="Full short URL")


class UserURL(BaseModel):
    code: str
    short_url: str
    original_url: str
    created_at: datetime


class ErrorResponse(BaseModel):
    error: str
