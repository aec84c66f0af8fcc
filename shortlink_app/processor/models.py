"""
Data models for URL processor results.
"""

from pydantic import BaseModel, Field
from typing import Optional


class ProbeResult(BaseModel):
    """
    Outcome of one background probe (HEAD request) against a target URL.

    Produced at most once per submitted job. Not linked to a store entry:
    the store has already committed the URL regardless of the outcome.
    """

    url: str = Field(..., description="The URL as it was submitted")
    status_code: int = Field(0, description="HTTP status, 0 when no response was received")
    content_type: str = Field("", description="Content-Type response header")
    error: Optional[str] = Field(None, description="Failure cause (parse, network or timeout)")
    elapsed: float = Field(0.0, description="Wall-clock seconds spent on the probe")

    @property
    def ok(self) -> bool:
        return self.error is None

    class Config:
        json_schema_extra = {
            "example": {
                "url": "https://example.com",
                "status_code": 200,
                "content_type": "text/html; charset=UTF-8",
                "error": None,
                "elapsed": 0.142
            }
        }
