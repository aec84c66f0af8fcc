"""
Database models for URL shortener.

Only the relational store uses these; the in-memory store keeps
URLEntry schemas in plain dicts.
"""

from .url import URL

__all__ = ["URL"]
