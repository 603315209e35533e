"""Lookup module for the SKK server."""

from .client import TransliterateClient, build_query_text
from .service import LookupResult, LookupService, LookupStatus

__all__ = [
    "TransliterateClient",
    "build_query_text",
    "LookupResult",
    "LookupService",
    "LookupStatus",
]
