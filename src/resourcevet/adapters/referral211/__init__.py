"""Public interface for the 211 directory adapter."""

from __future__ import annotations

from .client import Referral211APIError, Referral211CrossReference
from .schema import ListingPayload, SearchResponse

__all__ = ["ListingPayload", "Referral211APIError", "Referral211CrossReference", "SearchResponse"]
