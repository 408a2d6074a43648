"""
Tuitions module - Listing lifecycle for tutoring requests.
"""

from edubridge.modules.tuitions.models import (
    ListingStatus,
    ModerationStatus,
    PaymentStatus,
    TuitionPost,
)

__all__ = ["ListingStatus", "ModerationStatus", "PaymentStatus", "TuitionPost"]
