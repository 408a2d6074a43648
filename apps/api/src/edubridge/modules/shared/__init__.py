"""
Shared module - Base model and helpers used by every domain module.
"""

from edubridge.modules.shared.models import BaseModel, utcnow

__all__ = ["BaseModel", "utcnow"]
