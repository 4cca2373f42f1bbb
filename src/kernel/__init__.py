"""
Kernel Layer

Persistence foundations:
- SQLAlchemy models (one saved draft per slot key)
- Draft Store service used by the API to save and restore the session
"""

from src.kernel.models import Base, PlanDraft
from src.kernel.drafts import DraftSnapshot, DraftStore

__all__ = [
    "Base",
    "PlanDraft",
    "DraftSnapshot",
    "DraftStore",
]
