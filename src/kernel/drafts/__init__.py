"""
Draft persistence for the planning session.
"""

from src.kernel.drafts.draft_store import DraftSnapshot, DraftStore

__all__ = [
    "DraftSnapshot",
    "DraftStore",
]
