"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the marketplace reconciliation models used by
``marketplace_recon``.
"""

from .marketplace import Base, MrCategory, MrProduct, MrTransaction

__all__ = [
    "Base",
    "MrCategory",
    "MrProduct",
    "MrTransaction",
]
