"""db: SQLAlchemy storage for transactions, merchant mappings and mapping profiles.

Public exports
--------------
- ``Base`` and ``metadata`` for schema creation
- ORM models in ``household_budget.db.models`` (re-exported for convenience)
- Engine/session helpers in ``household_budget.db.client``
"""

from __future__ import annotations

from .models import Base, HbMappingProfile, HbMerchantMapping, HbTransaction

metadata = Base.metadata

__all__ = [
    "Base",
    "metadata",
    "HbTransaction",
    "HbMerchantMapping",
    "HbMappingProfile",
]
