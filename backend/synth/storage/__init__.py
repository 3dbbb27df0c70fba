# Storage package init
"""
Synth Backend: Storage Layer
=============================

    - table.py: EntityTable, the id → record map and id counter of one kind
    - store.py: EntityStore, CRUD, enrichment and aggregates over all kinds
    - seed.py:  the demo marketplace loaded into a fresh store
"""

from synth.storage.store import EntityStore

__all__ = ["EntityStore"]
