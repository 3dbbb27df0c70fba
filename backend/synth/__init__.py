"""
Synth Backend: Application Package Initializer
===============================================

What: Marks the `synth` directory as a Python package.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    The backend is organised in layers around one in-memory data store:

    ┌─────────────────────────────────────┐
    │   Routes + Middleware (HTTP layer)  │  ← health endpoint, request ids, access log
    ├─────────────────────────────────────┤
    │   Services (scheduling, snapshots)  │  ← work that spans store operations
    ├─────────────────────────────────────┤
    │   Storage (EntityStore)             │  ← ids, CRUD, enrichment, aggregates
    ├─────────────────────────────────────┤
    │   Models & Schemas (Data)           │  ← entity records, views, insert payloads
    └─────────────────────────────────────┘

    The store is constructed by the application lifespan and reaches request
    handlers through `synth.dependencies.get_store`; there is no module-level
    store instance.
"""

__version__ = "1.0.0"
