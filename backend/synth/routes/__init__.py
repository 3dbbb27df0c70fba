# Routes package init
"""
Synth Backend: API Routes Package
==================================

Route Inventory:
    - health.py:  GET /health  (service and store health)

Marketplace routes are not part of this package. A route layer obtains
the store with `Depends(synth.dependencies.get_store)` and turns the
store's None results into 404 responses by raising NotFoundError.
"""
