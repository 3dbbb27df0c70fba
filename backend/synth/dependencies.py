"""
Synth Backend: Request Dependencies
====================================

What:  FastAPI dependencies that hand application-owned objects to handlers.
How:   The lifespan in main.py builds the EntityStore and parks it on
       `app.state`; get_store reads it back for each request.

Example usage in a route:
    @router.get("/api/snippets")
    def list_snippets(store: EntityStore = Depends(get_store)):
        return store.get_all_snippets()
"""

from fastapi import Request

from synth.exceptions import SynthError
from synth.storage.store import EntityStore


def get_store(request: Request) -> EntityStore:
    """
    The EntityStore owned by the running application.

    Raises:
        SynthError: If the application was started without a store
                    (lifespan not run), which is a wiring bug.
    """
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise SynthError(message="Entity store is not initialised")
    return store

